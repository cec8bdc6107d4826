"""
Module navigation routes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from docgraph.core.exceptions import DocGraphError
from docgraph.schema.catalog import SchemaCatalog
from docgraph.schema.models import Module
from docgraph.api.dependencies import get_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/modules", tags=["modules"])


@router.get("", response_model=list[Module])
async def list_modules(catalog: SchemaCatalog = Depends(get_catalog)):
    """List all modules with their DocType names."""
    try:
        return await catalog.get_modules()
    except DocGraphError as e:
        logger.error(f"Failed to fetch modules: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch modules")
