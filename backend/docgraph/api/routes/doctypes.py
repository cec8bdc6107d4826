"""
DocType schema routes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from docgraph.core.exceptions import DocGraphError, DocTypeNotFoundError
from docgraph.schema.catalog import SchemaCatalog
from docgraph.schema.models import DocField
from docgraph.api.dependencies import get_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/doctypes", tags=["doctypes"])


@router.get("/{doctype}", response_model=list[DocField])
async def get_doctype_schema(
    doctype: str,
    catalog: SchemaCatalog = Depends(get_catalog),
):
    """
    Get the ordered field list of a DocType.

    A DocType that exists without fields returns an empty list; an
    unknown DocType is a 404.
    """
    logger.debug(f"Fetching schema for: {doctype!r}")
    try:
        fields = await catalog.get_fields(doctype)
        if fields is None:
            raise DocTypeNotFoundError(doctype)
    except DocTypeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DocGraphError as e:
        logger.error(f"Failed to fetch schema for {doctype!r}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch schema")
    return fields
