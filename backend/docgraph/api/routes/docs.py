"""
Document CRUD routes (schema-agnostic).

``doctype`` and ``docname`` arrive percent-decoded, so names with spaces
or special characters ("Sales Invoice", "CUST/001") work unchanged.
"""

import logging
import math
from typing import Any, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel

from docgraph.api.dependencies import get_app_settings, get_store
from docgraph.config import Settings
from docgraph.core.exceptions import (
    DocGraphError,
    DocumentExistsError,
    DocumentNotFoundError,
    InvalidLabelError,
    NotFoundError,
)
from docgraph.graph.document_store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/docs", tags=["docs"])


class DocumentListResponse(BaseModel):
    """One page of documents."""
    data: list[dict[str, Any]]
    total: int
    page: int
    pageSize: int
    totalPages: int


class DeleteResponse(BaseModel):
    success: bool


def _raise_for(error: DocGraphError, action: str) -> NoReturn:
    if isinstance(error, NotFoundError):
        raise HTTPException(status_code=404, detail=str(error))
    logger.error(f"Failed to {action}: {error}")
    if isinstance(error, InvalidLabelError):
        raise HTTPException(status_code=400, detail=str(error))
    if isinstance(error, DocumentExistsError):
        raise HTTPException(status_code=409, detail=str(error))
    raise HTTPException(status_code=500, detail=f"Failed to {action}")


@router.get("/{doctype}", response_model=DocumentListResponse)
@router.get("/{doctype}/", response_model=DocumentListResponse, include_in_schema=False)
async def list_documents(
    doctype: str,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, alias="pageSize"),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """List documents of a DocType, most recently modified first."""
    size = page_size or settings.default_page_size
    if size > settings.max_page_size:
        raise HTTPException(
            status_code=422,
            detail=f"pageSize must be at most {settings.max_page_size}",
        )

    try:
        result = await store.list_documents(doctype, page=page, page_size=size)
    except DocGraphError as e:
        _raise_for(e, "fetch documents")

    logger.info(f"Found {len(result.data)} documents (total: {result.total}) for {doctype!r}")
    return DocumentListResponse(
        data=[doc.as_dict() for doc in result.data],
        total=result.total,
        page=page,
        pageSize=size,
        totalPages=math.ceil(result.total / size),
    )


@router.get("/{doctype}/{docname:path}")
async def get_document(
    doctype: str,
    docname: str,
    store: DocumentStore = Depends(get_store),
):
    """Get a document by name (or store element id)."""
    try:
        document = await store.get_document(doctype, docname)
        if document is None:
            raise DocumentNotFoundError(doctype, docname)
    except DocGraphError as e:
        _raise_for(e, "fetch document")
    return document.as_dict()


@router.post("/{doctype}", status_code=201)
async def create_document(
    doctype: str,
    data: dict[str, Any] = Body(...),
    store: DocumentStore = Depends(get_store),
):
    """
    Create a document.

    The body is the field map. Without a ``name`` one is generated from
    the DocType's naming series. Required-field checks are the caller's
    responsibility; any JSON-compatible map is stored.
    """
    try:
        document = await store.create_document(doctype, data)
    except DocGraphError as e:
        _raise_for(e, "create document")
    return document.as_dict()


@router.put("/{doctype}/{docname:path}")
async def update_document(
    doctype: str,
    docname: str,
    data: dict[str, Any] = Body(...),
    store: DocumentStore = Depends(get_store),
):
    """Merge the body onto an existing document."""
    try:
        document = await store.update_document(doctype, docname, data)
        if document is None:
            raise DocumentNotFoundError(doctype, docname)
    except DocGraphError as e:
        _raise_for(e, "update document")
    return document.as_dict()


@router.delete("/{doctype}/{docname:path}", response_model=DeleteResponse)
async def delete_document(
    doctype: str,
    docname: str,
    store: DocumentStore = Depends(get_store),
):
    """Delete a document."""
    try:
        if not await store.delete_document(doctype, docname):
            raise DocumentNotFoundError(doctype, docname)
    except DocGraphError as e:
        _raise_for(e, "delete document")
    return DeleteResponse(success=True)
