"""
FastAPI dependencies for dependency injection.

The Neo4j client is created by the application lifespan and kept on
``app.state``; everything per-request is built around it.
"""

from fastapi import Depends, HTTPException, Request

from docgraph.config import Settings, get_settings
from docgraph.core.neo4j_client import Neo4jClient
from docgraph.graph.document_store import DocumentStore
from docgraph.schema.catalog import SchemaCatalog


def get_client(request: Request) -> Neo4jClient:
    """Dependency for the process-wide Neo4j client."""
    client = getattr(request.app.state, "neo4j_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return client


def get_catalog(client: Neo4jClient = Depends(get_client)) -> SchemaCatalog:
    """Dependency for the schema catalog."""
    return SchemaCatalog(client)


def get_store(client: Neo4jClient = Depends(get_client)) -> DocumentStore:
    """Dependency for the document store."""
    return DocumentStore(client)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return getattr(request.app.state, "settings", None) or get_settings()
