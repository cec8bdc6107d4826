"""
Schema management module.

DocType metadata lives in the graph itself; this module reads it, writes
it, and seeds it from YAML fixtures.
"""

from .catalog import SchemaCatalog
from .loader import CatalogFixture, CatalogLoader
from .models import (
    DocField,
    DocTypeDefinition,
    Document,
    DocumentPage,
    FieldType,
    Module,
)

__all__ = [
    "SchemaCatalog",
    "CatalogFixture",
    "CatalogLoader",
    "DocField",
    "DocTypeDefinition",
    "Document",
    "DocumentPage",
    "FieldType",
    "Module",
]
