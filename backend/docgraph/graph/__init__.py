"""Schema-agnostic document storage: query templates and CRUD."""

from .document_store import DocumentStore
from .queries import CatalogQueries, DocumentQueries, QueryPlan, quote_label

__all__ = ["DocumentStore", "CatalogQueries", "DocumentQueries", "QueryPlan", "quote_label"]
