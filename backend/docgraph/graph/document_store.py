"""
Schema-agnostic document store.

One code path serves every DocType: the type name arrives at request time,
becomes a quoted label via the query templates, and every document is a
generic ``Document`` rather than a per-type class.
"""

import logging
from contextlib import contextmanager
from typing import Any, Optional

from neo4j import AsyncManagedTransaction

from docgraph.core.exceptions import DocGraphError, DocumentExistsError, QueryFailure
from docgraph.core.neo4j_client import Neo4jClient, fetch_all
from docgraph.graph.queries import DocumentQueries, QueryPlan
from docgraph.schema.models import Document, DocumentPage, to_store_properties

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "DOC"

# Largest integer the bolt protocol can carry as a parameter.
MAX_STORE_INT = 2**63 - 1


def naming_prefix(doctype: str) -> str:
    """First three characters of the type name, upper-cased, whitespace removed."""
    prefix = "".join(doctype[:3].upper().split())
    return prefix or DEFAULT_PREFIX


@contextmanager
def _operation(operation: str, doctype: str, docname: Optional[str] = None):
    """Log store failures with their operation context, then re-raise."""
    try:
        yield
    except DocGraphError as e:
        logger.error(
            f"{operation} failed: doctype={doctype!r} docname={docname!r}: "
            f"{type(e).__name__}: {e}"
        )
        raise


class DocumentStore:
    """
    Generic CRUD over any DocType label.

    Usage:
        store = DocumentStore(client)

        doc = await store.create_document("Customer", {"customer_name": "Acme"})
        page = await store.list_documents("Customer", page=1, page_size=20)
        await store.update_document("Customer", doc.name, {"status": "Inactive"})
        await store.delete_document("Customer", doc.name)
    """

    def __init__(self, client: Neo4jClient, max_name_attempts: int = 5):
        self.client = client
        self.max_name_attempts = max_name_attempts

    # =========================================================================
    # READS
    # =========================================================================

    async def list_documents(
        self,
        doctype: str,
        page: int = 1,
        page_size: int = 20,
    ) -> DocumentPage:
        """
        One page of documents, most recently modified first.

        ``total`` counts every document of the type regardless of the page
        window; a page past the end comes back empty with the same total.

        Args:
            doctype: DocType name
            page: 1-based page number
            page_size: Documents per page

        Returns:
            DocumentPage with ``data`` and ``total``
        """
        if page < 1 or page_size < 1:
            raise ValueError(f"page and page_size must be positive (got {page}, {page_size})")

        skip = (page - 1) * page_size
        count_plan = DocumentQueries.count(doctype)

        with _operation("list", doctype):
            if skip > MAX_STORE_INT:
                # No collection is that large; only the total is needed.
                count_rows = await self.client.execute_read(count_plan.cypher, count_plan.parameters)
                total, rows = (count_rows[0]["total"] if count_rows else 0), []
            else:
                limit = min(page_size, MAX_STORE_INT)
                page_plan = DocumentQueries.page(doctype, skip=skip, limit=limit)
                total, rows = await self.client.read_transaction(
                    self._read_page, count_plan, page_plan
                )

        logger.debug(f"Listed {len(rows)} of {total} {doctype!r} (page {page}, size {page_size})")
        return DocumentPage(
            data=[Document.from_properties(doctype, row["n"]) for row in rows],
            total=total,
        )

    @staticmethod
    async def _read_page(
        tx: AsyncManagedTransaction,
        count_plan: QueryPlan,
        page_plan: QueryPlan,
    ) -> tuple[int, list[dict[str, Any]]]:
        # Same transaction so the count and the page see one snapshot.
        count_rows = await fetch_all(tx, count_plan.cypher, count_plan.parameters)
        page_rows = await fetch_all(tx, page_plan.cypher, page_plan.parameters)
        total = count_rows[0]["total"] if count_rows else 0
        return total, page_rows

    async def get_document(self, doctype: str, docname: str) -> Optional[Document]:
        """Look up by ``name``, falling back to the store's element id."""
        plan = DocumentQueries.get(doctype, docname)
        with _operation("get", doctype, docname):
            rows = await self.client.execute_read(plan.cypher, plan.parameters)
        if not rows:
            return None
        return Document.from_properties(doctype, rows[0]["n"])

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create_document(self, doctype: str, data: dict[str, Any]) -> Document:
        """
        Create a document.

        A caller-supplied ``name`` is used as-is and must be free under the
        DocType. Without one, a ``<PREFIX>-<NNN>`` name is drawn from the
        DocType's naming series. ``creation`` / ``modified`` are set by the
        store.

        Raises:
            DocumentExistsError: the supplied name is already taken
            QueryFailure: no free generated name within ``max_name_attempts``
        """
        props = to_store_properties(data, exclude=frozenset({"name"}))
        docname = data.get("name")

        with _operation("create", doctype, docname):
            if docname is not None and str(docname).strip():
                docname = str(docname)
                plan = DocumentQueries.create_named(doctype, docname, props)
                rows = await self.client.execute_write(plan.cypher, plan.parameters)
                if not rows:
                    raise DocumentExistsError(doctype, docname)
            else:
                rows = await self._create_autonamed(doctype, props)

        document = Document.from_properties(doctype, rows[0]["n"])
        logger.info(f"Created {doctype} {document.name!r}")
        return document

    async def _create_autonamed(
        self,
        doctype: str,
        props: dict[str, Any],
    ) -> list[dict[str, Any]]:
        prefix = naming_prefix(doctype)
        plan = DocumentQueries.create_autonamed(doctype, prefix, props)
        for attempt in range(1, self.max_name_attempts + 1):
            rows = await self.client.execute_write(plan.cypher, plan.parameters)
            if rows:
                return rows
            logger.warning(
                f"Generated name for {doctype!r} already taken "
                f"(attempt {attempt}/{self.max_name_attempts})"
            )
        raise QueryFailure(
            f"Could not allocate a free {prefix}-NNN name for {doctype!r} "
            f"after {self.max_name_attempts} attempts"
        )

    async def update_document(
        self,
        doctype: str,
        docname: str,
        data: dict[str, Any],
    ) -> Optional[Document]:
        """
        Merge ``data`` onto an existing document and refresh ``modified``.

        Keys absent from ``data`` are left alone; a key set to None removes
        that property. ``name`` and the timestamps are never changed here.

        Returns:
            The updated document, or None if it does not exist
        """
        props = to_store_properties(data, keep_none=True, exclude=frozenset({"name"}))
        plan = DocumentQueries.update(doctype, docname, props)
        with _operation("update", doctype, docname):
            rows = await self.client.execute_write(plan.cypher, plan.parameters)
        if not rows:
            return None
        logger.info(f"Updated {doctype} {docname!r} ({len(props)} fields)")
        return Document.from_properties(doctype, rows[0]["n"])

    async def delete_document(self, doctype: str, docname: str) -> bool:
        """Detach-delete a document. False if nothing matched."""
        plan = DocumentQueries.delete(doctype, docname)
        with _operation("delete", doctype, docname):
            rows = await self.client.execute_write(plan.cypher, plan.parameters)
        deleted = bool(rows) and rows[0].get("deleted", 0) > 0
        if deleted:
            logger.info(f"Deleted {doctype} {docname!r}")
        return deleted
