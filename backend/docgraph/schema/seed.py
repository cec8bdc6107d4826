"""
Write a catalog fixture into the store.
"""

import logging

from docgraph.graph.document_store import DocumentStore
from docgraph.schema.catalog import SchemaCatalog
from docgraph.schema.loader import CatalogFixture

logger = logging.getLogger(__name__)


async def seed_catalog(
    fixture: CatalogFixture,
    catalog: SchemaCatalog,
    store: DocumentStore,
) -> dict[str, int]:
    """
    Upsert every DocType in the fixture, ensure indexes, then insert the
    sample documents that are not already present.

    Re-running is safe: DocTypes are overwritten in place and existing
    documents are left untouched.

    Returns:
        Summary of written items
    """
    counts = {"doctypes": 0, "fields": 0, "documents": 0, "skipped": 0}

    for definition in fixture.doctypes:
        counts["fields"] += await catalog.upsert_doctype(definition)
        counts["doctypes"] += 1

    await catalog.ensure_indexes(fixture.get_doctype_names())

    for doctype, documents in fixture.documents.items():
        for data in documents:
            docname = data.get("name")
            if docname and await store.get_document(doctype, docname) is not None:
                counts["skipped"] += 1
                continue
            await store.create_document(doctype, data)
            counts["documents"] += 1

    logger.info(f"Seeded catalog '{fixture.name}': {counts}")
    return counts
