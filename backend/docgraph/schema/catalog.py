"""
Schema catalog backed by the metadata graph.

Resolves a DocType name to its existence, its ordered field list and its
module membership. Layout in the store:

    (:DocType {name, module, field_order, description})
        -[:HAS_FIELD]->(:DocField {fieldname, label, fieldtype, ..., idx})

``field_order`` is authoritative for presentation order; the order in which
the store happens to return DocField nodes is never relied on.
"""

import logging
import re
from collections import defaultdict
from typing import Any, Optional

from docgraph.core.exceptions import DocGraphError
from docgraph.core.neo4j_client import Neo4jClient
from docgraph.graph.queries import CatalogQueries
from docgraph.schema.models import DocField, DocTypeDefinition, Module

logger = logging.getLogger(__name__)


def order_fields(
    fields: list[dict[str, Any]],
    field_order: Optional[list[str]],
) -> list[dict[str, Any]]:
    """
    Order raw field records by the DocType's declared sequence.

    Fields named in ``field_order`` come first, in that order. Any field the
    list does not mention follows, by ``idx`` then ``fieldname``. Names in
    the list with no stored field are skipped.
    """
    by_name = {f.get("fieldname"): f for f in fields if f and f.get("fieldname")}
    ordered = []
    seen = set()
    for fieldname in field_order or []:
        if fieldname in by_name and fieldname not in seen:
            ordered.append(by_name[fieldname])
            seen.add(fieldname)

    rest = [f for name, f in by_name.items() if name not in seen]
    rest.sort(key=lambda f: (
        f.get("idx") if isinstance(f.get("idx"), (int, float)) else float("inf"),
        f.get("fieldname"),
    ))
    return ordered + rest


def group_modules(rows: list[dict[str, Any]]) -> list[Module]:
    """Group ``{name, module}`` rows into modules sorted by name."""
    grouped: dict[str, set[str]] = defaultdict(set)
    for row in rows:
        doctype = row.get("name")
        module = row.get("module")
        if not doctype or module is None:
            continue
        names = [module] if isinstance(module, str) else list(module)
        for module_name in names:
            if module_name:
                grouped[module_name].add(doctype)

    return [
        Module(moduleName=module_name, docTypeNames=sorted(grouped[module_name]))
        for module_name in sorted(grouped)
    ]


class SchemaCatalog:
    """
    Read and write DocType metadata.

    Usage:
        catalog = SchemaCatalog(client)

        if await catalog.doctype_exists("Customer"):
            fields = await catalog.get_fields("Customer")

        modules = await catalog.get_modules()
    """

    def __init__(self, client: Neo4jClient):
        self.client = client

    async def doctype_exists(self, doctype: str) -> bool:
        """Existence probe, independent of whether the DocType has fields."""
        plan = CatalogQueries.exists(doctype)
        try:
            rows = await self.client.execute_read(plan.cypher, plan.parameters)
        except DocGraphError as e:
            logger.error(f"doctype_exists failed for doctype={doctype!r}: {e}")
            raise
        return bool(rows and rows[0].get("found"))

    async def get_fields(self, doctype: str) -> Optional[list[DocField]]:
        """
        Ordered fields of a DocType.

        Returns:
            None when the DocType does not exist, an empty list when it
            exists without fields.
        """
        plan = CatalogQueries.fields(doctype)
        try:
            rows = await self.client.execute_read(plan.cypher, plan.parameters)
        except DocGraphError as e:
            logger.error(f"get_fields failed for doctype={doctype!r}: {e}")
            raise

        if not rows:
            logger.debug(f"DocType not found: {doctype!r}")
            return None

        row = rows[0]
        ordered = order_fields(row.get("fields") or [], row.get("field_order"))
        return [DocField.model_validate(f) for f in ordered]

    async def get_modules(self) -> list[Module]:
        """Modules sorted by name, each with its de-duplicated DocType names."""
        plan = CatalogQueries.modules()
        try:
            rows = await self.client.execute_read(plan.cypher, plan.parameters)
        except DocGraphError as e:
            logger.error(f"get_modules failed: {e}")
            raise
        return group_modules(rows)

    async def list_doctypes(self) -> list[str]:
        plan = CatalogQueries.doctype_names()
        try:
            rows = await self.client.execute_read(plan.cypher, plan.parameters)
        except DocGraphError as e:
            logger.error(f"list_doctypes failed: {e}")
            raise
        return [row["name"] for row in rows if row.get("name")]

    # =========================================================================
    # WRITES
    # =========================================================================

    async def upsert_doctype(self, definition: DocTypeDefinition) -> int:
        """
        Write a DocType and its ordered fields. Fields the definition no
        longer lists are removed.

        Returns:
            Number of fields written
        """
        props: dict[str, Any] = {"description": definition.description}
        if definition.module:
            props["module"] = (
                definition.module[0] if len(definition.module) == 1 else definition.module
            )
        fields = [f.to_store_properties(idx) for idx, f in enumerate(definition.fields)]

        plan = CatalogQueries.upsert_doctype(definition.name, props, fields)
        try:
            rows = await self.client.execute_write(plan.cypher, plan.parameters)
        except DocGraphError as e:
            logger.error(f"upsert_doctype failed for doctype={definition.name!r}: {e}")
            raise

        written = rows[0]["fields"] if rows else 0
        logger.debug(f"Upserted DocType {definition.name!r} with {written} fields")
        return written

    @staticmethod
    def index_name_for(doctype: str) -> str:
        """Index identifier for a DocType's ``name`` property: ``[a-z0-9_]`` only."""
        slug = re.sub(r"[^0-9a-zA-Z]+", "_", doctype).strip("_").lower() or "doctype"
        # Distinct names can slug the same; a stable suffix keeps them apart.
        suffix = format(sum(ord(c) * (i + 1) for i, c in enumerate(doctype)) % 65536, "04x")
        return f"doc_{slug}_{suffix}_name"

    async def ensure_indexes(self, doctypes: Optional[list[str]] = None) -> dict[str, int]:
        """
        Create the catalog constraints and a ``name`` index per DocType label.

        Checks existing indexes first and only creates what's missing.

        Returns:
            Counts of created / existing / failed indexes
        """
        existing_plan = CatalogQueries.existing_indexes()
        existing = {
            row["name"]
            for row in await self.client.execute_read(existing_plan.cypher)
        }

        if doctypes is None:
            doctypes = await self.list_doctypes()

        wanted = [
            ("doctype_name", CatalogQueries.create_doctype_constraint()),
            ("naming_series_doctype", CatalogQueries.create_naming_series_constraint()),
        ]
        for doctype in doctypes:
            index_name = self.index_name_for(doctype)
            wanted.append((index_name, CatalogQueries.create_name_index(index_name, doctype)))

        result = {"created": 0, "existed": 0, "failed": 0}
        for index_name, plan in wanted:
            if index_name in existing:
                result["existed"] += 1
                continue
            try:
                await self.client.execute_write(plan.cypher, plan.parameters)
                result["created"] += 1
            except DocGraphError as e:
                logger.warning(f"Could not create index {index_name}: {e}")
                result["failed"] += 1

        if result["created"] > 0:
            logger.info(f"Indexes: {result['created']} created, {result['existed']} already existed")
        elif result["existed"] > 0:
            logger.debug(f"All {result['existed']} indexes already exist")
        return result
