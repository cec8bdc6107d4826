"""
Cypher query construction for runtime type names.

Cypher cannot bind a label as a parameter, so the one structural piece that
comes from the caller - the DocType name - is escaped and embedded with
``quote_label``. Everything else (names, property maps, skip/limit) travels
as a bound parameter. Every template here returns a ``QueryPlan`` whose
text contains no caller data other than the quoted label.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from docgraph.core.exceptions import InvalidLabelError

# Some server versions expand these escapes inside backtick identifiers
# before parsing, turning them into a live backtick.
_BACKTICK_ESCAPE = re.compile(r"\\(u0060|U00000060)", re.IGNORECASE)

DOCTYPE_LABEL = "DocType"
DOCFIELD_LABEL = "DocField"
NAMING_SERIES_LABEL = "NamingSeries"
HAS_FIELD = "HAS_FIELD"

# Sort key for list(): newest modification first, then creation time,
# documents with neither timestamp last, element id as the final tiebreak.
_RECENCY_ORDER = (
    "coalesce(n.modified, n.creation) IS NULL, "
    "coalesce(n.modified, n.creation) DESC, "
    "elementId(n)"
)

# Prefer an exact ``name`` match over an element-id match.
_MATCH_BY_ID = (
    "WHERE n.name = $id OR elementId(n) = $id "
    "WITH n ORDER BY CASE WHEN n.name = $id THEN 0 ELSE 1 END LIMIT 1"
)


def quote_label(name: str) -> str:
    """
    Turn a raw type name into a backtick-quoted Cypher label.

    Embedded backticks are doubled, never dropped, so ``Sales`Invoice``
    stays a distinct, round-trippable label. Unicode is passed through.

    Names spelling a backtick as a unicode escape are refused: quoting them
    either way would make two distinct names share one label.

    Raises:
        InvalidLabelError: for an empty or whitespace-only name, or one
            containing an escaped backtick
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidLabelError(f"Invalid DocType name: {name!r}")
    if _BACKTICK_ESCAPE.search(name):
        raise InvalidLabelError(f"DocType name may not contain an escaped backtick: {name!r}")
    escaped = name.replace("`", "``")
    return f"`{escaped}`"


@dataclass
class QueryPlan:
    """A planned query with parameters."""

    cypher: str
    parameters: dict[str, Any] = field(default_factory=dict)
    description: str = ""


class DocumentQueries:
    """Statements for the generic document store, parameterised on a DocType."""

    @staticmethod
    def count(doctype: str) -> QueryPlan:
        label = quote_label(doctype)
        return QueryPlan(
            cypher=f"MATCH (n:{label}) RETURN count(n) AS total",
            description=f"Count {doctype}",
        )

    @staticmethod
    def page(doctype: str, skip: int, limit: int) -> QueryPlan:
        label = quote_label(doctype)
        return QueryPlan(
            cypher=f"""
            MATCH (n:{label})
            RETURN n
            ORDER BY {_RECENCY_ORDER}
            SKIP $skip
            LIMIT $limit
            """,
            parameters={"skip": skip, "limit": limit},
            description=f"Page of {doctype}",
        )

    @staticmethod
    def get(doctype: str, docname: str) -> QueryPlan:
        label = quote_label(doctype)
        return QueryPlan(
            cypher=f"""
            MATCH (n:{label})
            {_MATCH_BY_ID}
            RETURN n
            """,
            parameters={"id": docname},
            description=f"Get {doctype}",
        )

    @staticmethod
    def create_named(doctype: str, docname: str, properties: dict[str, Any]) -> QueryPlan:
        """Create with a caller-supplied name; returns no row if the name is taken."""
        label = quote_label(doctype)
        return QueryPlan(
            cypher=f"""
            OPTIONAL MATCH (existing:{label} {{name: $name}})
            WITH existing WHERE existing IS NULL
            CREATE (n:{label})
            SET n = $props, n.name = $name, n.creation = datetime(), n.modified = datetime()
            RETURN n
            """,
            parameters={"name": docname, "props": properties},
            description=f"Create {doctype} {docname}",
        )

    @staticmethod
    def create_autonamed(doctype: str, prefix: str, properties: dict[str, Any]) -> QueryPlan:
        """
        Advance the DocType's naming series and create the document under the
        generated name, in one statement. Returns no row if that name is taken.
        """
        label = quote_label(doctype)
        series = quote_label(NAMING_SERIES_LABEL)
        return QueryPlan(
            cypher=f"""
            MERGE (s:{series} {{doctype: $doctype}})
            ON CREATE SET s.current = 0
            SET s.current = s.current + 1
            WITH toString(s.current) AS seq
            WITH $prefix + '-' + CASE WHEN size(seq) >= 3 THEN seq
                                      ELSE substring('000', size(seq)) + seq END AS docname
            OPTIONAL MATCH (existing:{label} {{name: docname}})
            WITH docname, existing WHERE existing IS NULL
            CREATE (n:{label})
            SET n = $props, n.name = docname, n.creation = datetime(), n.modified = datetime()
            RETURN n
            """,
            parameters={"doctype": doctype, "prefix": prefix, "props": properties},
            description=f"Create {doctype} from naming series {prefix}",
        )

    @staticmethod
    def update(doctype: str, docname: str, properties: dict[str, Any]) -> QueryPlan:
        label = quote_label(doctype)
        return QueryPlan(
            cypher=f"""
            MATCH (n:{label})
            {_MATCH_BY_ID}
            SET n += $props, n.modified = datetime()
            RETURN n
            """,
            parameters={"id": docname, "props": properties},
            description=f"Update {doctype} {docname}",
        )

    @staticmethod
    def delete(doctype: str, docname: str) -> QueryPlan:
        label = quote_label(doctype)
        return QueryPlan(
            cypher=f"""
            MATCH (n:{label})
            {_MATCH_BY_ID}
            DETACH DELETE n
            RETURN count(n) AS deleted
            """,
            parameters={"id": docname},
            description=f"Delete {doctype} {docname}",
        )


class CatalogQueries:
    """Statements over the DocType / DocField metadata graph."""

    @staticmethod
    def exists(doctype: str) -> QueryPlan:
        return QueryPlan(
            cypher=f"""
            MATCH (d:{DOCTYPE_LABEL} {{name: $name}})
            RETURN count(d) > 0 AS found
            """,
            parameters={"name": doctype},
        )

    @staticmethod
    def fields(doctype: str) -> QueryPlan:
        """One row when the DocType exists (fields possibly empty), none otherwise."""
        return QueryPlan(
            cypher=f"""
            MATCH (d:{DOCTYPE_LABEL} {{name: $name}})
            OPTIONAL MATCH (d)-[:{HAS_FIELD}]->(f:{DOCFIELD_LABEL})
            RETURN d.field_order AS field_order, collect(f) AS fields
            """,
            parameters={"name": doctype},
        )

    @staticmethod
    def modules() -> QueryPlan:
        return QueryPlan(
            cypher=f"""
            MATCH (d:{DOCTYPE_LABEL})
            WHERE d.module IS NOT NULL
            RETURN d.name AS name, d.module AS module
            """,
        )

    @staticmethod
    def doctype_names() -> QueryPlan:
        return QueryPlan(
            cypher=f"MATCH (d:{DOCTYPE_LABEL}) RETURN d.name AS name ORDER BY name",
        )

    @staticmethod
    def upsert_doctype(
        doctype: str,
        properties: dict[str, Any],
        fields: list[dict[str, Any]],
    ) -> QueryPlan:
        """
        Write a DocType node, its fields and its field order in one statement.
        Fields no longer listed are removed.
        """
        return QueryPlan(
            cypher=f"""
            MERGE (d:{DOCTYPE_LABEL} {{name: $name}})
            SET d += $props, d.field_order = [f IN $fields | f.fieldname]
            WITH d
            OPTIONAL MATCH (d)-[:{HAS_FIELD}]->(stale:{DOCFIELD_LABEL})
            WHERE NOT stale.fieldname IN [f IN $fields | f.fieldname]
            DETACH DELETE stale
            WITH DISTINCT d
            UNWIND $fields AS field
            MERGE (d)-[:{HAS_FIELD}]->(f:{DOCFIELD_LABEL} {{parent: $name, fieldname: field.fieldname}})
            SET f = field, f.parent = $name
            RETURN count(f) AS fields
            """,
            parameters={"name": doctype, "props": properties, "fields": fields},
            description=f"Upsert DocType {doctype}",
        )

    @staticmethod
    def existing_indexes() -> QueryPlan:
        return QueryPlan(cypher="SHOW INDEXES YIELD name RETURN name")

    @staticmethod
    def create_doctype_constraint() -> QueryPlan:
        return QueryPlan(
            cypher=(
                f"CREATE CONSTRAINT doctype_name IF NOT EXISTS "
                f"FOR (d:{DOCTYPE_LABEL}) REQUIRE d.name IS UNIQUE"
            ),
        )

    @staticmethod
    def create_naming_series_constraint() -> QueryPlan:
        series = quote_label(NAMING_SERIES_LABEL)
        return QueryPlan(
            cypher=(
                f"CREATE CONSTRAINT naming_series_doctype IF NOT EXISTS "
                f"FOR (s:{series}) REQUIRE s.doctype IS UNIQUE"
            ),
        )

    @staticmethod
    def create_name_index(index_name: str, doctype: str) -> QueryPlan:
        """
        ``index_name`` must already be a safe identifier; see
        ``SchemaCatalog.index_name_for``.
        """
        label = quote_label(doctype)
        return QueryPlan(
            cypher=f"CREATE INDEX {index_name} IF NOT EXISTS FOR (n:{label}) ON (n.name)",
        )
