"""
Catalog and document models.

DocTypes and their fields are data, not classes: one ``DocTypeDefinition``
describes any entity type, and one ``Document`` carries an instance of any
of them as ``(doctype, name, data)``.
"""

import json
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# Properties the store maintains itself; callers cannot write them.
RESERVED_PROPERTIES = frozenset({"creation", "modified"})


# =============================================================================
# SCHEMA DEFINITION MODELS
# =============================================================================


class FieldType(str, Enum):
    """The closed set of field types a DocField may declare."""
    DATA = "Data"
    INT = "Int"
    FLOAT = "Float"
    CURRENCY = "Currency"
    SELECT = "Select"
    LINK = "Link"
    CHECK = "Check"
    TEXT_EDITOR = "Text Editor"


def _as_flag(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, str):
        return 1 if value.strip().lower() in {"1", "true", "yes"} else 0
    return 1 if value else 0


class DocField(BaseModel):
    """One typed attribute of a DocType."""

    fieldname: str
    label: Optional[str] = None
    fieldtype: FieldType = FieldType.DATA
    options: Optional[str] = None  # Select: newline-delimited choices; Link: target DocType
    reqd: int = 0
    in_list_view: int = 0
    description: Optional[str] = None
    hidden: int = 0
    read_only: int = 0

    @field_validator("reqd", "in_list_view", "hidden", "read_only", mode="before")
    @classmethod
    def coerce_flag(cls, value: Any) -> int:
        return _as_flag(value)

    @field_validator("fieldtype", mode="before")
    @classmethod
    def coerce_fieldtype(cls, value: Any) -> Any:
        if value is None:
            return FieldType.DATA
        try:
            return FieldType(value)
        except ValueError:
            logger.warning(f"Unknown fieldtype {value!r}, treating as Data")
            return FieldType.DATA

    @model_validator(mode="after")
    def default_label(self) -> "DocField":
        if not self.label:
            self.label = self.fieldname
        return self

    @property
    def select_options(self) -> list[str]:
        """Choices of a Select field, blank lines dropped."""
        if self.fieldtype != FieldType.SELECT or not self.options:
            return []
        return [line.strip() for line in self.options.split("\n") if line.strip()]

    @property
    def link_doctype(self) -> Optional[str]:
        if self.fieldtype == FieldType.LINK and self.options:
            return self.options
        return None

    def to_store_properties(self, idx: int) -> dict[str, Any]:
        props = self.model_dump(mode="json", exclude_none=True)
        props["idx"] = idx
        return props


class DocTypeDefinition(BaseModel):
    """A named entity type: its module membership and ordered fields."""

    name: str
    module: list[str] = Field(default_factory=list)
    description: str = ""
    fields: list[DocField] = Field(default_factory=list)

    @field_validator("module", mode="before")
    @classmethod
    def coerce_module(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return list(value)

    def get_field_names(self) -> list[str]:
        return [f.fieldname for f in self.fields]

    def get_field(self, fieldname: str) -> Optional[DocField]:
        for f in self.fields:
            if f.fieldname == fieldname:
                return f
        return None

    def get_required_fields(self) -> list[str]:
        """Fieldnames flagged ``reqd``. Enforcing them is the caller's job."""
        return [f.fieldname for f in self.fields if f.reqd]

    def get_link_fields(self) -> list[DocField]:
        return [f for f in self.fields if f.fieldtype == FieldType.LINK]


class Module(BaseModel):
    """Navigation grouping of DocType names."""

    moduleName: str
    docTypeNames: list[str] = Field(default_factory=list)


# =============================================================================
# DOCUMENT MODELS
# =============================================================================


class Document(BaseModel):
    """
    One persisted instance of any DocType.

    ``data`` holds every stored property except ``name``, including the
    store-maintained ``creation`` / ``modified`` timestamps.
    """

    doctype: str
    name: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_properties(cls, doctype: str, properties: dict[str, Any]) -> "Document":
        props = dict(properties)
        name = props.pop("name", None)
        return cls(doctype=doctype, name=name, data=props)

    def get(self, fieldname: str, default: Any = None) -> Any:
        return self.data.get(fieldname, default)

    def as_dict(self) -> dict[str, Any]:
        """Flat ``{"name": ..., **fields}`` form used on the wire."""
        return {"name": self.name, **self.data}


class DocumentPage(BaseModel):
    """One page of a DocType listing plus the unwindowed total."""

    data: list[Document] = Field(default_factory=list)
    total: int = 0


def to_store_value(value: Any) -> Any:
    """Flatten one value into something Neo4j accepts as a property."""
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    if isinstance(value, (list, tuple)):
        if any(isinstance(item, (dict, list, tuple)) for item in value):
            return json.dumps(list(value), default=str)
        return [to_store_value(item) for item in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def to_store_properties(
    data: dict[str, Any],
    keep_none: bool = False,
    exclude: frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """
    Convert a caller's field map into a Neo4j property map.

    Reserved timestamps and anything in ``exclude`` are dropped. ``None``
    values are dropped unless ``keep_none`` is set; on update an explicit
    ``None`` is how a caller removes a property.
    """
    props = {}
    for key, value in data.items():
        if key in RESERVED_PROPERTIES or key in exclude:
            continue
        if value is None and not keep_none:
            continue
        props[key] = to_store_value(value)
    return props
