"""
Error taxonomy shared by the storage engine and the HTTP layer.

Absence is reported by return values (None / False) from the core
operations; these exceptions cover failures and the cases the HTTP layer
needs to tell apart.
"""

from typing import Optional


class DocGraphError(Exception):
    """Base class for all docgraph errors."""


class NotFoundError(DocGraphError):
    """A DocType or Document does not exist."""


class DocTypeNotFoundError(NotFoundError):
    def __init__(self, doctype: str):
        self.doctype = doctype
        super().__init__(f"DocType not found: {doctype!r}")


class DocumentNotFoundError(NotFoundError):
    def __init__(self, doctype: str, docname: str):
        self.doctype = doctype
        self.docname = docname
        super().__init__(f"{doctype} {docname!r} not found")


class ConnectionFailure(DocGraphError):
    """The store is unreachable or no pooled connection could be obtained."""


class ConnectionTimeout(ConnectionFailure):
    """Pool exhausted: no connection became free within the acquisition timeout."""


class QueryFailure(DocGraphError):
    """The store rejected a statement (syntax, constraint, type error)."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code
        super().__init__(message)


class DocumentExistsError(QueryFailure):
    def __init__(self, doctype: str, docname: str):
        self.doctype = doctype
        self.docname = docname
        super().__init__(f"{doctype} {docname!r} already exists")


class InvalidLabelError(DocGraphError, ValueError):
    """A type name that cannot become a graph label (empty or blank)."""
