"""API route modules."""

from .docs import router as docs_router
from .doctypes import router as doctypes_router
from .health import router as health_router
from .modules import router as modules_router

__all__ = [
    "docs_router",
    "doctypes_router",
    "health_router",
    "modules_router",
]
