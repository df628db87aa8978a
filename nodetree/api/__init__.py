"""API routes."""

from .nodes import router as nodes_router
from .navigation import router as navigation_router
from .picker import router as picker_router

__all__ = [
    "nodes_router",
    "navigation_router",
    "picker_router",
]
