"""Database models."""

from .node import Node, NodeType
from .user import User, NodeMount
from .session_entry import SessionEntry

__all__ = [
    "Node", "NodeType",
    "User", "NodeMount",
    "SessionEntry",
]
