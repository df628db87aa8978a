"""Data access repositories."""

from .base import BaseRepository
from .node_repository import NodeRepository
from .user_repository import UserRepository
from .session_repository import SessionRepository

__all__ = [
    "BaseRepository",
    "NodeRepository",
    "UserRepository",
    "SessionRepository",
]
