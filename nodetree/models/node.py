"""Node model: one entry of the category tree (adjacency list on ``pid``)."""

from enum import Enum
from typing import List

from sqlalchemy import Column, Index, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from ..database import Base


class NodeType(str, Enum):
    ROOT = "root"
    FOLDER = "folder"
    CONTENT = "content"


class Node(Base):
    """A tree node. ``pid=0`` attaches the node to the implicit synthetic root.

    ``content`` nodes are leaves. ``root`` nodes terminate breadcrumb walks.
    """

    __tablename__ = "nodes"
    __table_args__ = (
        Index("ix_nodes_pid", "pid"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    pid = Column(Integer, nullable=False, default=0)
    sorting = Column(Integer, nullable=False, default=0)
    type = Column(String(20), nullable=False, default=NodeType.FOLDER.value)
    name = Column(String(255), nullable=False)

    # Comma-separated language codes, e.g. "en,de"
    languages = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def language_list(self) -> List[str]:
        if not self.languages:
            return []
        return [code.strip() for code in self.languages.split(",") if code.strip()]
