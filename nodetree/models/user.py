"""User and NodeMount models.

A user's capability flags (create, edit, delete, root, content) live on the
user row. NodeMounts list the node ids whose subtrees the user may browse.
Admins ignore both.
"""

from typing import List

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """User account.

    Roles:
        admin -- unrestricted, all capabilities, no mounts needed
        user  -- limited to ``node_permissions`` inside ``mounts``
    """

    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True)
    display_name = Column(String(255), nullable=False, default="Default User")
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)

    # Comma-separated capability flags, e.g. "create,edit,delete"
    node_permissions = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    mounts = relationship(
        "NodeMount",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def permission_list(self) -> List[str]:
        if not self.node_permissions:
            return []
        return [p.strip() for p in self.node_permissions.split(",") if p.strip()]


class NodeMount(Base):
    """Grant of a node subtree to a user.

    The mounted node and all of its descendants are visible to the user.
    """

    __tablename__ = "node_mounts"

    user_id = Column(
        String(50),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    node_id = Column(Integer, primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="mounts")
