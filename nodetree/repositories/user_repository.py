"""Repository for users and their node mounts."""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..models.user import User, NodeMount


class UserRepository:
    """Data access for users, capability flags and node mounts."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.user_id == user_id).first()

    def create(
        self,
        user_id: str,
        role: str = "user",
        permissions: Iterable[str] = (),
        mounts: Iterable[int] = (),
        display_name: Optional[str] = None,
    ) -> User:
        user = User(
            user_id=user_id,
            role=role,
            display_name=display_name or user_id,
            node_permissions=",".join(permissions),
        )
        self.db.add(user)
        self.db.flush()
        for node_id in mounts:
            self.db.add(NodeMount(user_id=user_id, node_id=int(node_id)))
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_mount_ids(self, user_id: str) -> List[int]:
        rows = (
            self.db.query(NodeMount.node_id)
            .filter(NodeMount.user_id == user_id)
            .order_by(NodeMount.node_id)
            .all()
        )
        return [r[0] for r in rows]
