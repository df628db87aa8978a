"""Repository for node table operations."""

from typing import Dict, Iterable, List

from sqlalchemy import func

from .base import BaseRepository
from ..exceptions import NodeNotFoundError
from ..models.node import Node


class NodeRepository(BaseRepository[Node]):
    """Data access for the adjacency-list node tree."""

    model_class = Node
    not_found_error = NodeNotFoundError

    def get_children(self, pid: int) -> List[Node]:
        return (
            self.db.query(Node)
            .filter(Node.pid == pid)
            .order_by(Node.sorting, Node.id)
            .all()
        )

    def count_children(self, pid: int) -> int:
        return self.db.query(func.count(Node.id)).filter(Node.pid == pid).scalar() or 0

    def child_counts(self) -> Dict[int, int]:
        """Parent id -> number of direct children, for every parent."""
        rows = self.db.query(Node.pid, func.count(Node.id)).group_by(Node.pid).all()
        return {int(pid or 0): count for pid, count in rows}

    def get_descendant_ids(self, node_id: int) -> List[int]:
        """Ids of every node below *node_id*, breadth first."""
        result: List[int] = []
        frontier = [node_id]
        seen = {node_id}
        while frontier:
            rows = self.db.query(Node.id).filter(Node.pid.in_(frontier)).all()
            frontier = [r[0] for r in rows if r[0] not in seen]
            seen.update(frontier)
            result.extend(frontier)
        return result

    def next_sorting(self, pid: int) -> int:
        current = self.db.query(func.max(Node.sorting)).filter(Node.pid == pid).scalar()
        return (current or 0) + 128

    def add(self, node: Node) -> Node:
        self.db.add(node)
        self.db.flush()
        return node

    def delete_many(self, node_ids: Iterable[int]) -> int:
        ids = list(node_ids)
        if not ids:
            return 0
        return self.db.query(Node).filter(Node.id.in_(ids)).delete(synchronize_session=False)
