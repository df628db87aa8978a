"""Node picker reload: re-renders a picker field's selection for a record.

Only the configured tree table is accepted. The field is checked against
its declared columns, and the record must exist unless the request edits
many records at once.
Unknown fields or records are logged at ERROR and rejected as bad requests.
"""

import logging
from typing import List

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import Base
from ..exceptions import BadRequestError
from ..repositories.node_repository import NodeRepository
from ..schemas.picker import PickerReloadRequest, PickerReloadResponse, PickerSelection
from .navigation_service import node_icon
from .permission_service import Action, PermissionChecker
from .tree_walk import walk_ancestors

logger = logging.getLogger(__name__)


def parse_picker_value(value: str) -> List[int]:
    """Split a tab-separated id list, ignoring blanks and non-numeric parts."""
    ids: List[int] = []
    for part in (value or "").split("\t"):
        part = part.strip()
        if part.isdigit() and int(part) not in ids:
            ids.append(int(part))
    return ids


class PickerService:
    def __init__(self, db: Session, checker: PermissionChecker):
        self.db = db
        self.checker = checker
        self.nodes = NodeRepository(db)

    def reload(self, request: PickerReloadRequest) -> PickerReloadResponse:
        table = None
        if request.table == settings.tree_table:
            table = Base.metadata.tables.get(request.table)
        if table is None or request.field not in table.columns:
            logger.error(
                'Field "%s" does not exist in table "%s"', request.field, request.table,
                extra={"field": request.field, "table": request.table},
            )
            raise BadRequestError(details={"field": request.field, "table": request.table})

        if (
            request.act != Action.OVERRIDE_ALL.value
            and request.id > 0
            and inspect(self.db.get_bind()).has_table(request.table)
        ):
            pk = list(table.primary_key.columns)
            row = None
            if len(pk) == 1:
                row = self.db.execute(select(table).where(pk[0] == request.id)).first()
            if row is None:
                logger.error(
                    'A record with the ID "%s" does not exist in table "%s"', request.id, request.table,
                    extra={"record_id": request.id, "table": request.table},
                )
                raise BadRequestError(details={"id": request.id, "table": request.table})

        value = parse_picker_value(request.value)
        return PickerReloadResponse(
            table=request.table,
            field=request.field,
            record_id=request.id,
            value=value,
            selected=self._selection(value),
        )

    def _selection(self, ids: List[int]) -> List[PickerSelection]:
        selected: List[PickerSelection] = []
        for node_id in ids:
            node = self.nodes.get_by_id_optional(node_id)
            if node is None or not self.checker.is_allowed(node_id, Action.SHOW):
                continue
            walk = walk_ancestors(node_id, self.nodes.get_by_id_optional)
            selected.append(PickerSelection(
                id=node.id,
                label=node.name,
                icon=node_icon(node.type),
                path=[n.name for n in reversed(walk.nodes)],
            ))
        return selected
