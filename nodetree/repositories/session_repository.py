"""Repository for session bag entries."""

import json
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models.session_entry import SessionEntry


class SessionRepository:
    """Key-value rows scoped by session id and bag name. Values are JSON."""

    def __init__(self, db: Session):
        self.db = db

    def _entry(self, session_id: str, bag: str, key: str) -> Optional[SessionEntry]:
        return (
            self.db.query(SessionEntry)
            .filter(
                SessionEntry.session_id == session_id,
                SessionEntry.bag == bag,
                SessionEntry.key == key,
            )
            .first()
        )

    def get(self, session_id: str, bag: str, key: str) -> Any:
        entry = self._entry(session_id, bag, key)
        if entry is None or entry.value is None:
            return None
        return json.loads(entry.value)

    def set(self, session_id: str, bag: str, key: str, value: Any) -> None:
        entry = self._entry(session_id, bag, key)
        encoded = json.dumps(value)
        if entry is None:
            self.db.add(SessionEntry(session_id=session_id, bag=bag, key=key, value=encoded))
        else:
            entry.value = encoded
        self.db.commit()
