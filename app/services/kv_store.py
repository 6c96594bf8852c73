import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from app.models.kv_entry import KVEntry
from app.models.user import User
from app.schemas.platform import KVItem

logger = logging.getLogger(__name__)


def pattern_to_like(pattern: str) -> str:
    """Translate a ``*`` glob (``resume:*``) into a SQL LIKE expression."""
    escaped = pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "%")


class KeyValueStore:
    """Per-user string key/value storage backed by the ``kv_entries`` table."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    def _query(self):
        return self.db.query(KVEntry).filter(KVEntry.user_id == self.user.id)

    def get(self, key: str) -> Optional[str]:
        entry = self._query().filter(KVEntry.key == key).first()
        return entry.value if entry else None

    def set(self, key: str, value: str) -> bool:
        entry = self._query().filter(KVEntry.key == key).first()
        if entry:
            entry.value = value
        else:
            self.db.add(KVEntry(user_id=self.user.id, key=key, value=value))
        self._commit()
        return True

    def delete(self, key: str) -> bool:
        deleted = self._query().filter(KVEntry.key == key).delete(synchronize_session=False)
        self._commit()
        return deleted > 0

    def list(self, pattern: str = "*", return_values: bool = False) -> Union[List[str], List[KVItem]]:
        entries = (
            self._query()
            .filter(KVEntry.key.like(pattern_to_like(pattern), escape="\\"))
            .order_by(KVEntry.key)
            .all()
        )
        if return_values:
            return [KVItem(key=e.key, value=e.value) for e in entries]
        return [e.key for e in entries]

    def flush(self) -> bool:
        count = self._query().delete(synchronize_session=False)
        self._commit()
        logger.info(f"Flushed {count} key-value entries for user {self.user.uuid}")
        return True

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
