"""Key-value store adapter over SQLAlchemy.

Provides get/set/delete of JSON records by string key plus set-membership
operations for index collections. Backend connectivity failures surface as
`StoreUnavailableError`; nothing is retried here.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, Optional

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from tasktimer.database.models import KVRecordDB, KVSetMemberDB
from tasktimer.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)


class SqlKeyValueStore:
    """Key-value store backed by the `kv_records` and `kv_set_members` tables."""

    def __init__(self, db: Session):
        self.db = db
        self._batch_depth = 0

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except _UNAVAILABLE_ERRORS as e:
            self.db.rollback()
            logger.error(f"Store unavailable during {action}: {type(e).__name__}: {str(e)}")
            raise StoreUnavailableError(f"Store unavailable during {action}") from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed {action}: {type(e).__name__}: {str(e)}")
            raise

    def _finish_write(self) -> None:
        # Flush so reads inside a batch see pending writes; commit outside one.
        self.db.flush()
        if self._batch_depth == 0:
            self.db.commit()

    @contextmanager
    def batch(self) -> Iterator["SqlKeyValueStore"]:
        """Group writes into a single commit; roll everything back on error."""
        self._batch_depth += 1
        try:
            yield self
        except Exception:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self.db.rollback()
            raise
        self._batch_depth -= 1
        if self._batch_depth == 0:
            with self._guard("batch commit"):
                self.db.commit()

    def get(self, key: str) -> Optional[dict]:
        with self._guard(f"get {key}"):
            row = self.db.get(KVRecordDB, key)
            return dict(row.value) if row is not None else None

    def set(self, key: str, record: Mapping) -> None:
        with self._guard(f"set {key}"):
            row = self.db.get(KVRecordDB, key)
            if row is None:
                self.db.add(KVRecordDB(key=key, value=dict(record)))
            else:
                # Assign a fresh dict so the JSON column change is detected.
                row.value = dict(record)
            self._finish_write()

    def set_many(self, records: Mapping[str, Mapping]) -> None:
        """Write several records as one transaction."""
        with self.batch():
            for key, record in records.items():
                self.set(key, record)

    def delete(self, key: str) -> None:
        with self._guard(f"delete {key}"):
            self.db.query(KVRecordDB).filter(KVRecordDB.key == key).delete(synchronize_session="fetch")
            self._finish_write()

    def add_to_set(self, index_key: str, member: str) -> None:
        with self._guard(f"add {member} to {index_key}"):
            exists = self.db.query(KVSetMemberDB.id).filter(
                KVSetMemberDB.set_key == index_key,
                KVSetMemberDB.member == member,
            ).first()
            if exists is None:
                self.db.add(KVSetMemberDB(set_key=index_key, member=member))
            self._finish_write()

    def remove_from_set(self, index_key: str, member: str) -> None:
        with self._guard(f"remove {member} from {index_key}"):
            self.db.query(KVSetMemberDB).filter(
                KVSetMemberDB.set_key == index_key,
                KVSetMemberDB.member == member,
            ).delete(synchronize_session="fetch")
            self._finish_write()

    def list_set(self, index_key: str) -> List[str]:
        with self._guard(f"list {index_key}"):
            rows = self.db.query(KVSetMemberDB.member).filter(
                KVSetMemberDB.set_key == index_key
            ).order_by(KVSetMemberDB.id).all()
            return [row[0] for row in rows]

    def get_many(self, keys: List[str]) -> Dict[str, dict]:
        """Fetch several records; absent keys are omitted."""
        if not keys:
            return {}
        with self._guard(f"get {len(keys)} keys"):
            rows = self.db.query(KVRecordDB).filter(KVRecordDB.key.in_(keys)).all()
            return {row.key: dict(row.value) for row in rows}
