from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from psycopg2.extras import Json

from ..models.learner import DEFAULT_FLAG_THRESHOLD, LearnerRecord, TransgressionEvent
from .batch_insert import BatchInsertError, batch_insert

"""Remote learner record store on PostgreSQL.

Learners are kept as JSONB documents keyed by dedup key; every transgression
is also appended to its own log table. Writers ``NOTIFY`` a channel after
each commit and subscribers ``LISTEN`` on it; ``poll()`` turns pending
notifications into one callback per subscriber with the full current
collection.

All psycopg2 failures surface as ``RemoteStoreError`` after a rollback.
"""

__all__ = [
    "CHANGE_CHANNEL",
    "RemoteStoreError",
    "RemoteRecordStore",
]

logger = logging.getLogger(__name__)

CHANGE_CHANNEL = "learners_changed"

SCHEMA_SQL = (
    """
    CREATE TABLE IF NOT EXISTS learners (
        key TEXT PRIMARY KEY,
        record JSONB NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transgressions (
        id BIGSERIAL PRIMARY KEY,
        learner_key TEXT NOT NULL,
        record JSONB NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
)

ChangeCallback = Callable[[dict[str, LearnerRecord]], None]


class RemoteStoreError(Exception):
    """Raised when the remote store cannot be read or written."""


class RemoteRecordStore:
    def __init__(
        self,
        conn: Any,
        flag_threshold: int = DEFAULT_FLAG_THRESHOLD,
        channel: str = CHANGE_CHANNEL,
    ) -> None:
        self._conn = conn
        self.flag_threshold = flag_threshold
        self.channel = channel
        self._subscribers: list[ChangeCallback] = []

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Any]:
        cur = self._conn.cursor()
        try:
            yield cur
            self._conn.commit()
        except Exception as e:
            try:
                self._conn.rollback()
            except Exception:
                logger.debug("rollback after failed %s also failed", action, exc_info=True)
            raise RemoteStoreError(f"{action} failed: {e}") from e
        finally:
            cur.close()

    def _notify(self, cur: Any) -> None:
        cur.execute(f"NOTIFY {self.channel}")

    def ensure_schema(self) -> None:
        with self._transaction("ensure_schema") as cur:
            for stmt in SCHEMA_SQL:
                cur.execute(stmt)

    def load_all(self) -> dict[str, LearnerRecord]:
        with self._transaction("load_all") as cur:
            cur.execute("SELECT key, record FROM learners")
            rows = cur.fetchall()
        return {key: LearnerRecord.from_dict(record or {}, self.flag_threshold) for key, record in rows}

    def save_all(self, records: Mapping[str, LearnerRecord]) -> int:
        """Replace the whole remote collection with ``records``."""
        rows = [(key, Json(r.to_dict())) for key, r in records.items()]
        with self._transaction("save_all") as cur:
            cur.execute("DELETE FROM learners")
            try:
                written = batch_insert(cur, "learners", ["key", "record"], rows)
            except BatchInsertError as e:
                raise RemoteStoreError(f"save_all insert failed: {e}") from e
            self._notify(cur)
        logger.debug("remote save_all learners=%d", written)
        return written

    def update(self, key: str, record: LearnerRecord) -> None:
        """Upsert one learner document."""
        row = (key, Json(record.to_dict()), datetime.now(UTC))
        with self._transaction("update") as cur:
            batch_insert(cur, "learners", ["key", "record", "updated_at"], [row], conflict_column="key")
            self._notify(cur)


    def append(self, key: str, event: TransgressionEvent) -> dict[str, Any]:
        """Log a transgression; returns the stored document with its ``id``."""
        with self._transaction("append") as cur:
            cur.execute(
                "INSERT INTO transgressions (learner_key, record) VALUES (%s, %s) RETURNING id",
                (key, Json(event.to_dict())),
            )
            row = cur.fetchone()
        return {**event.to_dict(), "learnerKey": key, "id": str(row[0]) if row else None}

    def subscribe(self, callback: ChangeCallback) -> None:
        """Deliver the full collection to ``callback`` on every remote change (see ``poll``)."""
        if not self._subscribers:
            with self._transaction("listen") as cur:
                cur.execute(f"LISTEN {self.channel}")
        self._subscribers.append(callback)

    def poll(self) -> bool:
        """Drain pending notifications; returns True when subscribers were called."""
        if not self._subscribers:
            return False
        try:
            self._conn.poll()
        except Exception as e:
            raise RemoteStoreError(f"poll failed: {e}") from e
        if not self._conn.notifies:
            return False
        self._conn.notifies.clear()
        current = self.load_all()
        for cb in list(self._subscribers):
            cb(dict(current))
        return True

    def close(self) -> None:
        try:
            self._conn.close()
        except Exception:
            logger.debug("closing remote store connection failed", exc_info=True)
