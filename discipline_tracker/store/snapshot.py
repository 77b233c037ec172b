from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..models.learner import utc_now_iso
from .learner_store import LearnerStore

"""Local snapshot store.

A small key-value text store (one ``<slot>.json`` file per key) used when the
remote store is unreachable. Two independent slots are kept:

* ``disciplineSystemData``: primary snapshot, written on every local save;
* ``disciplineSystemBackup``: backup copy, flagged with ``isBackup``.

Payload: ``{"entries": [[key, record], ...], "timestamp": "<iso>"}``.
Reads and writes are best effort: failures are logged, never raised.
"""

__all__ = [
    "PRIMARY_SLOT",
    "BACKUP_SLOT",
    "LocalSnapshotStore",
]

logger = logging.getLogger(__name__)

PRIMARY_SLOT = "disciplineSystemData"
BACKUP_SLOT = "disciplineSystemBackup"


class LocalSnapshotStore:
    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path(self, slot: str) -> Path:
        return self.directory / f"{slot}.json"

    # raw key-value access
    def get_item(self, slot: str) -> str | None:
        path = self._path(slot)
        try:
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("snapshot read failed slot=%s: %s", slot, e)
            return None

    def set_item(self, slot: str, value: str) -> bool:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = self._path(slot).with_suffix(".tmp")
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(self._path(slot))
            return True
        except OSError as e:
            logger.error("snapshot write failed slot=%s: %s", slot, e)
            return False

    def remove_item(self, slot: str) -> None:
        try:
            self._path(slot).unlink(missing_ok=True)
        except OSError as e:
            logger.error("snapshot remove failed slot=%s: %s", slot, e)

    # learner snapshots
    def write_snapshot(self, slot: str, store: LearnerStore, *, is_backup: bool = False) -> bool:
        payload: dict[str, Any] = {"entries": store.to_entries(), "timestamp": utc_now_iso()}
        if is_backup:
            payload["isBackup"] = True
        return self.set_item(slot, json.dumps(payload, ensure_ascii=False))

    def read_snapshot(self, slot: str, flag_threshold: int) -> LearnerStore | None:
        """Load a slot; None when it is absent or unreadable."""
        raw = self.get_item(slot)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            return LearnerStore.from_entries(data.get("entries") or [], flag_threshold=flag_threshold)
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            logger.error("snapshot slot=%s is corrupt: %s", slot, e)
            return None

    def save(self, store: LearnerStore) -> None:
        """Write both the primary and the backup slot."""
        self.write_snapshot(PRIMARY_SLOT, store)
        self.write_snapshot(BACKUP_SLOT, store, is_backup=True)

    def load(self, flag_threshold: int) -> LearnerStore | None:
        """Primary slot first, then the backup slot."""
        for slot in (PRIMARY_SLOT, BACKUP_SLOT):
            loaded = self.read_snapshot(slot, flag_threshold)
            if loaded is not None:
                logger.info("loaded %d learners from local snapshot slot=%s", len(loaded), slot)
                return loaded
        return None

    def clear(self) -> None:
        self.remove_item(PRIMARY_SLOT)
        self.remove_item(BACKUP_SLOT)
