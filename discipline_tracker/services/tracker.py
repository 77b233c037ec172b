from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path

from ..db.remote_store import RemoteRecordStore, RemoteStoreError
from ..models.config_models import TrackerConfig
from ..models.import_result import ImportResult
from ..models.learner import LearnerRecord
from ..store.learner_store import LearnerStore
from ..store.snapshot import LocalSnapshotStore
from .demerits import DemeritOutcome, record_demerit
from .orchestrator import import_files
from .queries import LearnerOption, dropdown_options, filter_records, search_learners, status_class

"""Tracker session.

Owns the learner store for one running session and keeps it persisted:

* startup loads the remote collection, or the local snapshot when the remote
  store is unavailable;
* writes go to the remote store; on failure the session switches to offline
  mode and writes both local snapshot slots instead;
* remote change notifications replace the whole collection (last writer
  wins), except while a local write is in flight, so the echo of our own
  write cannot overwrite newer local state.
"""

__all__ = [
    "CLEAR_WARNING",
    "CLEAR_FINAL_CONFIRMATION",
    "DisciplineTracker",
]

logger = logging.getLogger(__name__)

CLEAR_WARNING = (
    "CLEAR DATABASE WARNING\n\n"
    "This will permanently delete:\n"
    "  - All learner records\n"
    "  - All transgression history\n"
    "  - All demerit points\n\n"
    "This action CANNOT be undone!\n\n"
    "Are you absolutely sure you want to continue?"
)
CLEAR_FINAL_CONFIRMATION = (
    "FINAL CONFIRMATION\n\n"
    "Please confirm: Do you want to DELETE ALL DATA?\n"
    "Student names and grades, all discipline records and flagged student "
    "information will be lost."
)


class DisciplineTracker:
    def __init__(
        self,
        config: TrackerConfig,
        snapshots: LocalSnapshotStore,
        remote: RemoteRecordStore | None = None,
        store: LearnerStore | None = None,
    ) -> None:
        self.config = config
        self.store = store if store is not None else LearnerStore(flag_threshold=config.flag_threshold)
        self.snapshots = snapshots
        self.remote = remote
        self.online = remote is not None
        self._write_in_flight = False

    # lifecycle
    def start(self) -> str:
        """Load the initial collection; returns its source: "remote", "local" or "empty"."""
        if self.remote is not None:
            try:
                self.store.replace_all(self.remote.load_all())
                self.remote.subscribe(self.apply_remote_snapshot)
                logger.info("loaded %d learners from remote store", len(self.store))
                return "remote"
            except RemoteStoreError as e:
                logger.error("Cloud database connection failed. Using offline mode: %s", e)
                self._go_offline()

        loaded = self.snapshots.load(self.config.flag_threshold)
        if loaded is not None:
            self.store.replace_all(dict(loaded.items()))
            return "local"
        return "empty"

    def _go_offline(self) -> None:
        if self.online:
            logger.warning("remote store unavailable; continuing offline with local snapshots")
        self.online = False

    @contextmanager
    def _local_write(self) -> Iterator[None]:
        self._write_in_flight = True
        try:
            yield
        finally:
            self._write_in_flight = False

    @property
    def write_in_flight(self) -> bool:
        return self._write_in_flight

    def apply_remote_snapshot(self, records: Mapping[str, LearnerRecord]) -> bool:
        """Replace the store with a remote snapshot unless a local write is in flight."""
        if self._write_in_flight:
            logger.debug("remote snapshot ignored: local write in flight")
            return False
        self.store.replace_all(records)
        logger.debug("applied remote snapshot learners=%d", len(self.store))
        return True

    def poll_remote(self) -> bool:
        if self.remote is None or not self.online:
            return False
        try:
            return self.remote.poll()
        except RemoteStoreError as e:
            logger.error("remote change polling failed: %s", e)
            self._go_offline()
            return False

    # persistence
    def save_local(self) -> None:
        self.snapshots.save(self.store)

    def persist_all(self) -> None:
        if self.remote is not None and self.online:
            try:
                with self._local_write():
                    self.remote.save_all(dict(self.store.items()))
                return
            except RemoteStoreError as e:
                logger.error("Error saving to remote store: %s", e)
                self._go_offline()
        self.save_local()

    def _persist_demerit(self, outcome: DemeritOutcome) -> None:
        if self.remote is not None and self.online:
            try:
                with self._local_write():
                    self.remote.update(outcome.learner_key, outcome.learner)
                    self.remote.append(outcome.learner_key, outcome.event)
                return
            except RemoteStoreError as e:
                logger.error("Failed to save transgression remotely: %s", e)
                self._go_offline()
        self.save_local()

    # operations
    def import_files(self, paths: Sequence[Path]) -> ImportResult:
        result = import_files(paths, self.store, scan_rows=self.config.header_scan_rows)
        if result.total_new_learners > 0:
            self.persist_all()
        return result

    def add_transgression(
        self, learner_key: str | None, category_key: str | None, description: str | None = None
    ) -> DemeritOutcome:
        """Record a demerit and persist it.

        Raises:
            DemeritValidationError: rejected before any state change
        """
        outcome = record_demerit(
            self.store, learner_key, category_key, description, categories=self.config.categories
        )
        self._persist_demerit(outcome)
        return outcome

    def clear_all(self, confirm: Callable[[str], bool]) -> bool:
        """Delete every learner everywhere after two sequential confirmations.

        Returns:
            True when the data was cleared, False when either prompt was declined
        """
        if not confirm(CLEAR_WARNING):
            return False
        if not confirm(CLEAR_FINAL_CONFIRMATION):
            return False

        self.store.clear()
        if self.remote is not None and self.online:
            try:
                with self._local_write():
                    self.remote.save_all({})
            except RemoteStoreError as e:
                logger.error("Error clearing remote store: %s", e)
                self._go_offline()
        self.snapshots.clear()
        logger.info("database cleared")
        return True

    # views
    def search(self, term: str) -> list[LearnerOption]:
        return search_learners(self.store, term)

    def dropdown(self) -> list[LearnerOption]:
        return dropdown_options(self.store)

    def records(self, search: str = "", status: str = "all") -> list[tuple[str, LearnerRecord]]:
        return filter_records(self.store, search, status)

    def status_of(self, learner: LearnerRecord) -> str:
        return status_class(learner.total_points, self.config.flag_threshold, self.config.warning_ratio)
