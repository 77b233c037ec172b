from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from discipline_tracker.db.remote_store import RemoteRecordStore, RemoteStoreError
from discipline_tracker.models.config_models import TrackerConfig
from discipline_tracker.models.learner import LearnerRecord
from discipline_tracker.services.demerits import DemeritValidationError
from discipline_tracker.services.tracker import (
    CLEAR_FINAL_CONFIRMATION,
    CLEAR_WARNING,
    DisciplineTracker,
)
from discipline_tracker.store.learner_store import LearnerStore
from discipline_tracker.store.snapshot import BACKUP_SLOT, PRIMARY_SLOT, LocalSnapshotStore


@pytest.fixture()
def snapshots(tmp_path) -> LocalSnapshotStore:
    return LocalSnapshotStore(tmp_path / "snapshots")


@pytest.fixture()
def remote() -> MagicMock:
    r = MagicMock(spec=RemoteRecordStore)
    r.load_all.return_value = {"thando_7b": LearnerRecord(name="Thando", grade="7B")}
    return r


def test_start_from_remote(snapshots, remote):
    tracker = DisciplineTracker(TrackerConfig(), snapshots, remote=remote)
    assert tracker.start() == "remote"
    assert list(tracker.store) == ["thando_7b"]
    remote.subscribe.assert_called_once_with(tracker.apply_remote_snapshot)
    assert tracker.online is True


def test_start_falls_back_to_local_snapshot(snapshots, remote, store_with_learner):
    store, key = store_with_learner
    snapshots.save(store)
    remote.load_all.side_effect = RemoteStoreError("load_all failed: timeout")
    tracker = DisciplineTracker(TrackerConfig(), snapshots, remote=remote)
    assert tracker.start() == "local"
    assert tracker.online is False
    assert key in tracker.store


def test_start_empty(snapshots):
    tracker = DisciplineTracker(TrackerConfig(), snapshots)
    assert tracker.start() == "empty"
    assert tracker.online is False
    assert len(tracker.store) == 0


def test_demerit_written_remotely(snapshots, remote):
    tracker = DisciplineTracker(TrackerConfig(), snapshots, remote=remote)
    tracker.start()
    outcome = tracker.add_transgression("thando_7b", "late")
    remote.update.assert_called_once_with("thando_7b", outcome.learner)
    remote.append.assert_called_once_with("thando_7b", outcome.event)
    assert snapshots.get_item(PRIMARY_SLOT) is None


def test_remote_failure_switches_to_local_snapshots(snapshots, remote):
    remote.update.side_effect = RemoteStoreError("update failed")
    tracker = DisciplineTracker(TrackerConfig(), snapshots, remote=remote)
    tracker.start()
    tracker.add_transgression("thando_7b", "behavior")
    assert tracker.online is False
    assert snapshots.get_item(PRIMARY_SLOT) is not None
    assert snapshots.get_item(BACKUP_SLOT) is not None

    tracker.add_transgression("thando_7b", "late")
    assert remote.update.call_count == 1
    reloaded = snapshots.load(flag_threshold=50)
    assert reloaded.get("thando_7b").total_points == 25


def test_validation_error_persists_nothing(snapshots, remote):
    tracker = DisciplineTracker(TrackerConfig(), snapshots, remote=remote)
    tracker.start()
    with pytest.raises(DemeritValidationError):
        tracker.add_transgression("thando_7b", "custom", "")
    remote.update.assert_not_called()
    assert tracker.store.get("thando_7b").demerits == []


def test_remote_snapshot_ignored_during_local_write(snapshots, remote):
    tracker = DisciplineTracker(TrackerConfig(), snapshots, remote=remote)
    tracker.start()
    applied = []

    def echo(records):
        assert tracker.write_in_flight is True
        applied.append(tracker.apply_remote_snapshot({}))

    remote.save_all.side_effect = echo
    tracker.persist_all()
    assert applied == [False]
    assert list(tracker.store) == ["thando_7b"]
    assert tracker.write_in_flight is False

    assert tracker.apply_remote_snapshot({"a_": LearnerRecord(name="A", grade="")}) is True
    assert list(tracker.store) == ["a_"]


def test_poll_failure_goes_offline(snapshots, remote):
    remote.poll.side_effect = RemoteStoreError("poll failed")
    tracker = DisciplineTracker(TrackerConfig(), snapshots, remote=remote)
    tracker.start()
    assert tracker.poll_remote() is False
    assert tracker.online is False
    assert tracker.poll_remote() is False
    assert remote.poll.call_count == 1


def test_import_persists_only_when_learners_added(snapshots, tmp_path, make_excel, class_list_rows, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = make_excel(tmp_path, "7A.xlsx", class_list_rows)
    tracker = DisciplineTracker(TrackerConfig(), snapshots)
    tracker.start()
    assert tracker.import_files([path]).total_new_learners == 2
    assert snapshots.load(flag_threshold=50) is not None

    snapshots.clear()
    assert tracker.import_files([path]).total_new_learners == 0
    assert snapshots.get_item(PRIMARY_SLOT) is None


def test_clear_requires_two_confirmations(snapshots, remote):
    tracker = DisciplineTracker(TrackerConfig(), snapshots, remote=remote)
    tracker.start()
    prompts = []

    def decline_second(message):
        prompts.append(message)
        return len(prompts) == 1

    assert tracker.clear_all(decline_second) is False
    assert prompts == [CLEAR_WARNING, CLEAR_FINAL_CONFIRMATION]
    assert len(tracker.store) == 1
    remote.save_all.assert_not_called()

    first_only = MagicMock(return_value=False)
    assert tracker.clear_all(first_only) is False
    first_only.assert_called_once_with(CLEAR_WARNING)


def test_clear_everywhere(snapshots, remote):
    tracker = DisciplineTracker(TrackerConfig(), snapshots, remote=remote)
    tracker.start()
    tracker.save_local()
    assert tracker.clear_all(lambda _msg: True) is True
    assert len(tracker.store) == 0
    remote.save_all.assert_called_once_with({})
    assert snapshots.load(flag_threshold=50) is None


def test_views_use_config(snapshots):
    store = LearnerStore(flag_threshold=20)
    store.add_if_absent("thando_7b", LearnerRecord(name="Thando", grade="7B"))
    tracker = DisciplineTracker(TrackerConfig(flag_threshold=20), snapshots, store=store)
    tracker.add_transgression("thando_7b", "behavior")
    learner = tracker.store.get("thando_7b")
    assert tracker.status_of(learner) == "warning"
    assert [o.label for o in tracker.dropdown()] == ["Thando (Grade 7B)"]
    assert [k for k, _ in tracker.records(status="normal")] == ["thando_7b"]
    assert tracker.search("7b")[0].key == "thando_7b"
