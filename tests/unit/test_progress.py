from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

from discipline_tracker.services import progress


def test_counters_without_tty(monkeypatch):
    monkeypatch.setattr(progress, "is_tty_enabled", lambda: False)
    fake_tqdm = MagicMock()
    monkeypatch.setattr(progress, "tqdm", fake_tqdm)
    with progress.ImportProgress(3) as p:
        p.begin(Path("7A.xlsx"))
        p.done(True, 30)
        p.begin(Path("7B.xlsx"))
        p.done(False, 12)
        p.begin(Path("7C.xlsx"))
        p.done(True, 0)
    fake_tqdm.assert_not_called()
    assert p.bar is None
    assert (p.position, p.succeeded, p.failed, p.new_learners) == (3, 2, 1, 30)


def test_bar_updates_on_tty(monkeypatch):
    monkeypatch.setattr(progress, "is_tty_enabled", lambda: True)
    bar = MagicMock()
    monkeypatch.setattr(progress, "tqdm", MagicMock(return_value=bar))
    p = progress.ImportProgress(2)
    p.begin(Path("7A.xlsx"))
    bar.set_description.assert_called_with("Importing class lists 1/2 (7A.xlsx)")
    p.done(True, 4)
    bar.update.assert_called_once_with(1)
    bar.set_postfix.assert_called_with(ok=1, failed=0, learners=4)
    p.close()
    bar.close.assert_called_once()
    assert p.bar is None
