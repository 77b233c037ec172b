from __future__ import annotations

from dataclasses import dataclass

from ..models.learner import LearnerRecord
from ..store.learner_store import LearnerStore

"""Read-only views over the learner store for the presentation layer."""

__all__ = [
    "STATUS_FILTERS",
    "SEARCH_LIMIT",
    "LearnerOption",
    "learner_label",
    "status_class",
    "search_learners",
    "dropdown_options",
    "filter_records",
]

STATUS_FILTERS = ("all", "flagged", "normal")
SEARCH_LIMIT = 10


@dataclass(frozen=True)
class LearnerOption:
    key: str
    label: str


def learner_label(learner: LearnerRecord) -> str:
    if learner.grade:
        return f"{learner.name} (Grade {learner.grade})"
    return learner.name


def status_class(points: int, flag_threshold: int, warning_ratio: float = 0.7) -> str:
    """Display status: "flagged", "warning" or "normal"."""
    if points >= flag_threshold:
        return "flagged"
    if points >= flag_threshold * warning_ratio:
        return "warning"
    return "normal"


def search_learners(store: LearnerStore, term: str, limit: int = SEARCH_LIMIT) -> list[LearnerOption]:
    """Learners whose name or grade contains ``term`` (case-insensitive), in store order."""
    needle = term.lower()
    hits: list[LearnerOption] = []
    for key, learner in store.items():
        if needle in learner.name.lower() or needle in learner.grade.lower():
            hits.append(LearnerOption(key, learner_label(learner)))
            if len(hits) >= limit:
                break
    return hits


def dropdown_options(store: LearnerStore) -> list[LearnerOption]:
    """All learners sorted by name."""
    ordered = sorted(store.items(), key=lambda kv: kv[1].name.casefold())
    return [LearnerOption(k, learner_label(r)) for k, r in ordered]


def filter_records(
    store: LearnerStore, search: str = "", status: str = "all"
) -> list[tuple[str, LearnerRecord]]:
    """Learners with at least one demerit, filtered and sorted by points (highest first).

    Raises:
        ValueError: unknown status filter
    """
    if status not in STATUS_FILTERS:
        raise ValueError(f"status must be one of {STATUS_FILTERS}, got {status!r}")
    needle = search.lower()
    rows = [
        (key, learner)
        for key, learner in store.items()
        if learner.demerits
        and needle in learner.name.lower()
        and (
            status == "all"
            or (status == "flagged" and learner.flagged)
            or (status == "normal" and not learner.flagged)
        )
    ]
    rows.sort(key=lambda kv: kv[1].total_points, reverse=True)
    return rows
