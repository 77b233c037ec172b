from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

"""Learner record and transgression event models.

A LearnerRecord owns its demerit history. ``total_points`` and ``flagged`` are
derived from ``demerits`` and are only ever changed through ``add_event`` (or
recomputed on load), so they cannot drift from the history.
"""

__all__ = [
    "Category",
    "DEFAULT_CATEGORIES",
    "CUSTOM_CATEGORY",
    "CATEGORY_ALIASES",
    "DEFAULT_FLAG_THRESHOLD",
    "TransgressionEvent",
    "LearnerRecord",
    "dedup_key",
    "utc_now_iso",
]

DEFAULT_FLAG_THRESHOLD = 50
CUSTOM_CATEGORY = "custom"
CATEGORY_ALIASES = {"other": CUSTOM_CATEGORY}


@dataclass(frozen=True)
class Category:
    """A transgression category with a fixed point value."""
    key: str
    name: str  # label stored as the event description
    points: int


DEFAULT_CATEGORIES: dict[str, Category] = {
    "homework": Category("homework", "Homework not done", 10),
    "late": Category("late", "Late coming", 10),
    "books": Category("books", "Books not at school", 10),
    "behavior": Category("behavior", "Behavior", 15),
    CUSTOM_CATEGORY: Category(CUSTOM_CATEGORY, "Other", 10),
}


def utc_now_iso() -> str:
    """ISO8601 UTC timestamp with 'Z' suffix."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def dedup_key(name: str, grade: str) -> str:
    """Key identifying a learner across uploads: ``lower(name) + "_" + lower(grade)``."""
    return f"{name.lower()}_{grade.lower()}"


@dataclass(frozen=True)
class TransgressionEvent:
    type: str  # category key
    description: str  # category label, or free text for the custom category
    points: int
    date: str  # ISO8601 UTC

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "points": self.points,
            "date": self.date,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> TransgressionEvent:
        return TransgressionEvent(
            type=str(data.get("type", "")),
            description=str(data.get("description", "")),
            points=int(data.get("points", 0)),
            date=str(data.get("date", "")),
        )


@dataclass
class LearnerRecord:
    """A learner and their demerit history.

    Attributes:
        name: Display name, "Surname, FirstName" or a single free-text name
        grade: Grade token such as "7A" (may be empty)
        demerits: Events in chronological (insertion) order, append-only
        total_points: Sum of ``points`` over ``demerits``
        flagged: ``total_points >= flag_threshold``
        last_updated: ISO8601 UTC timestamp of the latest mutation
    """
    name: str
    grade: str
    demerits: list[TransgressionEvent] = field(default_factory=list)
    total_points: int = 0
    flagged: bool = False
    last_updated: str = field(default_factory=utc_now_iso)

    def add_event(self, event: TransgressionEvent, flag_threshold: int) -> bool:
        """Append an event and refresh the derived fields.

        Returns:
            True when this event moved the learner from not flagged to flagged
        """
        was_flagged = self.flagged
        self.demerits.append(event)
        self.total_points += event.points
        self.flagged = self.total_points >= flag_threshold
        self.last_updated = event.date
        return self.flagged and not was_flagged

    def to_dict(self) -> dict[str, Any]:
        # stored document field names
        return {
            "name": self.name,
            "grade": self.grade,
            "demerits": [d.to_dict() for d in self.demerits],
            "totalPoints": self.total_points,
            "flagged": self.flagged,
            "lastUpdated": self.last_updated,
        }

    @staticmethod
    def from_dict(data: dict[str, Any], flag_threshold: int = DEFAULT_FLAG_THRESHOLD) -> LearnerRecord:
        """Rebuild a record, recomputing points and flag from the event list."""
        demerits = [TransgressionEvent.from_dict(d) for d in data.get("demerits") or []]
        total = sum(d.points for d in demerits)
        return LearnerRecord(
            name=str(data.get("name", "")),
            grade=str(data.get("grade", "") or ""),
            demerits=demerits,
            total_points=total,
            flagged=total >= flag_threshold,
            last_updated=str(data.get("lastUpdated") or utc_now_iso()),
        )
