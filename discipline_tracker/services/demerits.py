from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from ..models.learner import (
    CATEGORY_ALIASES,
    CUSTOM_CATEGORY,
    DEFAULT_CATEGORIES,
    Category,
    LearnerRecord,
    TransgressionEvent,
    utc_now_iso,
)
from ..store.learner_store import LearnerStore

"""Demerit recording.

All validation happens before the learner is touched, so a rejected request
leaves no partial state. The total is updated incrementally (previous total +
event points), which equals the full sum because it is the only mutation path.
"""

__all__ = [
    "DemeritValidationError",
    "DemeritOutcome",
    "resolve_category",
    "record_demerit",
]

logger = logging.getLogger(__name__)


class DemeritValidationError(Exception):
    """Raised when a demerit request is incomplete or refers to unknown data."""


@dataclass(frozen=True)
class DemeritOutcome:
    learner_key: str
    learner: LearnerRecord
    event: TransgressionEvent
    newly_flagged: bool  # learner crossed the flag threshold with this event


def resolve_category(category_key: str | None, categories: Mapping[str, Category]) -> Category:
    if not category_key or not category_key.strip():
        raise DemeritValidationError("Please select a transgression type.")
    key = category_key.strip().lower()
    key = CATEGORY_ALIASES.get(key, key)
    category = categories.get(key)
    if category is None:
        raise DemeritValidationError(
            f"Unknown transgression type '{category_key}'. Known types: {', '.join(categories)}"
        )
    return category


def record_demerit(
    store: LearnerStore,
    learner_key: str | None,
    category_key: str | None,
    description: str | None = None,
    categories: Mapping[str, Category] = DEFAULT_CATEGORIES,
) -> DemeritOutcome:
    """Append a transgression to a learner and refresh points and flag.

    Args:
        store: Learner store holding the learner
        learner_key: Dedup key of the selected learner
        category_key: Category key ("homework", "late", "books", "behavior", "custom")
        description: Free text, required for the custom category
        categories: Category table (defaults to the built-in five)

    Returns:
        DemeritOutcome; ``newly_flagged`` is True only on the event that moves
        the learner across the threshold

    Raises:
        DemeritValidationError: missing/unknown learner or category, or a
            custom category without a description
    """
    if not learner_key:
        raise DemeritValidationError("Please select a learner.")
    learner = store.get(learner_key)
    if learner is None:
        raise DemeritValidationError(f"Unknown learner '{learner_key}'.")
    category = resolve_category(category_key, categories)

    if category.key == CUSTOM_CATEGORY:
        text = (description or "").strip()
        if not text:
            raise DemeritValidationError("Please provide a description for the other transgression.")
    else:
        text = category.name

    event = TransgressionEvent(
        type=category.key,
        description=text,
        points=category.points,
        date=utc_now_iso(),
    )
    newly_flagged = learner.add_event(event, store.flag_threshold)
    logger.info(
        "demerit learner=%s type=%s points=%d total=%d flagged=%s",
        learner_key,
        event.type,
        event.points,
        learner.total_points,
        learner.flagged,
    )
    if newly_flagged:
        logger.warning("%s has been flagged with %d demerit points", learner.name, learner.total_points)
    return DemeritOutcome(learner_key=learner_key, learner=learner, event=event, newly_flagged=newly_flagged)
