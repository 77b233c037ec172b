from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from ..models.learner import DEFAULT_FLAG_THRESHOLD, LearnerRecord

"""In-memory learner collection.

The store maps dedup keys to LearnerRecords and is the single source of truth
for a session. Keys are assigned once, on insert, and never recomputed: a
later grade correction does not re-key a learner.

Mutation is synchronous and single-threaded; persistence layers read the
store and write it back as a whole (``replace_all``).
"""

__all__ = [
    "LearnerStore",
]


class LearnerStore:
    def __init__(
        self,
        records: Mapping[str, LearnerRecord] | None = None,
        flag_threshold: int = DEFAULT_FLAG_THRESHOLD,
    ) -> None:
        self.flag_threshold = flag_threshold
        self._records: dict[str, LearnerRecord] = dict(records or {})

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def get(self, key: str) -> LearnerRecord | None:
        return self._records.get(key)

    def items(self) -> list[tuple[str, LearnerRecord]]:
        return list(self._records.items())

    def add_if_absent(self, key: str, record: LearnerRecord) -> bool:
        """Insert ``record`` under ``key`` unless the key exists (first seen wins)."""
        if key in self._records:
            return False
        self._records[key] = record
        return True

    def replace_all(self, records: Mapping[str, LearnerRecord]) -> None:
        """Swap in a whole collection (snapshot load, remote change)."""
        self._records = dict(records)

    def clear(self) -> None:
        self._records.clear()

    def to_entries(self) -> list[list[Any]]:
        """Serializable ``[[key, record_dict], ...]`` pairs."""
        return [[k, r.to_dict()] for k, r in self._records.items()]

    def to_documents(self) -> dict[str, dict[str, Any]]:
        return {k: r.to_dict() for k, r in self._records.items()}

    @classmethod
    def from_entries(
        cls, entries: list[list[Any]] | list[tuple[str, Any]], flag_threshold: int = DEFAULT_FLAG_THRESHOLD
    ) -> LearnerStore:
        records = {
            str(key): LearnerRecord.from_dict(data, flag_threshold) for key, data in entries
        }
        return cls(records, flag_threshold=flag_threshold)
