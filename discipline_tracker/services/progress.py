from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Class-list import progress (tqdm bar on a TTY, counters only otherwise).

The bar is skipped when stdout is not a terminal so redirected runs keep clean
labeled log lines.
"""

__all__ = [
    "ImportProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ImportProgress:
    """Counts imported files and new learners, mirrored on a tqdm bar."""

    def __init__(self, total_files: int, *, label: str = "Importing class lists") -> None:
        self.total_files = total_files
        self.label = label
        self.position = 0
        self.succeeded = 0
        self.failed = 0
        self.new_learners = 0

        self.bar: TqdmType[Any] | None = None
        if is_tty_enabled():
            self.bar = tqdm(total=total_files, desc=label, unit="file", ncols=80, ascii=True)

    def begin(self, path: Path) -> None:
        self.position += 1
        if self.bar is not None:
            self.bar.set_description(f"{self.label} {self.position}/{self.total_files} ({path.name})")

    def done(self, success: bool, new_learners: int = 0) -> None:
        if success:
            self.succeeded += 1
            self.new_learners += new_learners
        else:
            self.failed += 1
        if self.bar is not None:
            self.bar.set_description(self.label)
            self.bar.set_postfix(ok=self.succeeded, failed=self.failed, learners=self.new_learners)
            self.bar.update(1)

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None

    def __enter__(self) -> ImportProgress:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
