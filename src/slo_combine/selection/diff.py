"""Difference between the committed and the pending SLO selection."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field


class SelectionDiff(BaseModel):
    """Ids added to or removed from the committed selection."""

    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)

    @property
    def is_dirty(self) -> bool:
        return bool(self.added or self.removed)

    def summary(self) -> str:
        if not self.is_dirty:
            return "no changes"
        parts = []
        if self.added:
            parts.append(f"+{len(self.added)}")
        if self.removed:
            parts.append(f"-{len(self.removed)}")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "added": list(self.added),
            "removed": list(self.removed),
            "is_dirty": self.is_dirty,
        }


def diff_selection(committed: Iterable[str], pending: Iterable[str]) -> SelectionDiff:
    """Compute what saving ``pending`` would change relative to ``committed``.

    Order is ignored; added ids keep their pending order and removed ids
    keep their committed order.
    """
    committed = list(committed)
    pending = list(pending)
    committed_set = set(committed)
    pending_set = set(pending)
    return SelectionDiff(
        added=[i for i in pending if i not in committed_set],
        removed=[i for i in committed if i not in pending_set],
    )
