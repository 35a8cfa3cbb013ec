"""Pending vs. committed SLO selection."""

from __future__ import annotations

from collections.abc import Iterable

from slo_combine.selection.diff import SelectionDiff, diff_selection


def _unique(ids: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(ids))


class SelectionState:
    """Tracks the user's working selection against the last persisted one.

    ``pending`` is what the user is editing; ``aggregate`` is what was last
    loaded or saved. Both are immutable tuples and every operation replaces
    them wholesale, so a committed snapshot can never change under a later
    toggle.
    """

    def __init__(self, selected_ids: Iterable[str] = ()) -> None:
        ids = _unique(selected_ids)
        self._aggregate: tuple[str, ...] = ids
        self._pending: tuple[str, ...] = ids

    @property
    def pending(self) -> tuple[str, ...]:
        return self._pending

    @property
    def aggregate(self) -> tuple[str, ...]:
        return self._aggregate

    def toggle(self, slo_id: str) -> bool:
        """Remove ``slo_id`` if selected, otherwise append it.

        Returns True if the id is selected after the call.
        """
        if slo_id in self._pending:
            self._pending = tuple(i for i in self._pending if i != slo_id)
            return False
        self._pending = (*self._pending, slo_id)
        return True

    def is_dirty(self) -> bool:
        return sorted(self._pending) != sorted(self._aggregate)

    def commit(self, snapshot: Iterable[str] | None = None) -> None:
        """Make ``snapshot`` (default: the pending selection) the committed one."""
        self._aggregate = self._pending if snapshot is None else _unique(snapshot)

    def revert(self) -> None:
        self._pending = self._aggregate

    def reset(self, selected_ids: Iterable[str]) -> None:
        """Set both selections, discarding any unsaved changes."""
        ids = _unique(selected_ids)
        self._aggregate = ids
        self._pending = ids

    def diff(self) -> SelectionDiff:
        return diff_selection(self._aggregate, self._pending)

    def __repr__(self) -> str:
        return f"SelectionState(aggregate={list(self._aggregate)!r}, pending={list(self._pending)!r})"
