"""Pruning selections that reference SLOs gone from the catalog."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from slo_combine.catalog.records import SLORecord

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    """Outcome of checking a selection against a catalog."""

    kept: tuple[str, ...] = field(default_factory=tuple)
    pruned: tuple[str, ...] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return bool(self.pruned)

    def to_dict(self) -> dict[str, Any]:
        return {"kept": list(self.kept), "pruned": list(self.pruned)}


def catalogs_equal(
    old: Sequence[SLORecord] | None,
    new: Sequence[SLORecord] | None,
) -> bool:
    """Deep value comparison of two catalogs.

    Two catalogs of the same length can still differ in membership, so
    every record is compared field by field.
    """
    if old is None or new is None:
        return old is new
    if len(old) != len(new):
        return False
    return all(
        a.model_dump(by_alias=True) == b.model_dump(by_alias=True)
        for a, b in zip(old, new)
    )


def reconcile_selection(
    selected_ids: Iterable[str],
    catalog: Iterable[SLORecord],
) -> ReconciliationResult:
    """Split ``selected_ids`` into ids still in ``catalog`` and vanished ones."""
    present = {slo.id for slo in catalog}
    kept: list[str] = []
    pruned: list[str] = []
    for slo_id in selected_ids:
        (kept if slo_id in present else pruned).append(slo_id)

    if pruned:
        logger.info("Pruned %d stale SLO selection(s): %s", len(pruned), ", ".join(pruned))
    return ReconciliationResult(kept=tuple(kept), pruned=tuple(pruned))
