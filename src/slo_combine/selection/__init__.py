"""Selection tracking and reconciliation."""

from slo_combine.selection.diff import SelectionDiff, diff_selection
from slo_combine.selection.reconcile import (
    ReconciliationResult,
    catalogs_equal,
    reconcile_selection,
)
from slo_combine.selection.state import SelectionState

__all__ = [
    "SelectionDiff",
    "diff_selection",
    "ReconciliationResult",
    "catalogs_equal",
    "reconcile_selection",
    "SelectionState",
]
