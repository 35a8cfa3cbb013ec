"""SLO Combine — choose which SLOs to aggregate and keep that choice in sync.

Core concepts
-------------
* **Catalog**: the live, externally refreshed list of SLO records.  Each
  record has a stable ``id`` and a document carrying its tags.

* **Pending vs. aggregated selection**: toggles change the pending
  selection only; saving persists it and makes it the aggregated
  selection that the combined view shows.

* **Reconciliation**: when the catalog changes, selected ids whose SLO
  disappeared are pruned from both selections.

* **Tag filter**: narrows the displayed catalog to SLOs carrying every
  selected ``key=value`` tag.

Quick start::

    from slo_combine import CombinationController
    from slo_combine.persistence import InMemoryDocumentStore, UserStorageGateway

    gateway = UserStorageGateway(InMemoryDocumentStore())
    controller = CombinationController(gateway, catalog=slos)
    await controller.mount()
    controller.toggle("checkout-latency")
    await controller.save()
"""

from slo_combine.catalog.records import SLODocument, SLORecord, Tag
from slo_combine.controller import (
    CombinationController,
    ControllerPhase,
    ControllerStateError,
    ViewProps,
)
from slo_combine.selection.state import SelectionState

__all__ = [
    "CombinationController",
    "ControllerPhase",
    "ControllerStateError",
    "SelectionState",
    "SLODocument",
    "SLORecord",
    "Tag",
    "ViewProps",
]

__version__ = "0.1.0"
