"""Combination controller: the state machine behind the SLO combine view.

Owns the selection state, the active tag filter and the current catalog,
talks to the persistence gateway, and derives the props handed to a
renderer. Runs on a single asyncio loop; only :meth:`mount` and
:meth:`save` suspend.

Phases::

    LOADING --mount()--> READY --unmount()--> UNMOUNTED

``READY`` is further split into clean and dirty by comparing the pending
selection with the committed one; ``saving`` is an orthogonal flag.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from slo_combine.catalog.records import SLORecord, Tag, parse_catalog
from slo_combine.catalog.tags import display_catalog, tag_label, unique_tags
from slo_combine.persistence.errors import PersistenceError
from slo_combine.persistence.gateway import PersistenceGateway
from slo_combine.selection.diff import SelectionDiff
from slo_combine.selection.reconcile import (
    ReconciliationResult,
    catalogs_equal,
    reconcile_selection,
)
from slo_combine.selection.state import SelectionState

logger = logging.getLogger(__name__)


class ControllerPhase(Enum):
    """Lifecycle phase of a combination controller."""
    LOADING = "loading"
    READY = "ready"
    UNMOUNTED = "unmounted"


class ControllerStateError(Exception):
    """Raised when an operation is invoked in a phase that does not allow it."""

    def __init__(self, operation: str, phase: ControllerPhase) -> None:
        self.operation = operation
        self.phase = phase
        super().__init__(f"Cannot {operation} while controller is {phase.value}")


@dataclass
class ControllerEvent:
    """Record of a controller phase change."""
    from_phase: ControllerPhase
    to_phase: ControllerPhase
    reason: str = ""
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_phase": self.from_phase.value,
            "to_phase": self.to_phase.value,
            "reason": self.reason,
            "timestamp": self.timestamp,
        }


@dataclass
class ViewProps:
    """Everything a renderer needs to draw the combine view."""
    display_list: list[SLORecord]
    selected_ids: tuple[str, ...]
    dirty: bool
    saving: bool
    unique_tags: list[Tag]
    selected_tags: tuple[Tag, ...]
    combined: list[SLORecord]
    save_error: str | None
    on_toggle: Callable[[str], bool]
    on_save: Callable[[], Awaitable[bool]]
    on_cancel: Callable[[], bool]
    on_tag_filter_change: Callable[[Iterable[Tag]], None]

    def to_dict(self) -> dict[str, Any]:
        return {
            "display_list": [slo.id for slo in self.display_list],
            "selected_ids": list(self.selected_ids),
            "dirty": self.dirty,
            "saving": self.saving,
            "unique_tags": [tag_label(t) for t in self.unique_tags],
            "selected_tags": [tag_label(t) for t in self.selected_tags],
            "combined": [slo.id for slo in self.combined],
            "save_error": self.save_error,
        }


Renderer = Callable[[ViewProps], Any]


class CombinationController:
    """Tracks which SLOs are combined and keeps that choice persisted.

    Usage::

        controller = CombinationController(gateway, catalog=slos)
        await controller.mount()
        controller.toggle("slo-1")
        await controller.save()
        controller.update_catalog(refreshed_slos)
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        catalog: Iterable[SLORecord | dict[str, Any]] | None = None,
    ) -> None:
        self.gateway = gateway
        self._catalog: tuple[SLORecord, ...] | None = (
            tuple(parse_catalog(catalog)) if catalog is not None else None
        )
        self._selection = SelectionState()
        self._tag_filter: tuple[Tag, ...] = ()
        self._phase = ControllerPhase.LOADING
        self._saving = False
        self._save_error: str | None = None
        self._load_failed = False
        self._load_started = False
        self._events: list[ControllerEvent] = []
        self._listeners: list[Callable[[ViewProps], Any]] = []

    # -- lifecycle -----------------------------------------------------------

    async def mount(self) -> None:
        """Load the persisted selection and become ready.

        A failed load leaves the controller ready with an empty selection.
        """
        if self._phase != ControllerPhase.LOADING or self._load_started:
            raise ControllerStateError("mount", self._phase)
        self._load_started = True

        selected: tuple[str, ...] = ()
        try:
            document = await self.gateway.load()
            selected = tuple(document.selected_ids)
        except PersistenceError as exc:
            self._load_failed = True
            logger.warning("Could not load SLO selection, starting empty: %s", exc)
        except Exception:
            self._load_failed = True
            logger.warning("Unexpected error loading SLO selection, starting empty", exc_info=True)
        finally:
            self._finish_load(selected)

    def _finish_load(self, selected: tuple[str, ...]) -> None:
        if self._phase == ControllerPhase.UNMOUNTED:
            logger.debug("Discarding load result for unmounted controller")
            return
        self._selection.reset(selected)
        self._reconcile()
        self._transition(
            ControllerPhase.READY,
            "load failed" if self._load_failed else f"loaded {len(self._selection.aggregate)} selected",
        )
        self._notify()

    def unmount(self) -> None:
        """Tear down; results of in-flight load/save calls are discarded."""
        self._transition(ControllerPhase.UNMOUNTED, "unmounted")
        self._listeners.clear()

    # -- catalog -------------------------------------------------------------

    def update_catalog(
        self, catalog: Iterable[SLORecord | dict[str, Any]] | None
    ) -> ReconciliationResult | None:
        """Replace the catalog and prune selections that no longer exist.

        Returns the reconciliation result, or None when the catalog did not
        change or the controller is not ready yet (the load will reconcile).
        """
        if self._phase == ControllerPhase.UNMOUNTED:
            logger.debug("Ignoring catalog update for unmounted controller")
            return None

        new_catalog = tuple(parse_catalog(catalog)) if catalog is not None else None
        if catalogs_equal(self._catalog, new_catalog):
            return None
        self._catalog = new_catalog

        if self._phase != ControllerPhase.READY:
            return None
        result = self._reconcile()
        self._notify()
        return result

    def _reconcile(self) -> ReconciliationResult | None:
        if self._catalog is None:
            return None
        result = reconcile_selection(self._selection.pending, self._catalog)
        self._selection.reset(result.kept)
        return result

    # -- selection -----------------------------------------------------------

    def toggle(self, slo_id: str) -> bool:
        """Select or deselect ``slo_id``. Returns True if now selected."""
        self._require_ready("toggle")
        selected = self._selection.toggle(slo_id)
        self._notify()
        return selected

    def cancel(self) -> bool:
        """Discard unsaved changes. Returns False if there were none."""
        self._require_ready("cancel")
        if not self._selection.is_dirty():
            logger.debug("Nothing to cancel")
            return False
        self._selection.revert()
        self._save_error = None
        self._notify()
        return True

    async def save(self) -> bool:
        """Persist the pending selection. Returns True on success.

        The selection sent is the one pending at call time; toggles made
        while the write is in flight stay pending for the next save.
        """
        self._require_ready("save")
        if self._saving:
            logger.debug("Save already in progress")
            return False
        if not self._selection.is_dirty():
            logger.debug("Nothing to save")
            return False

        snapshot = self._selection.pending
        self._saving = True
        self._save_error = None
        self._notify()

        error: str | None = None
        try:
            await self.gateway.save(snapshot)
        except PersistenceError as exc:
            error = str(exc)
            logger.warning("Could not save SLO selection: %s", exc)
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
            logger.warning("Unexpected error saving SLO selection", exc_info=True)
        finally:
            self._saving = False

        if self._phase == ControllerPhase.UNMOUNTED:
            logger.debug("Discarding save result for unmounted controller")
            return error is None

        if error is None:
            if self._catalog is not None:
                snapshot = reconcile_selection(snapshot, self._catalog).kept
            self._selection.commit(snapshot)
            logger.info("Combined %d SLO(s)", len(snapshot))
        self._save_error = error
        self._notify()
        return error is None

    def set_tag_filter(self, tags: Iterable[Tag]) -> None:
        """Narrow the displayed catalog to SLOs carrying all ``tags``."""
        self._require_ready("filter by tags")
        self._tag_filter = tuple(dict.fromkeys(tags))
        self._notify()

    # -- derived state -------------------------------------------------------

    @property
    def phase(self) -> ControllerPhase:
        return self._phase

    @property
    def catalog(self) -> list[SLORecord]:
        return list(self._catalog or ())

    @property
    def selected_ids(self) -> tuple[str, ...]:
        return self._selection.pending

    @property
    def aggregated_ids(self) -> tuple[str, ...]:
        return self._selection.aggregate

    @property
    def selected_tags(self) -> tuple[Tag, ...]:
        return self._tag_filter

    @property
    def is_dirty(self) -> bool:
        return self._phase == ControllerPhase.READY and self._selection.is_dirty()

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def save_error(self) -> str | None:
        return self._save_error

    @property
    def load_failed(self) -> bool:
        return self._load_failed

    @property
    def status(self) -> str:
        if self._phase != ControllerPhase.READY:
            return self._phase.value
        return "dirty" if self._selection.is_dirty() else "clean"

    @property
    def display_list(self) -> list[SLORecord]:
        return display_catalog(self.catalog, self._tag_filter)

    @property
    def combined_slos(self) -> list[SLORecord]:
        """Catalog entries in the committed selection, in catalog order."""
        committed = set(self._selection.aggregate)
        return [slo for slo in self.catalog if slo.id in committed]

    @property
    def unique_tags(self) -> list[Tag]:
        return unique_tags(self.catalog)

    def diff(self) -> SelectionDiff:
        return self._selection.diff()

    # -- rendering -----------------------------------------------------------

    def view(self) -> ViewProps:
        return ViewProps(
            display_list=self.display_list,
            selected_ids=self._selection.pending,
            dirty=self.is_dirty,
            saving=self._saving,
            unique_tags=self.unique_tags,
            selected_tags=self._tag_filter,
            combined=self.combined_slos,
            save_error=self._save_error,
            on_toggle=self.toggle,
            on_save=self.save,
            on_cancel=self.cancel,
            on_tag_filter_change=self.set_tag_filter,
        )

    def render(self, renderer: Renderer) -> Any:
        return renderer(self.view())

    def subscribe(self, listener: Callable[[ViewProps], Any]) -> Callable[[], None]:
        """Call ``listener`` with fresh props after every state change."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        props = self.view()
        for listener in list(self._listeners):
            try:
                listener(props)
            except Exception:
                logger.exception("View listener failed")

    # -- internals -----------------------------------------------------------

    def _require_ready(self, operation: str) -> None:
        if self._phase != ControllerPhase.READY:
            raise ControllerStateError(operation, self._phase)

    def _transition(self, new_phase: ControllerPhase, reason: str) -> None:
        old_phase = self._phase
        if old_phase == new_phase:
            return
        self._events.append(ControllerEvent(
            from_phase=old_phase,
            to_phase=new_phase,
            reason=reason,
        ))
        self._phase = new_phase
        logger.info("Combine controller %s -> %s (%s)", old_phase.value, new_phase.value, reason)

    @property
    def events(self) -> list[ControllerEvent]:
        return self._events

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "selected_ids": list(self._selection.pending),
            "aggregated_ids": list(self._selection.aggregate),
            "selected_tags": [tag_label(t) for t in self._tag_filter],
            "saving": self._saving,
            "save_error": self._save_error,
            "load_failed": self._load_failed,
            "catalog_size": len(self._catalog or ()),
            "diff": self.diff().to_dict(),
            "events": [e.to_dict() for e in self._events[-10:]],
        }
