"""
Map selection state.

One slot holds at most one selected entity: an alert, a background
record (tile, sensor or report) or an incentive program.  Every click
goes through :meth:`MapInteractionController.select`, which replaces the
slot, so two kinds can never be selected at once.

Listeners registered with ``add_listener`` are called with the new
selection (or None) after every change.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from ..geo.viewport import ViewMode
from ..models.forest import Alert
from ..models.programs import PesProgram
from .entities import EntityKind, MapEntity

log = logging.getLogger(__name__)

_BACKGROUND_KINDS = (EntityKind.TILE, EntityKind.SENSOR, EntityKind.REPORT)

SelectionListener = Callable[[Optional[MapEntity]], None]


class MapInteractionController:

    def __init__(self) -> None:
        self._selection: Optional[MapEntity] = None
        self._view_mode = ViewMode.ALL
        self.detail_collapsed = False
        self._listeners: List[SelectionListener] = []

    def add_listener(self, fn: SelectionListener) -> None:
        self._listeners.append(fn)

    def _set(self, entity: Optional[MapEntity]) -> None:
        if entity == self._selection:
            return
        self._selection = entity
        self.detail_collapsed = False
        log.debug("Selection -> %s", entity.entity_id if entity else None)
        for fn in self._listeners:
            fn(entity)

    # ── Queries ──

    @property
    def selection(self) -> Optional[MapEntity]:
        return self._selection

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def selected_alert(self) -> Optional[Alert]:
        if self._selection is not None and self._selection.kind is EntityKind.ALERT:
            return self._selection.record
        return None

    @property
    def selected_background(self) -> Optional[MapEntity]:
        if self._selection is not None and self._selection.kind in _BACKGROUND_KINDS:
            return self._selection
        return None

    @property
    def selected_program(self) -> Optional[PesProgram]:
        if self._selection is not None and self._selection.kind is EntityKind.INCENTIVE:
            return self._selection.record
        return None

    @property
    def popover_program(self) -> Optional[PesProgram]:
        """The program whose popover is open; only while it is the selection."""
        return self.selected_program

    # ── Actions ──

    def select(self, entity: MapEntity) -> None:
        """Make ``entity`` the only selection.

        Re-selecting the current entity is a no-op, so a second click on
        an open incentive marker keeps its popover open.
        """
        if not entity.selectable:
            raise ValueError(f"{entity.kind.value} entities are not selectable")
        if self._view_mode is ViewMode.ALERTS and entity.kind is not EntityKind.ALERT:
            raise ValueError(f"{entity.kind.value} is not shown in the alerts view")
        self._set(entity)

    def select_alert(self, alert: Optional[Alert]) -> None:
        """Select an alert from a list; None clears an alert selection."""
        if alert is None:
            if self.selected_alert is not None:
                self._set(None)
            return
        self.select(MapEntity.of(alert))

    def handle_click(self, entity: Optional[MapEntity]) -> None:
        """Route a map click; a miss (None) clears everything."""
        if entity is None:
            self.clear()
        else:
            self.select(entity)

    def clear(self) -> None:
        self._set(None)

    def set_view_mode(self, mode: ViewMode) -> None:
        self._view_mode = mode
        if mode is ViewMode.ALERTS and self.selected_alert is None:
            self.clear()

    def close_detail(self) -> None:
        """Close the detail panel: drops an alert or background selection."""
        if self.selected_alert is not None or self.selected_background is not None:
            self._set(None)

    def toggle_detail(self) -> bool:
        self.detail_collapsed = not self.detail_collapsed
        return self.detail_collapsed
