"""
Dashboard session: the single owner wiring store, map index, selection
and viewport together.

Constructed once at start-up with seeded data and passed to whatever
needs it (the GUI, tests); there is no module-level state.

Usage
-----
    session = DashboardSession(service, scenario_id="imminent-wildfire")
    await session.store.run_forest_analysis()
    layers = session.layers()
    entity = session.click_at(x, y)        # render coordinates
    transform = session.viewport.target
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

import numpy as np

from .analysis.session import FOREST, AnalysisSessionStore
from .data import scenarios, seed
from .geo.projector import Transform, project
from .geo.regions import KENYA_BOUNDS
from .geo.viewport import FitContext, ViewMode, ViewportController
from .layers.entities import EvidenceSet, LayerSet, MapEntity, MapEntityIndex, Point
from .layers.selection import MapInteractionController
from .models.forest import Alert, GeoPoint

log = logging.getLogger(__name__)


class DashboardSession:
    """All dashboard state for one run of the application.

    Parameters
    ----------
    service
        AnalysisService (or a test double).
    scenario_id : str, optional
        Start from a generated scenario instead of the threat sample.
    user_location : GeoPoint, optional
        Known operator position; frames the map when nothing is selected.
    viewport_clock
        Monotonic time source for viewport animation.
    event_log_dir : Path, optional
        Forwarded to the store for JSON dumps of finished runs.
    dispatch : callable, optional
        ``dispatch(fn)`` runs ``fn`` on the thread that owns this session.
        Store and selection changes can arrive from the analysis thread;
        the index and viewport are only touched through ``dispatch``.
        Defaults to calling ``fn`` in place.
    """

    def __init__(
        self,
        service: Any,
        scenario_id: Optional[str] = None,
        user_location: Optional[GeoPoint] = None,
        viewport_clock: Callable[[], float] = time.monotonic,
        event_log_dir: Optional[Path] = None,
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
    ):
        self.scenario_id = scenario_id
        self._dispatch = dispatch or (lambda fn: fn())
        forest_input = scenarios.generate(scenario_id) if scenario_id else seed.threat_sample()

        self.selection = MapInteractionController()
        self.store = AnalysisSessionStore(
            service,
            forest_input=forest_input,
            waste_input=seed.waste_sample(),
            pes_programs=seed.pes_programs(),
            restoration_projects=seed.restoration_projects(),
            partners=seed.partners(),
            tourism_products=seed.tourism_products(),
            selection=self.selection,
            event_log_dir=event_log_dir,
        )
        self.viewport = ViewportController(clock=viewport_clock)

        self.view_mode = ViewMode.ALL
        self.show_heatmap = True
        self.show_restoration = True
        self.user_location = user_location

        self._index: Optional[MapEntityIndex] = None
        self._selected_alert_id: Optional[str] = None
        self._fitted_point_count = -1

        self.store.add_listener(self._on_store_change)
        self.selection.add_listener(self._on_selection_change)
        self.refresh_viewport()

    # ── Derived state ──

    @property
    def index(self) -> MapEntityIndex:
        if self._index is None:
            self._index = MapEntityIndex(
                data=self.store.forest_input,
                alerts=self.store.alerts,
                restoration_projects=self.store.restoration_projects,
                pes_programs=self.store.pes_programs,
            )
        return self._index

    def fit_context(self) -> FitContext:
        idx = self.index
        return FitContext(
            all_points=idx.all_points(),
            alert_points=idx.alert_points(),
            user_location=self.user_location,
            selected_alert=self.selection.selected_alert,
            view_mode=self.view_mode,
        )

    def layers(self) -> LayerSet:
        return self.index.build_layers(self.view_mode, self.show_heatmap, self.show_restoration)

    def evidence_for(self, alert: Alert) -> EvidenceSet:
        return self.index.resolve_evidence(alert)

    def user_marker(self) -> Optional[Point]:
        """Render position of the operator's location, if known."""
        if self.user_location is None:
            return None
        return project(self.user_location.lat, self.user_location.lng, KENYA_BOUNDS)

    # ── Change handling ──

    def _on_store_change(self, what: str) -> None:
        if what in (FOREST, "data", "incentives"):
            self._dispatch(lambda: self._apply_store_change(what))

    def _apply_store_change(self, what: str) -> None:
        self._index = None
        if what == FOREST:
            self.refresh_viewport()
            return
        # Re-fit only when the set of mapped points grows or shrinks
        if len(self.index.all_points()) != self._fitted_point_count:
            self.refresh_viewport()

    def _on_selection_change(self, entity: Optional[MapEntity]) -> None:
        self._dispatch(self._follow_selection)

    def _follow_selection(self) -> None:
        alert = self.selection.selected_alert
        alert_id = alert.id if alert is not None else None
        if alert_id != self._selected_alert_id:
            self._selected_alert_id = alert_id
            self.refresh_viewport()

    # ── Viewport ──

    def refresh_viewport(self) -> Transform:
        ctx = self.fit_context()
        self._fitted_point_count = len(ctx.all_points)
        return self.viewport.refresh(ctx)

    def reset_zoom(self) -> Transform:
        return self.viewport.reset_zoom(self.fit_context())

    # ── User actions ──

    def click_at(self, x: float, y: float, scale: Optional[float] = None) -> Optional[MapEntity]:
        """Handle a map click at render point (x, y); returns the hit entity."""
        scale = scale if scale is not None else self.viewport.target.scale
        entity = MapEntityIndex.hit_test(x, y, self.layers(), scale)
        self.selection.handle_click(entity)
        return entity

    def select_alert(self, alert: Optional[Alert]) -> None:
        self.selection.select_alert(alert)

    def set_view_mode(self, mode: ViewMode) -> None:
        if mode is self.view_mode:
            return
        self.view_mode = mode
        self.selection.set_view_mode(mode)
        self.refresh_viewport()

    def toggle_heatmap(self) -> bool:
        self.show_heatmap = not self.show_heatmap
        return self.show_heatmap

    def toggle_restoration(self) -> bool:
        self.show_restoration = not self.show_restoration
        return self.show_restoration

    def set_user_location(self, location: Optional[GeoPoint]) -> None:
        self.user_location = location
        self.refresh_viewport()

    # ── Scenarios ──

    def load_scenario(self, scenario_id: str) -> None:
        log.info("Loading scenario %s", scenario_id)
        self.scenario_id = scenario_id
        self.store.set_forest_input(scenarios.generate(scenario_id))

    def load_sample(self) -> None:
        """Back to the Karura threat sample; stops the live simulation."""
        self.scenario_id = None
        self.store.set_forest_input(seed.threat_sample())

    def simulate_tick(self, rng: Optional[np.random.Generator] = None) -> None:
        """Advance the live simulation one step (scenario datasets only)."""
        if not self.scenario_id:
            return
        self.store.set_forest_input(scenarios.tick(self.store.forest_input, self.scenario_id, rng))
