"""
Map entity classification and hit-testing.

Everything drawn on the map is wrapped in a :class:`MapEntity` whose
``kind`` is fixed at construction, so the GUI and the selection
controller never have to guess what a record is from its fields.

:class:`MapEntityIndex` is an immutable snapshot of the current dataset,
alerts, restoration projects and PES programs.  It is rebuilt by the
session whenever one of those changes, and answers:

  - which layers to draw for a view mode  (``build_layers``)
  - which points the viewport should fit  (``all_points`` / ``alert_points``)
  - what lies under a click               (``hit_test``)
  - which records an alert cites          (``resolve_evidence``)

Draw order, bottom to top: heat, incentives, restoration, tiles,
reports, sensors, alerts.  Marker radii are in screen pixels; the GUI
divides them by the current scale so markers keep their size at any zoom.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon

from ..config import (
    HEAT_RADIUS_CRITICAL,
    HEAT_RADIUS_DEFAULT,
    HEAT_RADIUS_HIGH,
    HEAT_SENSOR_MIN_TEMP_C,
    HEAT_SENSOR_RADIUS,
)
from ..geo.projector import GeoBounds, project
from ..geo.regions import KENYA_BOUNDS
from ..geo.viewport import ViewMode
from ..models.forest import (
    Alert,
    AlertType,
    ChangeType,
    ForestDataInput,
    GeoPoint,
    Report,
    SatelliteTile,
    SensorReading,
    Severity,
)
from ..models.programs import PesProgram, RestorationProject

log = logging.getLogger(__name__)

Point = Tuple[float, float]
Record = Union[Alert, SatelliteTile, SensorReading, Report, RestorationProject, PesProgram]


# ── Palette ───────────────────────────────────────────────────────────

SITUATION_COLORS: Dict[AlertType, str] = {
    AlertType.FIRE: "#ef4444",
    AlertType.LOGGING: "#d97706",
    AlertType.ENCROACHMENT: "#3b82f6",
    AlertType.CHARCOAL: "#71717a",
    AlertType.DROUGHT: "#f97316",
    AlertType.UNKNOWN: "#a855f7",
}

SITUATION_LABELS: Dict[AlertType, str] = {
    AlertType.FIRE: "Wildfire Heatzone",
    AlertType.LOGGING: "Illegal Logging Activity",
    AlertType.ENCROACHMENT: "Encroachment Area",
    AlertType.CHARCOAL: "Charcoal Burning Smoke",
    AlertType.DROUGHT: "Drought / Dry Zone",
    AlertType.UNKNOWN: "Anomaly",
}

SENSOR_HEAT_COLOR = "#f97316"
FUNDED_COLOR = "#fbbf24"
_TILE_FIRE_COLOR = "#ef4444"
_TILE_COLOR = "#eab308"
_SENSOR_COLOR = "#10b981"
_REPORT_COLOR = "#3b82f6"
_RESTORATION_COLOR = "#2dd4bf"

# Marker radii (screen px)
_ALERT_RADIUS = 8.0
_SENSOR_RADIUS = 3.0
_REPORT_RADIUS = 8.0
_INCENTIVE_RADIUS = 12.0
_RESTORATION_RADIUS = 20.0
MIN_HIT_RADIUS = 8.0


class EntityKind(Enum):
    ALERT = "alert"
    TILE = "tile"
    SENSOR = "sensor"
    REPORT = "report"
    RESTORATION = "restoration"
    INCENTIVE = "incentive"


_KIND_BY_TYPE = {
    Alert: EntityKind.ALERT,
    SatelliteTile: EntityKind.TILE,
    SensorReading: EntityKind.SENSOR,
    Report: EntityKind.REPORT,
    RestorationProject: EntityKind.RESTORATION,
    PesProgram: EntityKind.INCENTIVE,
}


@dataclass(frozen=True)
class MapEntity:
    """Tagged wrapper around one domain record."""
    kind: EntityKind
    entity_id: str
    record: Any

    @classmethod
    def of(cls, record: Record) -> "MapEntity":
        try:
            kind = _KIND_BY_TYPE[type(record)]
        except KeyError:
            raise TypeError(f"not a map entity: {type(record).__name__}") from None
        if kind is EntityKind.SENSOR:
            entity_id = record.sensor_id
        elif kind is EntityKind.REPORT:
            entity_id = record.report_id
        else:
            entity_id = record.id
        return cls(kind=kind, entity_id=entity_id, record=record)

    @property
    def selectable(self) -> bool:
        return self.kind is not EntityKind.RESTORATION

    @property
    def location(self) -> Optional[GeoPoint]:
        if self.kind is EntityKind.TILE:
            return self.record.centroid
        if self.kind is EntityKind.RESTORATION:
            return self.record.location.point
        return self.record.location


@dataclass(frozen=True)
class RenderItem:
    """One drawable entity in render coordinates.

    ``points`` holds a single position for markers or the polygon ring
    for tiles; ``radius`` is 0 for polygons.
    """
    entity: MapEntity
    points: Tuple[Point, ...]
    color: str
    radius: float = 0.0
    funded: bool = False
    label: str = ""

    @property
    def is_polygon(self) -> bool:
        return len(self.points) > 1

    @property
    def anchor(self) -> Point:
        if not self.is_polygon:
            return self.points[0]
        n = len(self.points)
        return sum(p[0] for p in self.points) / n, sum(p[1] for p in self.points) / n


@dataclass(frozen=True)
class HeatSpot:
    x: float
    y: float
    radius: float
    color: str
    source_id: str


@dataclass(frozen=True)
class LayerSet:
    heat: Tuple[HeatSpot, ...] = ()
    incentives: Tuple[RenderItem, ...] = ()
    restoration: Tuple[RenderItem, ...] = ()
    tiles: Tuple[RenderItem, ...] = ()
    reports: Tuple[RenderItem, ...] = ()
    sensors: Tuple[RenderItem, ...] = ()
    alerts: Tuple[RenderItem, ...] = ()

    def draw_order(self) -> List[RenderItem]:
        return [
            *self.incentives, *self.restoration, *self.tiles,
            *self.reports, *self.sensors, *self.alerts,
        ]

    def hit_order(self) -> List[RenderItem]:
        """Selectable items, topmost first."""
        return [*self.alerts, *self.sensors, *self.reports, *self.tiles, *self.incentives]


@dataclass(frozen=True)
class EvidenceSet:
    tiles: Tuple[SatelliteTile, ...] = ()
    sensors: Tuple[SensorReading, ...] = ()
    reports: Tuple[Report, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.tiles or self.sensors or self.reports)


def heat_radius(severity: Severity) -> float:
    if severity is Severity.CRITICAL:
        return HEAT_RADIUS_CRITICAL
    if severity is Severity.HIGH:
        return HEAT_RADIUS_HIGH
    return HEAT_RADIUS_DEFAULT


# ── Index ─────────────────────────────────────────────────────────────

class MapEntityIndex:
    """Snapshot of everything the map can show."""

    def __init__(
        self,
        data: Optional[ForestDataInput] = None,
        alerts: Sequence[Alert] = (),
        restoration_projects: Sequence[RestorationProject] = (),
        pes_programs: Sequence[PesProgram] = (),
        bounds: GeoBounds = KENYA_BOUNDS,
    ):
        self.data = data or ForestDataInput()
        self.alerts = tuple(alerts)
        self.restoration_projects = tuple(restoration_projects)
        self.pes_programs = tuple(pes_programs)
        self._bounds = bounds

        self._linked_ids = set()
        for program in self.pes_programs:
            self._linked_ids.update(program.linked_ids)

        self._tiles = {t.id: t for t in self.data.satellite_tiles}
        self._sensors = {s.sensor_id: s for s in self.data.sensor_readings}
        self._reports = {r.report_id: r for r in self.data.reports}

    def _xy(self, p: GeoPoint) -> Point:
        return project(p.lat, p.lng, self._bounds)

    def is_linked_to_incentive(self, entity_id: str, direct_program_id: Optional[str] = None) -> bool:
        """True when the entity already receives funding from a PES program."""
        if direct_program_id:
            return True
        return entity_id in self._linked_ids

    # ── Viewport inputs ──

    def all_points(self) -> List[Point]:
        pts: List[Point] = []
        for tile in self.data.satellite_tiles:
            pts.extend(self._xy(v) for v in tile.vertices)
        pts.extend(self._xy(s.location) for s in self.data.sensor_readings)
        pts.extend(self._xy(r.location) for r in self.data.reports)
        pts.extend(self._xy(a.location) for a in self.alerts)
        pts.extend(self._xy(p.location.point) for p in self.restoration_projects)
        pts.extend(self._xy(p.location) for p in self.pes_programs if p.location is not None)
        return pts

    def alert_points(self) -> List[Point]:
        return [self._xy(a.location) for a in self.alerts]

    # ── Layers ──

    def _heat(self) -> Tuple[HeatSpot, ...]:
        spots = []
        for a in self.alerts:
            x, y = self._xy(a.location)
            spots.append(HeatSpot(x, y, heat_radius(a.severity), SITUATION_COLORS[a.type], a.id))
        for s in self.data.sensor_readings:
            if s.temperature > HEAT_SENSOR_MIN_TEMP_C:
                x, y = self._xy(s.location)
                spots.append(HeatSpot(x, y, HEAT_SENSOR_RADIUS, SENSOR_HEAT_COLOR, s.sensor_id))
        return tuple(spots)

    def _alert_items(self) -> Tuple[RenderItem, ...]:
        return tuple(
            RenderItem(
                entity=MapEntity.of(a),
                points=(self._xy(a.location),),
                color=SITUATION_COLORS[a.type],
                radius=_ALERT_RADIUS,
                label=SITUATION_LABELS[a.type],
            )
            for a in self.alerts
        )

    def build_layers(
        self,
        view_mode: ViewMode = ViewMode.ALL,
        show_heatmap: bool = True,
        show_restoration: bool = True,
    ) -> LayerSet:
        heat = self._heat() if show_heatmap else ()
        alerts = self._alert_items()
        if view_mode is ViewMode.ALERTS:
            return LayerSet(heat=heat, alerts=alerts)

        tiles = []
        for t in self.data.satellite_tiles:
            tiles.append(RenderItem(
                entity=MapEntity.of(t),
                points=tuple(self._xy(v) for v in t.vertices),
                color=_TILE_FIRE_COLOR if t.change_type is ChangeType.FIRE else _TILE_COLOR,
                funded=self.is_linked_to_incentive(t.id),
            ))
        sensors = tuple(
            RenderItem(
                entity=MapEntity.of(s),
                points=(self._xy(s.location),),
                color=_SENSOR_COLOR,
                radius=_SENSOR_RADIUS,
                funded=self.is_linked_to_incentive(s.sensor_id),
            )
            for s in self.data.sensor_readings
        )
        reports = tuple(
            RenderItem(
                entity=MapEntity.of(r),
                points=(self._xy(r.location),),
                color=_REPORT_COLOR,
                radius=_REPORT_RADIUS,
            )
            for r in self.data.reports
        )
        restoration: Tuple[RenderItem, ...] = ()
        if show_restoration:
            items = []
            for p in self.restoration_projects:
                funded = self.is_linked_to_incentive(p.id, p.incentives.pes_program_id)
                items.append(RenderItem(
                    entity=MapEntity.of(p),
                    points=(self._xy(p.location.point),),
                    color=FUNDED_COLOR if funded else _RESTORATION_COLOR,
                    radius=_RESTORATION_RADIUS,
                    funded=funded,
                    label=p.name,
                ))
            restoration = tuple(items)
        incentives = tuple(
            RenderItem(
                entity=MapEntity.of(p),
                points=(self._xy(p.location),),
                color=FUNDED_COLOR,
                radius=_INCENTIVE_RADIUS,
                label=p.name,
            )
            for p in self.pes_programs
            if p.location is not None
        )
        return LayerSet(
            heat=heat,
            incentives=incentives,
            restoration=restoration,
            tiles=tuple(tiles),
            reports=reports,
            sensors=sensors,
            alerts=alerts,
        )

    # ── Picking ──

    @staticmethod
    def hit_test(x: float, y: float, layers: LayerSet, scale: float = 1.0) -> Optional[MapEntity]:
        """Topmost selectable entity under render point (x, y), or None.

        ``scale`` is the current viewport scale; it converts the
        screen-pixel marker radii into render units.
        """
        probe = ShapelyPoint(x, y)
        for item in layers.hit_order():
            if not item.entity.selectable:
                continue
            if item.is_polygon:
                if Polygon(item.points).covers(probe):
                    return item.entity
                continue
            px, py = item.points[0]
            reach = max(item.radius, MIN_HIT_RADIUS) / scale
            if math.hypot(x - px, y - py) <= reach:
                return item.entity
        return None

    # ── Detail views ──

    def resolve_evidence(self, alert: Alert) -> EvidenceSet:
        """Records of the current dataset cited by ``alert``; unknown ids are skipped."""
        ev = alert.supporting_evidence
        missing = [
            i for i in ev.satellite_ids + ev.sensor_ids + ev.report_ids
            if i not in self._tiles and i not in self._sensors and i not in self._reports
        ]
        if missing:
            log.debug("Alert %s cites unknown records: %s", alert.id, missing)
        return EvidenceSet(
            tiles=tuple(self._tiles[i] for i in ev.satellite_ids if i in self._tiles),
            sensors=tuple(self._sensors[i] for i in ev.sensor_ids if i in self._sensors),
            reports=tuple(self._reports[i] for i in ev.report_ids if i in self._reports),
        )


def describe_entity(entity: MapEntity) -> List[Tuple[str, str]]:
    """(label, value) rows for the detail panel."""
    r = entity.record
    kind = entity.kind
    if kind is EntityKind.ALERT:
        return [
            ("Situation", SITUATION_LABELS[r.type]),
            ("Severity", r.severity.value),
            ("Threat score", f"{r.threat_weight_score:.2f}"),
            ("Confidence", f"{r.confidence:.0%}"),
            ("Location", f"{r.location.lat:.4f}, {r.location.lng:.4f}"),
            ("Action", r.recommended_action),
        ]
    if kind is EntityKind.TILE:
        return [
            ("Satellite tile", r.id),
            ("Change", r.change_type.value.replace("_", " ")),
            ("Risk score", f"{r.risk_score:.2f}"),
        ]
    if kind is EntityKind.SENSOR:
        return [
            ("Sensor", r.sensor_id),
            ("Temperature", f"{r.temperature:.1f} °C"),
            ("Smoke", f"{r.smoke_level:.2f}"),
            ("Noise", f"{r.noise_level:.1f} dB"),
            ("Reading", r.timestamp),
        ]
    if kind is EntityKind.REPORT:
        return [
            ("Report", r.report_id),
            ("Category", r.category.value),
            ("Description", r.description),
            ("Submitted", r.timestamp),
        ]
    if kind is EntityKind.INCENTIVE:
        return [
            ("Program", r.name),
            ("Type", r.type.value),
            ("Location", r.location_label),
            ("Readiness", f"{r.readiness_score:.0%}"),
            ("Payment / period", f"KES {r.indicative_payment_per_period_kes:,.0f}"),
        ]
    rows = [("Project", r.name), ("Status", r.status.value), ("Site", r.location.label)]
    util = r.budget_utilisation
    if util is not None:
        rows.append(("Budget disbursed", f"{util:.0%}"))
    return rows
