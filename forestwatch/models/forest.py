"""
Forest monitoring records.

A :class:`ForestDataInput` snapshot (satellite tiles + sensor readings +
community reports) is the unit sent to the analysis service; a
:class:`ForestWatchResponse` is what comes back.  Every record is an
immutable value: the simulation tick and the session store build new
instances instead of mutating.

``from_dict`` / ``as_dict`` use the wire (JSON) field names, so a
dataset round-trips through the service payload unchanged.

Example
-------
    data = ForestDataInput.from_dict(json.loads(payload))
    for tile in data.satellite_tiles:
        print(tile.id, tile.risk_score, tile.centroid)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class GeoPoint:
    """WGS84 coordinate, always passed by value."""
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"longitude out of range: {self.lng}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeoPoint":
        return cls(lat=float(d["lat"]), lng=float(d["lng"]))

    def as_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


# ── Enumerations ──────────────────────────────────────────────────────

class Severity(Enum):
    """Alert severity, ordered Low < Moderate < High < Critical."""
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def __lt__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_ORDER = [Severity.LOW, Severity.MODERATE, Severity.HIGH, Severity.CRITICAL]

# Threat weight score thresholds (lower bound of each band)
TWS_MODERATE = 0.20
TWS_HIGH = 0.45
TWS_CRITICAL = 0.70


def classify_severity(tws: float) -> Severity:
    """Map a 0-1 threat weight score onto its severity band.

    The bands are half-open and cover [0, 1] without gaps:
      < 0.20 Low, [0.20, 0.45) Moderate, [0.45, 0.70) High, >= 0.70 Critical
    """
    if tws >= TWS_CRITICAL:
        return Severity.CRITICAL
    if tws >= TWS_HIGH:
        return Severity.HIGH
    if tws >= TWS_MODERATE:
        return Severity.MODERATE
    return Severity.LOW


class ChangeType(Enum):
    FIRE = "fire"
    LOGGING = "logging"
    VEGETATION_LOSS = "vegetation_loss"
    UNKNOWN = "unknown"


class ReportCategory(Enum):
    LOGGING = "logging"
    FIRE = "fire"
    ENCROACHMENT = "encroachment"
    WILDLIFE = "wildlife"
    OTHER = "other"


class AlertType(Enum):
    FIRE = "fire"
    LOGGING = "logging"
    ENCROACHMENT = "encroachment"
    CHARCOAL = "charcoal"
    DROUGHT = "drought"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "AlertType":
        """Lenient parse: unrecognised labels become UNKNOWN."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


# ── Input records ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class SatelliteTile:
    """One satellite change-detection polygon.

    ``coordinates`` holds (lat, lng) pairs; the ring is implicitly closed.
    """
    id: str
    coordinates: Tuple[Tuple[float, float], ...]
    risk_score: float
    change_type: ChangeType = ChangeType.UNKNOWN

    def __post_init__(self) -> None:
        if len(self.coordinates) < 3:
            raise ValueError(f"tile {self.id} needs at least 3 vertices")
        if not 0.0 <= self.risk_score <= 1.0:
            raise ValueError(f"tile {self.id} risk_score out of range: {self.risk_score}")

    @property
    def vertices(self) -> List[GeoPoint]:
        return [GeoPoint(lat, lng) for lat, lng in self.coordinates]

    @property
    def centroid(self) -> GeoPoint:
        n = len(self.coordinates)
        return GeoPoint(
            sum(c[0] for c in self.coordinates) / n,
            sum(c[1] for c in self.coordinates) / n,
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SatelliteTile":
        return cls(
            id=str(d["id"]),
            coordinates=tuple((float(c[0]), float(c[1])) for c in d["coordinates"]),
            risk_score=float(d["risk_score"]),
            change_type=ChangeType(d.get("change_type", "unknown")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "coordinates": [list(c) for c in self.coordinates],
            "risk_score": self.risk_score,
            "change_type": self.change_type.value,
        }


@dataclass(frozen=True)
class SensorReading:
    """IoT sensor sample (temperature in C, smoke 0-1, noise in dB)."""
    sensor_id: str
    location: GeoPoint
    temperature: float
    smoke_level: float
    noise_level: float
    timestamp: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SensorReading":
        return cls(
            sensor_id=str(d["sensor_id"]),
            location=GeoPoint.from_dict(d["location"]),
            temperature=float(d["temperature"]),
            smoke_level=float(d["smoke_level"]),
            noise_level=float(d["noise_level"]),
            timestamp=str(d.get("timestamp", "")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "sensor_id": self.sensor_id,
            "location": self.location.as_dict(),
            "temperature": self.temperature,
            "smoke_level": self.smoke_level,
            "noise_level": self.noise_level,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Report:
    """Community-submitted observation."""
    report_id: str
    location: GeoPoint
    category: ReportCategory
    description: str
    timestamp: str = ""
    image_tags: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Report":
        return cls(
            report_id=str(d["report_id"]),
            location=GeoPoint.from_dict(d["location"]),
            category=ReportCategory(d["category"]),
            description=str(d.get("description", "")),
            timestamp=str(d.get("timestamp", "")),
            image_tags=tuple(d.get("image_tags") or ()),
        )

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "report_id": self.report_id,
            "location": self.location.as_dict(),
            "category": self.category.value,
            "description": self.description,
            "timestamp": self.timestamp,
        }
        if self.image_tags:
            out["image_tags"] = list(self.image_tags)
        return out


@dataclass(frozen=True)
class ForestDataInput:
    """Dataset snapshot submitted for analysis."""
    satellite_tiles: Tuple[SatelliteTile, ...] = ()
    sensor_readings: Tuple[SensorReading, ...] = ()
    reports: Tuple[Report, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.satellite_tiles or self.sensor_readings or self.reports)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ForestDataInput":
        return cls(
            satellite_tiles=tuple(SatelliteTile.from_dict(t) for t in d.get("satellite_tiles", [])),
            sensor_readings=tuple(SensorReading.from_dict(s) for s in d.get("sensor_readings", [])),
            reports=tuple(Report.from_dict(r) for r in d.get("reports", [])),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "satellite_tiles": [t.as_dict() for t in self.satellite_tiles],
            "sensor_readings": [s.as_dict() for s in self.sensor_readings],
            "reports": [r.as_dict() for r in self.reports],
        }


# ── Analysis output ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Evidence:
    """IDs of the input records that support an alert."""
    satellite_ids: Tuple[str, ...] = ()
    sensor_ids: Tuple[str, ...] = ()
    report_ids: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "Evidence":
        d = d or {}
        return cls(
            satellite_ids=tuple(str(i) for i in d.get("satellite_ids") or ()),
            sensor_ids=tuple(str(i) for i in d.get("sensor_ids") or ()),
            report_ids=tuple(str(i) for i in d.get("report_ids") or ()),
        )

    def as_dict(self) -> Dict[str, List[str]]:
        return {
            "satellite_ids": list(self.satellite_ids),
            "sensor_ids": list(self.sensor_ids),
            "report_ids": list(self.report_ids),
        }


@dataclass(frozen=True)
class Alert:
    """A threat detected by the analysis service.

    ``id`` is assigned client-side at ingestion (``{epoch_ms}-{index}``);
    alerts parsed straight from a service response carry an empty id.
    """
    type: AlertType
    severity: Severity
    location: GeoPoint
    confidence: float
    threat_weight_score: float
    explanation: str = ""
    recommended_action: str = ""
    supporting_evidence: Evidence = field(default_factory=Evidence)
    id: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Alert":
        tws = float(d["threat_weight_score"])
        try:
            severity = Severity(d.get("severity"))
        except ValueError:
            # Missing or off-schema label: fall back to the score bands
            severity = classify_severity(tws)
        return cls(
            id=str(d.get("id", "")),
            type=AlertType.parse(d.get("type", "unknown")),
            severity=severity,
            location=GeoPoint.from_dict(d["location"]),
            confidence=float(d.get("confidence", tws)),
            threat_weight_score=tws,
            explanation=str(d.get("explanation", "")),
            recommended_action=str(d.get("recommended_action", "")),
            supporting_evidence=Evidence.from_dict(d.get("supporting_evidence")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "location": self.location.as_dict(),
            "confidence": self.confidence,
            "threat_weight_score": self.threat_weight_score,
            "explanation": self.explanation,
            "recommended_action": self.recommended_action,
            "supporting_evidence": self.supporting_evidence.as_dict(),
        }


@dataclass(frozen=True)
class Summary:
    overall_forest_risk: Severity = Severity.LOW
    key_hotspots: Tuple[str, ...] = ()
    notable_patterns: str = ""
    recommended_priority_zones: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Summary":
        return cls(
            overall_forest_risk=Severity(d["overall_forest_risk"]),
            key_hotspots=tuple(d.get("key_hotspots") or ()),
            notable_patterns=str(d.get("notable_patterns", "")),
            recommended_priority_zones=tuple(d.get("recommended_priority_zones") or ()),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "overall_forest_risk": self.overall_forest_risk.value,
            "key_hotspots": list(self.key_hotspots),
            "notable_patterns": self.notable_patterns,
            "recommended_priority_zones": list(self.recommended_priority_zones),
        }


@dataclass(frozen=True)
class ForestWatchResponse:
    alerts: Tuple[Alert, ...]
    summary: Summary
    timestamp: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ForestWatchResponse":
        return cls(
            alerts=tuple(Alert.from_dict(a) for a in d["alerts"]),
            summary=Summary.from_dict(d["summary"]),
            timestamp=str(d.get("timestamp", "")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "alerts": [a.as_dict() for a in self.alerts],
            "summary": self.summary.as_dict(),
            "timestamp": self.timestamp,
        }


# ── List helpers (alert tables) ───────────────────────────────────────

def filter_alerts(
    alerts: List[Alert],
    severity: Optional[Severity] = None,
    alert_type: Optional[AlertType] = None,
) -> List[Alert]:
    """Filter alerts by severity and/or type (``None`` = any)."""
    return [
        a for a in alerts
        if (severity is None or a.severity == severity)
        and (alert_type is None or a.type == alert_type)
    ]


def sort_by_severity(alerts: List[Alert]) -> List[Alert]:
    """Most severe first; ties broken by threat weight score."""
    return sorted(
        alerts,
        key=lambda a: (a.severity.rank, a.threat_weight_score),
        reverse=True,
    )
