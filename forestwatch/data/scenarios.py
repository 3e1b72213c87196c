"""
Demo scenarios and the live-simulation tick.

Four canned datasets around a base point east of Nairobi:

  healthy-forest      two quiet sensors, nothing else
  imminent-wildfire   one burning tile, two hot smoky sensors, one report
  illegal-logging     cleared tile, two noisy sensors, two chainsaw reports
  drought-stress      two vegetation-loss tiles, one very hot sensor

``generate`` is deterministic apart from timestamps.  ``tick`` returns a
perturbed copy for the live simulation; pass a seeded numpy Generator
for reproducible runs.

Usage
-----
    data = generate("imminent-wildfire")
    rng = np.random.default_rng(7)
    for _ in range(10):
        data = tick(data, "imminent-wildfire", rng)
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from ..models.forest import (
    ChangeType,
    ForestDataInput,
    GeoPoint,
    Report,
    ReportCategory,
    SatelliteTile,
    SensorReading,
)

log = logging.getLogger(__name__)

BASE = GeoPoint(-1.25, 36.85)
DEFAULT_SCENARIO = "healthy-forest"

_TILE_HALF_SIZE = 0.05   # degrees
_MAX_LOGGING_REPORTS = 4


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _at(dlat: float = 0.0, dlng: float = 0.0) -> GeoPoint:
    return GeoPoint(BASE.lat + dlat, BASE.lng + dlng)


def _tile(tile_id: str, center: GeoPoint, risk: float, change: ChangeType) -> SatelliteTile:
    h = _TILE_HALF_SIZE
    lat, lng = center.lat, center.lng
    return SatelliteTile(
        id=tile_id,
        coordinates=(
            (lat - h, lng - h),
            (lat - h, lng + h),
            (lat + h, lng + h),
            (lat + h, lng - h),
        ),
        risk_score=risk,
        change_type=change,
    )


def _sensor(sensor_id: str, loc: GeoPoint, temp: float, smoke: float, noise: float) -> SensorReading:
    return SensorReading(sensor_id, loc, temp, smoke, noise, timestamp=_now())


def _report(report_id: str, loc: GeoPoint, category: ReportCategory, text: str) -> Report:
    return Report(report_id, loc, category, text, timestamp=_now())


# ── Scenario builders ─────────────────────────────────────────────────

def _imminent_wildfire() -> ForestDataInput:
    return ForestDataInput(
        satellite_tiles=(_tile("tile-fire-A", BASE, 0.95, ChangeType.FIRE),),
        sensor_readings=(
            _sensor("sensor-fire-1", _at(0.01, 0.01), 85.5, 0.9, 30.2),
            _sensor("sensor-fire-2", _at(-0.02, -0.01), 70.1, 0.75, 25.0),
        ),
        reports=(
            _report("report-fire-1", BASE, ReportCategory.FIRE,
                    "Visible smoke plume reported near the old trail."),
        ),
    )


def _illegal_logging() -> ForestDataInput:
    return ForestDataInput(
        satellite_tiles=(_tile("tile-log-A", _at(0.3, 0.3), 0.8, ChangeType.VEGETATION_LOSS),),
        sensor_readings=(
            _sensor("sensor-log-1", _at(0.31, 0.29), 35.1, 0.1, 95.8),
            _sensor("sensor-log-2", _at(0.28, 0.32), 33.0, 0.15, 88.1),
        ),
        reports=(
            _report("report-log-1", _at(0.3, 0.3), ReportCategory.LOGGING,
                    "Heard chainsaws and saw trucks leaving the area."),
            _report("report-log-2", _at(0.305, 0.305), ReportCategory.LOGGING,
                    "Second report confirming logging activity."),
        ),
    )


def _healthy_forest() -> ForestDataInput:
    return ForestDataInput(
        sensor_readings=(
            _sensor("sensor-healthy-1", BASE, 28.5, 0.05, 25.1),
            _sensor("sensor-healthy-2", _at(0.3, 0.3), 29.1, 0.04, 22.8),
        ),
    )


def _drought_stress() -> ForestDataInput:
    return ForestDataInput(
        satellite_tiles=(
            _tile("tile-drought-A", BASE, 0.6, ChangeType.VEGETATION_LOSS),
            _tile("tile-drought-B", _at(0.1, -0.1), 0.65, ChangeType.VEGETATION_LOSS),
        ),
        sensor_readings=(_sensor("sensor-drought-1", BASE, 46.0, 0.1, 30.0),),
    )


SCENARIOS: Dict[str, Callable[[], ForestDataInput]] = {
    "healthy-forest": _healthy_forest,
    "imminent-wildfire": _imminent_wildfire,
    "illegal-logging": _illegal_logging,
    "drought-stress": _drought_stress,
}


def scenario_ids() -> Tuple[str, ...]:
    return tuple(SCENARIOS)


def generate(scenario_id: str) -> ForestDataInput:
    """Build the dataset for ``scenario_id`` (unknown ids give healthy-forest)."""
    builder = SCENARIOS.get(scenario_id)
    if builder is None:
        log.warning("Unknown scenario %r, using %s", scenario_id, DEFAULT_SCENARIO)
        builder = SCENARIOS[DEFAULT_SCENARIO]
    return builder()


# ── Live simulation ───────────────────────────────────────────────────

def tick(
    data: ForestDataInput,
    scenario_id: str,
    rng: Optional[np.random.Generator] = None,
) -> ForestDataInput:
    """One simulation step: a perturbed copy of ``data``.

    imminent-wildfire
        temperature rises by [0, 5) capped at 100; smoke by [0, 0.1) capped at 1.
    illegal-logging
        noise above 50 dB drifts (biased upwards) but never below 50; with
        probability 0.2 another chainsaw report is filed, up to 4 reports.
    anything else
        temperature, smoke and noise jitter symmetrically; smoke stays in [0, 1].
    """
    rng = rng if rng is not None else np.random.default_rng()

    if scenario_id == "imminent-wildfire":
        sensors = tuple(
            replace(
                s,
                temperature=min(100.0, s.temperature + rng.random() * 5),
                smoke_level=min(1.0, s.smoke_level + rng.random() * 0.1),
            )
            for s in data.sensor_readings
        )
        return replace(data, sensor_readings=sensors)

    if scenario_id == "illegal-logging":
        sensors = []
        for s in data.sensor_readings:
            r = rng.random()
            if s.noise_level > 50:
                s = replace(s, noise_level=max(50.0, s.noise_level + (r - 0.3) * 10))
            sensors.append(s)
        reports = data.reports
        if rng.random() > 0.8 and len(reports) < _MAX_LOGGING_REPORTS:
            jitter_lat, jitter_lng = (rng.random() - 0.5) * 0.02, (rng.random() - 0.5) * 0.02
            new = _report(
                f"report-log-{len(reports) + 1}",
                _at(0.3 + jitter_lat, 0.3 + jitter_lng),
                ReportCategory.LOGGING,
                "More chainsaw sounds detected.",
            )
            log.debug("Simulation filed %s", new.report_id)
            reports = reports + (new,)
        return replace(data, sensor_readings=tuple(sensors), reports=reports)

    sensors = tuple(
        replace(
            s,
            temperature=s.temperature + (rng.random() - 0.5) * 2,
            smoke_level=max(0.0, min(1.0, s.smoke_level + (rng.random() - 0.5) * 0.02)),
            noise_level=s.noise_level + (rng.random() - 0.5) * 5,
        )
        for s in data.sensor_readings
    )
    return replace(data, sensor_readings=sensors)
