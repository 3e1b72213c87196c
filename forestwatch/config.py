"""
Runtime configuration.

Map geometry and analysis constants live here as module-level values;
anything that differs between machines (API credential, model name, log
location) comes from the environment through :class:`Settings`.

Environment
-----------
GEMINI_API_KEY / API_KEY
    Credential for the hosted analysis model (only the AnalysisService
    reads it).
FORESTWATCH_MODEL
    Model name (default ``gemini-2.5-flash``).
FORESTWATCH_LOG_DIR
    Directory for the log file and analysis event dumps (default ``logs``).
FORESTWATCH_KIOSK
    Any non-empty value starts the dashboard full screen.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# ── Render surface ────────────────────────────────────────────────────

MAP_WIDTH = 800.0
MAP_HEIGHT = 1000.0
FIT_PADDING = 150.0          # px kept clear around fitted bounds
DEGENERATE_SCALE = 50.0      # scale used when fitting a single point

# ── Zoom factors per fit target ───────────────────────────────────────

ZOOM_ALL_DATA = 0.9
ZOOM_ALERTS = 0.9
ZOOM_USER_LOCATION = 2.5
ZOOM_SELECTION = 8.0

TRANSITION_S = 0.75          # viewport animation duration

# ── Heat layer ────────────────────────────────────────────────────────

HEAT_RADIUS_CRITICAL = 80.0
HEAT_RADIUS_HIGH = 60.0
HEAT_RADIUS_DEFAULT = 40.0
HEAT_SENSOR_RADIUS = 40.0
HEAT_SENSOR_MIN_TEMP_C = 35.0

# ── Analysis service ──────────────────────────────────────────────────

DEFAULT_MODEL = "gemini-2.5-flash"
TEMPERATURE_FOREST = 0.1
TEMPERATURE_WASTE = 0.1
TEMPERATURE_INCENTIVES = 0.3   # policy suggestions benefit from some variety
TEMPERATURE_KNOWLEDGE = 0.4
TEMPERATURE_BOTANIST = 0.2

# ── Live simulation ───────────────────────────────────────────────────

SIMULATION_INTERVAL_S = 3.0


@dataclass(frozen=True)
class Settings:
    """Machine-specific settings resolved from the environment."""

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    log_dir: Path = Path("logs")
    kiosk: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
        return cls(
            api_key=api_key or None,
            model=os.environ.get("FORESTWATCH_MODEL", DEFAULT_MODEL),
            log_dir=Path(os.environ.get("FORESTWATCH_LOG_DIR", "logs")),
            kiosk=bool(os.environ.get("FORESTWATCH_KIOSK")),
        )
