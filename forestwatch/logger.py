from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import Settings

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(settings: Optional[Settings] = None, debug: bool = False) -> Path:
    settings = settings or Settings.from_env()
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    logfile = log_dir / "forestwatch.log"
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=_FORMAT,
        handlers=[
            logging.FileHandler(logfile),
            logging.StreamHandler(),
        ],
    )
    # google-genai / httpx are chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logfile


def write_analysis_event(event: Dict[str, Any], log_dir: Path) -> Path:
    """Dump one analysis outcome as a JSON file next to the log."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / f"analysis_{event.get('operation', 'run')}_{ts}.json"
    with path.open("w", encoding="utf-8") as f:
        json.dump(event, f, indent=2)
    return path
