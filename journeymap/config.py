"""Application settings and data locations for Journeymap."""

import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.json"
DOCUMENT_FILENAME = "journey.json"


def get_data_dir() -> Path:
    """Get the application data directory.

    JOURNEYMAP_DATA_DIR overrides the default location.
    """
    override = os.environ.get("JOURNEYMAP_DATA_DIR")
    if override:
        data_dir = Path(override).expanduser()
    else:
        data_dir = Path.home() / ".local" / "share" / "journeymap"
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "exports").mkdir(exist_ok=True)
    (data_dir / "backups").mkdir(exist_ok=True)
    return data_dir


def get_settings_path() -> Path:
    """Get the settings file path."""
    return get_data_dir() / SETTINGS_FILENAME


def get_document_path() -> Path:
    """Get the default journey document path."""
    return get_data_dir() / DOCUMENT_FILENAME


@dataclass
class JourneySettings:
    """Tunable constants for the canvas, animator and popup."""
    canvas_width: float = 520.0
    canvas_height: float = 500.0
    edge_margin: float = 20.0
    popup_width: float = 200.0
    popup_threshold: float = 300.0
    popup_margin: float = 16.0
    transition_ms: int = 1000
    frame_interval_ms: int = 16
    max_upload_bytes: int = 5 * 1024 * 1024
    autosave_interval: int = 30  # seconds, 0 disables
    backup_count: int = 10

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, data: Optional[str]) -> "JourneySettings":
        if not data:
            return cls()
        try:
            d = json.loads(data)
            # Filter to only known fields to handle schema evolution
            known = {f.name for f in cls.__dataclass_fields__.values()}
            return cls(**{k: v for k, v in d.items() if k in known})
        except (json.JSONDecodeError, TypeError, AttributeError):
            logger.warning("Ignoring unreadable settings, using defaults")
            return cls()


def load_settings(path: Optional[Path] = None) -> JourneySettings:
    """Load settings from disk, falling back to defaults."""
    path = path or get_settings_path()
    if not path.exists():
        return JourneySettings()
    try:
        return JourneySettings.from_json(path.read_text(encoding="utf-8"))
    except OSError as exc:
        logger.warning("Could not read settings from %s: %s", path, exc)
        return JourneySettings()


def save_settings(settings: JourneySettings, path: Optional[Path] = None) -> None:
    """Write settings to disk."""
    path = path or get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(settings.to_json(), encoding="utf-8")
