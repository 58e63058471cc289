"""User settings stored as JSON under ~/.config/pi-transcript."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .sessions import get_sessions_dir

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path.home() / ".config" / "pi-transcript" / "config.json"
DEFAULT_OUTPUT_DIR = Path("pi-archive")


def _path_or_none(value: Any) -> Optional[Path]:
    return Path(value) if isinstance(value, str) and value else None


@dataclass
class Config:
    """Where sessions are read from and where the archive is written."""

    sessions_dir: Path = field(default_factory=get_sessions_dir)
    output_dir: Path = DEFAULT_OUTPUT_DIR

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Build a config from stored settings; missing or blank keys take defaults."""
        cfg = cls()
        sessions_dir = _path_or_none(data.get("sessions_dir"))
        if sessions_dir is not None:
            cfg.sessions_dir = sessions_dir
        output_dir = _path_or_none(data.get("output_dir"))
        if output_dir is not None:
            cfg.output_dir = output_dir
        return cfg

    def to_dict(self) -> dict:
        return {
            "sessions_dir": str(self.sessions_dir),
            "output_dir": str(self.output_dir),
        }

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Read the config file, falling back to defaults if it is absent or unreadable."""
        path = config_path or DEFAULT_CONFIG_FILE
        if not path.exists():
            return cls()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable config file %s: %s", path, e)
            return cls()
        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: expected a JSON object", path)
            return cls()
        return cls.from_dict(data)

    def save(self, config_path: Optional[Path] = None) -> Path:
        path = config_path or DEFAULT_CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        return path
