"""JSON file storage for local kiosk configuration."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from ai_photobooth.services.local_config import LocalConfigRepository

logger = logging.getLogger(__name__)


@dataclass
class JsonLocalConfigRepository(LocalConfigRepository):
    """Keeps local configuration in a small JSON document."""

    path: Path

    def load(self) -> dict[str, object]:
        """Return stored values; unreadable files count as empty."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt local config at %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, values: dict[str, object]) -> None:
        """Write values atomically next to the target file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(values, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)
