"""Locally persisted kiosk configuration."""

from dataclasses import dataclass
from typing import Protocol

STORE_URL_KEY = "store_base_url"


class LocalConfigRepository(Protocol):
    """Persistence interface for configuration that survives restarts."""

    def load(self) -> dict[str, object]:
        """Return the stored values, or an empty mapping."""

    def save(self, values: dict[str, object]) -> None:
        """Replace the stored values."""


@dataclass
class LocalConfigService:
    """Service for the cached remote store URL."""

    repository: LocalConfigRepository

    def get_store_url(self, default: str | None = None) -> str | None:
        """Return the cached store URL, falling back to ``default``."""
        value = self.repository.load().get(STORE_URL_KEY)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return default

    def set_store_url(self, url: str) -> str:
        """Cache a new store URL and return the normalised value."""
        cleaned = url.strip().rstrip("/")
        values = dict(self.repository.load())
        values[STORE_URL_KEY] = cleaned
        self.repository.save(values)
        return cleaned
