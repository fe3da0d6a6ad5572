"""Tracker configuration."""

import os
from dataclasses import dataclass, field, fields
from typing import Any

from dotenv import find_dotenv, load_dotenv

from snippet_tracker.core.constants import (
    DEFAULT_METADATA_PATH,
    DEFAULT_MODIFICATION_THRESHOLD,
    DEFAULT_RETAG_THRESHOLD,
    DEFAULT_STALENESS_DAYS,
    SUPPORTED_EXTENSIONS,
)

ENV_PREFIX = "SNIPPET_TRACKER_"

# Keys sent by the editor extension settings.
_CAMEL_CASE_KEYS = {
    "modificationThreshold": "modification_threshold",
    "retagThreshold": "retag_threshold",
    "stalenessDays": "staleness_days",
    "idStrategy": "id_strategy",
    "supportedExtensions": "supported_extensions",
    "logDir": "log_dir",
    "logOnlyChanges": "log_only_changes",
    "metadataPath": "metadata_path",
}

_ID_STRATEGIES = ("content", "random")


def _env_flag(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TrackerConfig:
    """Configuration for the annotation lifecycle engine."""

    modification_threshold: int = DEFAULT_MODIFICATION_THRESHOLD
    retag_threshold: int = DEFAULT_RETAG_THRESHOLD
    staleness_days: float = DEFAULT_STALENESS_DAYS
    id_strategy: str = "content"
    supported_extensions: tuple[str, ...] = field(default=SUPPORTED_EXTENSIONS)
    log_dir: str | None = None
    log_only_changes: bool = False
    metadata_path: str = DEFAULT_METADATA_PATH

    def __post_init__(self) -> None:
        self.supported_extensions = tuple(ext.lower() for ext in self.supported_extensions)
        if not 0 < self.modification_threshold <= 100:
            raise ValueError(
                f"modification_threshold must be in (0, 100], got {self.modification_threshold}"
            )
        if not 0 < self.retag_threshold < self.modification_threshold:
            raise ValueError(
                "retag_threshold must be positive and below modification_threshold, "
                f"got {self.retag_threshold} (modification_threshold={self.modification_threshold})"
            )
        if self.staleness_days <= 0:
            raise ValueError(f"staleness_days must be positive, got {self.staleness_days}")
        if self.id_strategy not in _ID_STRATEGIES:
            raise ValueError(
                f"Unknown id_strategy: {self.id_strategy}. Supported: {list(_ID_STRATEGIES)}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "modification_threshold": self.modification_threshold,
            "retag_threshold": self.retag_threshold,
            "staleness_days": self.staleness_days,
            "id_strategy": self.id_strategy,
            "supported_extensions": list(self.supported_extensions),
            "log_dir": self.log_dir,
            "log_only_changes": self.log_only_changes,
            "metadata_path": self.metadata_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackerConfig":
        """Build a config from snake_case or editor camelCase keys; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        if "supported_extensions" in kwargs:
            kwargs["supported_extensions"] = tuple(kwargs["supported_extensions"])
        return cls(**kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> "TrackerConfig":
        """Read ``SNIPPET_TRACKER_*`` variables (a ``.env`` file is honoured)."""
        load_dotenv(find_dotenv(usecwd=True))
        data: dict[str, Any] = {}
        for name, convert in (
            ("modification_threshold", int),
            ("retag_threshold", int),
            ("staleness_days", float),
            ("id_strategy", str),
            ("log_dir", str),
            ("metadata_path", str),
            ("log_only_changes", _env_flag),
        ):
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw:
                data[name] = convert(raw)
        extensions = os.getenv(ENV_PREFIX + "SUPPORTED_EXTENSIONS")
        if extensions:
            data["supported_extensions"] = tuple(
                ext.strip() for ext in extensions.split(",") if ext.strip()
            )
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)
