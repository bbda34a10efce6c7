"""Runtime configuration for background tasks and their collaborators."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_FETCH_TIMEOUT_SECONDS = 3.0
DEFAULT_USER_AGENT = "asset-ingester/1.0 (+metadata-fetch)"
_SUPPORTED_METRICS_BACKENDS = {"none", "prometheus"}


@dataclass(slots=True)
class FetchSettings:
    """Remote metadata retrieval settings."""

    timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = True


@dataclass(slots=True)
class MetricsSettings:
    """Counter sink settings."""

    backend: str = "none"
    prefix: str = "ingester"


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".asset_ingester.db")
    busy_timeout_ms: int = 5_000
    log_level: str = "INFO"
    fetch: FetchSettings = field(default_factory=FetchSettings)
    metrics: MetricsSettings = field(default_factory=MetricsSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("ASSET_INGESTER_DB_PATH", ".asset_ingester.db")),
            busy_timeout_ms=int(os.getenv("ASSET_INGESTER_BUSY_TIMEOUT_MS", "5000")),
            log_level=os.getenv("ASSET_INGESTER_LOG_LEVEL", "INFO").strip().upper(),
            fetch=FetchSettings(
                timeout_seconds=float(
                    os.getenv(
                        "ASSET_INGESTER_FETCH_TIMEOUT_SECONDS",
                        str(DEFAULT_FETCH_TIMEOUT_SECONDS),
                    ),
                ),
                user_agent=os.getenv("ASSET_INGESTER_USER_AGENT", DEFAULT_USER_AGENT),
                follow_redirects=_env_bool("ASSET_INGESTER_FOLLOW_REDIRECTS", default=True),
            ),
            metrics=MetricsSettings(
                backend=os.getenv("ASSET_INGESTER_METRICS_BACKEND", "none").strip().lower(),
                prefix=os.getenv("ASSET_INGESTER_METRICS_PREFIX", "ingester").strip(),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error on out-of-range values."""

        if self.fetch.timeout_seconds <= 0:
            raise ValueError("ASSET_INGESTER_FETCH_TIMEOUT_SECONDS must be > 0.")
        if self.busy_timeout_ms <= 0:
            raise ValueError("ASSET_INGESTER_BUSY_TIMEOUT_MS must be > 0.")
        if self.metrics.backend not in _SUPPORTED_METRICS_BACKENDS:
            raise ValueError(
                "Invalid ASSET_INGESTER_METRICS_BACKEND: "
                f"{self.metrics.backend!r}. Expected one of {sorted(_SUPPORTED_METRICS_BACKENDS)}.",
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Invalid ASSET_INGESTER_LOG_LEVEL: {self.log_level!r}")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
