"""Runtime settings, read from ``STOCKLEDGER_*`` environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from stockledger.domain.exceptions import DomainException

BACKENDS = ("json", "sql", "memory")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"


class ConfigurationError(DomainException):
    """An environment variable holds an unusable value."""


@dataclass(frozen=True)
class Settings:
    backend: str = "json"
    data_dir: Path = _DEFAULT_DATA_DIR
    database_url: str | None = None
    lock_timeout: float = 2.0
    retry_attempts: int = 5
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown backend {self.backend!r}, expected one of {', '.join(BACKENDS)}"
            )
        if self.lock_timeout <= 0:
            raise ConfigurationError(
                f"Lock timeout must be positive, got {self.lock_timeout}"
            )
        if self.retry_attempts < 1:
            raise ConfigurationError(
                f"Retry attempts must be at least 1, got {self.retry_attempts}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level {self.log_level!r}")

    @property
    def inventory_file(self) -> Path:
        return self.data_dir / "inventory.json"

    @property
    def resolved_database_url(self) -> str:
        return self.database_url or f"sqlite:///{self.data_dir / 'inventory.db'}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        data_dir = env.get("STOCKLEDGER_DATA_DIR")
        return cls(
            backend=env.get("STOCKLEDGER_BACKEND", "json").lower(),
            data_dir=Path(data_dir) if data_dir else _DEFAULT_DATA_DIR,
            database_url=env.get("STOCKLEDGER_DATABASE_URL") or None,
            lock_timeout=_parse(env, "STOCKLEDGER_LOCK_TIMEOUT", float, 2.0),
            retry_attempts=_parse(env, "STOCKLEDGER_RETRY_ATTEMPTS", int, 5),
            log_level=env.get("STOCKLEDGER_LOG_LEVEL", "INFO").upper(),
        )


def _parse(env: Mapping[str, str], name: str, cast, default):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from exc
