"""Configuration helpers for docmost-sync."""

from __future__ import annotations

import dataclasses
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, HttpUrl, ValidationError, field_validator

from docmost_sync.errors import ConfigError
from docmost_sync.lock import DEFAULT_LOCK_FILE

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_OUTPUT_DIR = Path("./output")
DEFAULT_HTTP_PORT = ":8080"

FALLBACK_INTERVAL = 3600.0

DEFAULT_CONFIG_PATHS = (
    Path.cwd() / "docmost-sync.toml",
    Path.home() / ".config" / "docmost-sync" / "config.toml",
)


# ----------------------------------------------------------------------
# Durations
# ----------------------------------------------------------------------
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse a Go style duration such as ``90s``, ``30m`` or ``1h30m`` into seconds."""

    text = value.strip()
    sign = 1.0
    if text and text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise ValueError(f"invalid duration {value!r}")

    total = 0.0
    position = 0
    for match in _DURATION_PART_RE.finditer(text):
        if match.start() != position:
            raise ValueError(f"invalid duration {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return sign * total


def parse_interval(value: Optional[str]) -> Optional[float]:
    """Return the sync interval in seconds, or ``None`` for one-shot mode.

    An unparseable value falls back to one hour.
    """

    if value is None or not value.strip():
        return None
    try:
        seconds = parse_duration(value)
    except ValueError:
        logger.warning("Invalid sync interval %r, falling back to 1h", value)
        return FALLBACK_INTERVAL
    return seconds if seconds > 0 else None


def format_duration(seconds: float) -> str:
    """Render ``seconds`` rounded to whole seconds, e.g. ``1h30m0s``."""

    total = max(0, int(round(seconds)))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


# ----------------------------------------------------------------------
# Models
# ----------------------------------------------------------------------
class DocmostCredentials(BaseModel):
    """Connection information for the Docmost API."""

    base_url: HttpUrl = Field(HttpUrl(DEFAULT_BASE_URL), description="Base URL of the Docmost server")
    email: str = Field(..., min_length=1, description="Login email")
    password: str = Field(..., min_length=1, description="Login password")


class SyncSettings(BaseModel):
    """Where and how often spaces are exported."""

    output_dir: Path = Field(DEFAULT_OUTPUT_DIR, description="Root directory for published spaces")
    interval: Optional[float] = Field(
        None, description="Seconds between runs; unset means run once and exit"
    )
    http_port: str = Field(DEFAULT_HTTP_PORT, description="Listen address of the health endpoint")
    lock_file: Path = Field(DEFAULT_LOCK_FILE, description="Path of the single-instance lock file")
    converge: bool = Field(False, description="Repeat reconciliation until nothing changes")

    @field_validator("interval", mode="before")
    @classmethod
    def _parse_interval(cls, value: Any) -> Optional[float]:
        if value is None or isinstance(value, (int, float)):
            return float(value) if value and value > 0 else None
        return parse_interval(str(value))


class AppConfig(BaseModel):
    """Aggregate configuration for the exporter."""

    credentials: DocmostCredentials
    sync: SyncSettings = Field(default_factory=SyncSettings)


@dataclasses.dataclass
class ConfigSource:
    """Result of attempting to resolve configuration data."""

    config: Optional[AppConfig]
    path: Optional[Path]
    error: Optional[Exception]


# ----------------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------------
_ENV_CREDENTIALS = {
    "DOCMOST_BASE_URL": "base_url",
    "DOCMOST_EMAIL": "email",
    "DOCMOST_PASSWORD": "password",
}
_ENV_SYNC = {
    "OUTPUT_DIR": "output_dir",
    "SYNC_INTERVAL": "interval",
    "HTTP_PORT": "http_port",
    "LOCK_FILE": "lock_file",
}
_MISSING_ERROR_TYPES = frozenset({"missing", "string_too_short"})


def _load_from_env() -> Optional[dict[str, Any]]:
    """Return configuration data from environment variables, or ``None`` if none are set."""

    credentials = {
        key: value for name, key in _ENV_CREDENTIALS.items() if (value := os.getenv(name))
    }
    sync = {key: value for name, key in _ENV_SYNC.items() if (value := os.getenv(name))}
    if not credentials and not sync:
        return None
    return {"credentials": credentials, "sync": sync}


def _load_toml(path: Path) -> Optional[dict]:
    if not path.exists():
        return None

    try:  # Python 3.11+
        import tomllib  # type: ignore
    except ModuleNotFoundError:  # pragma: no cover - Python <3.11 fallback
        import tomli as tomllib  # type: ignore

    with path.open("rb") as handle:
        return tomllib.load(handle)


def resolve_config(explicit_path: Optional[Path] = None) -> ConfigSource:
    """Discover configuration using the first available source.

    The priority order is:
    1. Explicit path provided via CLI argument.
    2. ``./docmost-sync.toml`` or ``~/.config/docmost-sync/config.toml``.
    3. Environment variables (``DOCMOST_*``, ``OUTPUT_DIR``, ``SYNC_INTERVAL``...).
    """

    errors: list[Exception] = []
    sources: list[tuple[Optional[Path], dict]] = []

    if explicit_path:
        try:
            data = _load_toml(explicit_path)
        except (OSError, ValueError) as exc:
            errors.append(exc)
        else:
            if data is None:
                errors.append(FileNotFoundError(f"configuration file {explicit_path} not found"))
            else:
                sources.append((explicit_path, data))

    if not sources and not explicit_path:
        for path in DEFAULT_CONFIG_PATHS:
            try:
                data = _load_toml(path)
            except (OSError, ValueError) as exc:
                errors.append(exc)
                continue
            if data is not None:
                sources.append((path, data))
                break

    if not sources and not explicit_path:
        env_data = _load_from_env()
        if env_data is not None:
            sources.append((None, env_data))

    for path, data in sources:
        try:
            config = AppConfig.model_validate(data)
            return ConfigSource(config=config, path=path, error=None)
        except ValidationError as exc:
            errors.append(exc)

    error = errors[0] if errors else None
    return ConfigSource(config=None, path=None, error=error)


def ensure_config(
    *,
    base_url: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    output_dir: Optional[Path] = None,
    interval: Optional[str] = None,
    once: bool = False,
    http_port: Optional[str] = None,
    lock_file: Optional[Path] = None,
    converge: Optional[bool] = None,
    config_path: Optional[Path] = None,
) -> AppConfig:
    """Resolve configuration from precedence order and apply explicit CLI options on top."""

    source = resolve_config(config_path)

    data: dict[str, Any]
    if source.config is not None:
        data = source.config.model_dump(mode="json")
        if source.path is not None:
            logger.debug("Loaded configuration from %s", source.path)
    elif config_path:
        # Incomplete files are topped up by CLI options below.
        if not isinstance(source.error, ValidationError):
            raise ConfigError(f"Cannot read configuration file {config_path}: {source.error}")
        data = _load_toml(config_path) or {}
    else:
        data = _load_from_env() or {}
    data.setdefault("credentials", {})
    data.setdefault("sync", {})
    overrides = {"base_url": base_url, "email": email, "password": password}
    data["credentials"].update({key: value for key, value in overrides.items() if value})
    sync_overrides = {
        "output_dir": output_dir,
        "interval": interval,
        "http_port": http_port,
        "lock_file": lock_file,
    }
    data["sync"].update({key: value for key, value in sync_overrides.items() if value})
    if converge is not None:
        data["sync"]["converge"] = converge
    if once:
        data["sync"]["interval"] = None

    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        missing = sorted(
            str(error["loc"][-1])
            for error in exc.errors()
            if error["loc"][0] == "credentials" and error["type"] in _MISSING_ERROR_TYPES
        )
        if missing:
            raise ConfigError(
                "Missing Docmost credentials ("
                + ", ".join(missing)
                + "). Provide them via CLI options, DOCMOST_EMAIL / DOCMOST_PASSWORD"
                " environment variables or a configuration file"
            ) from exc
        raise ConfigError(f"Invalid configuration: {exc}") from exc
