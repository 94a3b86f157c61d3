"""Reaper configuration.

Settings come from three layers, later ones winning:

1. ``hostreaper.toml`` in the working directory (or an explicit path),
   with ``[reaper]`` and ``[logging]`` tables;
2. environment variables (``CATTLE_URL``, ``CATTLE_ACCESS_KEY``,
   ``CATTLE_SECRET_KEY``, ``REAPER_*``, ``AWS_REGION``);
3. explicit overrides, usually from the command line.

The result is an immutable ``ReaperConfig`` passed to component
constructors; nothing reads process state after loading.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, TypeAlias

from hostreaper.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_AVAILABILITY_ZONE_LABEL,
    DEFAULT_HOME_REGION,
    DEFAULT_HOSTS_PER_PAGE,
    DEFAULT_INSTANCE_ID_LABEL,
    DEFAULT_INTERVAL_SECS,
    DEFAULT_REQUEST_TIMEOUT,
)
from hostreaper.errors import ConfigurationError
from hostreaper.observability.logging import LogConfig

RawConfig: TypeAlias = dict[str, Any]


@dataclass(frozen=True, slots=True)
class ReaperConfig:
    """Reaper configuration.

    Args:
        url: Orchestrator API base URL (e.g. ``http://rancher:8080/v1``).
        access_key: Orchestrator API access key.
        secret_key: Orchestrator API secret key.
        interval_secs: Seconds between passes. Non-positive runs one pass.
        hosts_per_page: Page size for inventory queries.
        instance_id_label: Host label holding the EC2 instance id.
        availability_zone_label: Host label holding the EC2 availability zone.
        home_region: Region used for the one-time region bootstrap.
        concurrency: Hosts reconciled in parallel within a pass.
        request_timeout: Orchestrator HTTP timeout in seconds.
        strict_purge_race: Only treat documented error types as the purge race.
        log: Logging configuration.
    """

    url: str = ""
    access_key: str | None = None
    secret_key: str | None = None
    interval_secs: float = DEFAULT_INTERVAL_SECS
    hosts_per_page: int = DEFAULT_HOSTS_PER_PAGE
    instance_id_label: str = DEFAULT_INSTANCE_ID_LABEL
    availability_zone_label: str = DEFAULT_AVAILABILITY_ZONE_LABEL
    home_region: str = DEFAULT_HOME_REGION
    concurrency: int = 1
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    strict_purge_race: bool = False
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def single_pass(self) -> bool:
        return self.interval_secs <= 0

    def validate(self) -> ReaperConfig:
        if not self.url:
            raise ConfigurationError("Orchestrator URL is required (CATTLE_URL or [reaper].url)")
        if self.hosts_per_page <= 0:
            raise ConfigurationError(f"hosts_per_page must be positive, got {self.hosts_per_page}")
        if self.concurrency <= 0:
            raise ConfigurationError(f"concurrency must be positive, got {self.concurrency}")
        if not self.instance_id_label or not self.availability_zone_label:
            raise ConfigurationError("Label names must not be empty")
        return self


# =============================================================================
# Loading
# =============================================================================

_ENV_VARS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "CATTLE_URL": ("url", str),
    "CATTLE_ACCESS_KEY": ("access_key", str),
    "CATTLE_SECRET_KEY": ("secret_key", str),
    "REAPER_INTERVAL_SECS": ("interval_secs", float),
    "REAPER_HOSTS_PER_PAGE": ("hosts_per_page", int),
    "REAPER_INSTANCE_ID_LABEL": ("instance_id_label", str),
    "REAPER_AVAILABILITY_ZONE_LABEL": ("availability_zone_label", str),
    "AWS_REGION": ("home_region", str),
    "REAPER_CONCURRENCY": ("concurrency", int),
}

_LOG_ENV_VARS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "REAPER_LOG_LEVEL": ("level", str.upper),
    "REAPER_LOG_FILE": ("file", str),
}


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e


def _from_env(env: Mapping[str, str]) -> RawConfig:
    def collect(table: dict[str, tuple[str, Callable[[str], Any]]]) -> RawConfig:
        out: RawConfig = {}
        for var, (key, convert) in table.items():
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            try:
                out[key] = convert(raw)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {var}: {raw!r}") from e
        return out

    raw: RawConfig = {}
    if reaper := collect(_ENV_VARS):
        raw["reaper"] = reaper
    if log := collect(_LOG_ENV_VARS):
        raw["logging"] = log
    return raw


_NUMBER = (int, float)

_FIELD_TYPES: dict[str, type | tuple[type, ...]] = {
    "url": str,
    "access_key": str,
    "secret_key": str,
    "interval_secs": _NUMBER,
    "hosts_per_page": int,
    "instance_id_label": str,
    "availability_zone_label": str,
    "home_region": str,
    "concurrency": int,
    "request_timeout": _NUMBER,
    "strict_purge_race": bool,
}

_LOG_FIELD_TYPES: dict[str, type | tuple[type, ...]] = {
    "level": str,
    "file": str,
    "console": bool,
    "rotation": str,
    "retention": (int, str),
}


def _check_types(section: str, values: RawConfig, expected: dict[str, type | tuple[type, ...]]) -> None:
    unknown = set(values) - set(expected)
    if unknown:
        raise ConfigurationError(f"Unknown [{section}] keys: {', '.join(sorted(unknown))}")
    for key, value in values.items():
        kind = expected[key]
        # bool is an int subclass; only accept it where a bool is expected
        wrong_bool = isinstance(value, bool) and kind is not bool
        if wrong_bool or not isinstance(value, kind):
            raise ConfigurationError(
                f"[{section}].{key} has wrong type {type(value).__name__}: {value!r}"
            )


def _table(raw: RawConfig, section: str) -> RawConfig:
    value = raw.get(section, {})
    if not isinstance(value, dict):
        raise ConfigurationError(f"[{section}] must be a table, got {type(value).__name__}")
    return dict(value)


def _build(raw: RawConfig) -> ReaperConfig:
    reaper = _table(raw, "reaper")
    _check_types("reaper", reaper, _FIELD_TYPES)
    log_raw = _table(raw, "logging")
    _check_types("logging", log_raw, _LOG_FIELD_TYPES)
    return ReaperConfig(**reaper, log=LogConfig(**log_raw))


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ReaperConfig:
    """Load and validate configuration.

    Args:
        path: Explicit TOML file. Defaults to ``hostreaper.toml`` in the cwd.
        env: Environment mapping. Defaults to ``os.environ``.
        overrides: ``ReaperConfig`` field values applied last; ``None``
            values are ignored. A ``log_level`` key overrides the log level.
    """
    if path is not None and not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    file_cfg = _read_toml(path or Path.cwd() / CONFIG_FILE_NAME)
    merged = _deep_merge(file_cfg, _from_env(os.environ if env is None else env))
    config = _build(merged)

    if overrides:
        values = {k: v for k, v in overrides.items() if v is not None}
        if level := values.pop("log_level", None):
            config = replace(config, log=replace(config.log, level=level.upper()))
        config = replace(config, **values)

    return config.validate()
