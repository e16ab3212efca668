"""Runtime settings for StableFlowLab."""

from __future__ import annotations

import copy
import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, cast

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "artemis": {"api_key": None},
    "dune": {"api_key": None, "poll_interval": 1.0, "max_wait": 30.0},
    "http": {"timeout": 15.0, "cache_ttl": 300.0},
    "logging": {"level": "INFO"},
    "output": {"outdir": None, "show": True, "charts": ["breakdown", "dominance", "chains"]},
    "demo": {"raw_volume": 82_000_000_000.0},
}


@dataclass(frozen=True)
class Settings:
    """Resolved configuration; API keys select the live upstream code paths."""

    artemis_api_key: str | None = None
    dune_api_key: str | None = None
    request_timeout: float = 15.0
    cache_ttl: float = 300.0
    dune_poll_interval: float = 1.0
    dune_max_wait: float = 30.0
    log_level: str = "INFO"
    output: Mapping[str, Any] = field(default_factory=lambda: dict(DEFAULTS["output"]))
    demo_raw_volume: float = 82_000_000_000.0

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "Settings":
        try:
            return cls(
                artemis_api_key=cfg["artemis"].get("api_key") or None,
                dune_api_key=cfg["dune"].get("api_key") or None,
                request_timeout=float(cfg["http"]["timeout"]),
                cache_ttl=float(cfg["http"]["cache_ttl"]),
                dune_poll_interval=float(cfg["dune"]["poll_interval"]),
                dune_max_wait=float(cfg["dune"]["max_wait"]),
                log_level=str(cfg["logging"]["level"]).upper(),
                output=dict(cfg["output"]),
                demo_raw_volume=float(cfg["demo"]["raw_volume"]),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid configuration value: {exc}") from exc

    def with_env(self, environ: Mapping[str, str] | None = None) -> "Settings":
        """Return a copy with environment overrides applied."""

        env = os.environ if environ is None else environ
        updates: dict[str, Any] = {}
        if key := env.get("ARTEMIS_API_KEY"):
            updates["artemis_api_key"] = key
        if key := env.get("DUNE_API_KEY"):
            updates["dune_api_key"] = key
        if level := env.get("STABLE_FLOW_LOG_LEVEL"):
            updates["log_level"] = level.upper()
        if outdir := env.get("STABLE_FLOW_OUTDIR"):
            updates["output"] = {**self.output, "outdir": outdir}
        for var, attr in (
            ("STABLE_FLOW_TIMEOUT", "request_timeout"),
            ("STABLE_FLOW_CACHE_TTL", "cache_ttl"),
        ):
            if raw := env.get(var):
                try:
                    updates[attr] = float(raw)
                except ValueError:
                    logger.warning("Ignoring non-numeric %s=%r", var, raw)
        return replace(self, **updates)


def load_config(path: str | Path | None) -> dict[str, Any]:
    """Load configuration from a TOML file and merge it over :data:`DEFAULTS`.

    Parameters
    ----------
    path:
        Optional path to a configuration file. When ``None`` or missing, the
        built-in defaults are used.
    """

    cfg = copy.deepcopy(DEFAULTS)
    cfg_path = Path(path) if path else None
    if cfg_path and cfg_path.is_file():
        with open(cfg_path, "rb") as f:
            file_cfg = tomllib.load(f)
        for k, v in file_cfg.items():
            if isinstance(v, dict) and k in cfg and isinstance(cfg[k], dict):
                cast(dict, cfg[k]).update(v)
            else:
                cfg[k] = v
    elif cfg_path:
        logger.warning("Config file not found at %s. Using defaults.", cfg_path)
    return cfg


def load_settings(path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Settings from ``path`` (or ``STABLE_FLOW_CONFIG``) plus environment overrides."""

    env = os.environ if environ is None else environ
    cfg_file = path or env.get("STABLE_FLOW_CONFIG")
    return Settings.from_mapping(load_config(cfg_file)).with_env(env)


__all__ = ["DEFAULTS", "Settings", "load_config", "load_settings"]
