"""
Configuration for Zentree.

Settings for the command line front end. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/zentree/config.toml) if exists
3. Environment variables (ZENTREE_*) override file
4. CLI flags override everything

The parser itself reads no configuration; `[resources]` only feeds the
ResourceResolver the CLI installs.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib  # stdlib in 3.11+
from dataclasses import dataclass, field
from pathlib import Path

from .dom import Resource

logger = logging.getLogger("zentree.config")

OUTPUT_FORMATS = ("tree", "json")


@dataclass
class OutputConfig:
    """How the CLI prints parsed trees."""
    format: str = "tree"
    indent: int = 2


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class Config:
    """Root config with all settings."""
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    resources: dict[str, Resource] = field(default_factory=dict)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "zentree" / "config.toml"
    return Path.home() / ".config" / "zentree" / "config.toml"


def load_config(path: Path | None = None) -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    if path is None:
        path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, ValueError, TypeError, AttributeError) as e:  # TOMLDecodeError is a ValueError
            logger.warning("Ignoring config file %s: %s", path, e)
            config = Config()

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "output" in data:
        o = data["output"]
        if "format" in o:
            config.output.format = _check_format(str(o["format"]))
        if "indent" in o:
            config.output.indent = int(o["indent"])

    if "logging" in data:
        lg = data["logging"]
        if "level" in lg:
            config.logging.level = str(lg["level"]).upper()

    if "resources" in data:
        for key, value in data["resources"].items():
            config.resources[key] = Resource.from_mapping(key, value)

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str, type]] = {
        "ZENTREE_FORMAT": ("output", "format", str),
        "ZENTREE_INDENT": ("output", "indent", int),
        "ZENTREE_LOG_LEVEL": ("logging", "level", str),
    }

    for env_key, (section, attr, conv) in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            with contextlib.suppress(ValueError):
                converted = conv(val)
                if attr == "format":
                    converted = _check_format(converted)
                elif attr == "level":
                    converted = converted.upper()
                setattr(getattr(config, section), attr, converted)

    return config


def _check_format(value: str) -> str:
    if value not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format {value!r}, expected one of {OUTPUT_FORMATS}")
    return value


# Module-level config instance, loaded once on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None
