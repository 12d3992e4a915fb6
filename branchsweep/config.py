"""Run configuration from environment variables and an optional YAML file."""

from __future__ import annotations

import math
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from branchsweep.bitbucket_api import DEFAULT_BASE_URL
from branchsweep.errors import ConfigError
from branchsweep.guard import DEFAULT_PROTECTED_BRANCHES
from branchsweep.staleness import DEFAULT_THRESHOLD_DAYS

TOKEN_ENV = "BITBUCKET_TOKEN"
WORKSPACE_ENV = "BITBUCKET_WORKSPACE"

SETTINGS_KEYS = ("threshold_days", "protected_branches", "delete", "base_url")


@dataclass(frozen=True)
class SweepConfig:
    """Resolved settings for one sweep."""

    token: str
    workspace: str
    threshold_days: float = DEFAULT_THRESHOLD_DAYS
    protected_branches: frozenset[str] = DEFAULT_PROTECTED_BRANCHES
    delete: bool = False
    base_url: str = DEFAULT_BASE_URL

    @property
    def threshold(self) -> timedelta:
        return timedelta(days=self.threshold_days)


def _check_threshold(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"threshold_days must be a positive number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigError(f"threshold_days must be finite, got {value!r}")
    try:
        timedelta(days=value)
    except (OverflowError, ValueError) as e:
        raise ConfigError(f"threshold_days is too large, got {value!r}") from e
    return value


def _check_branches(value: Any) -> frozenset[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ConfigError(
            f"protected_branches must be a list of branch names, got {value!r}"
        )
    return frozenset(value)


def load_settings(path: Path) -> dict[str, Any]:
    """Load and validate a YAML settings file."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    unknown = sorted(set(data) - set(SETTINGS_KEYS))
    if unknown:
        raise ConfigError(f"Unknown keys in config file {path}: {', '.join(unknown)}")

    settings: dict[str, Any] = {}
    if "threshold_days" in data:
        settings["threshold_days"] = _check_threshold(data["threshold_days"])
    if "protected_branches" in data:
        settings["protected_branches"] = _check_branches(data["protected_branches"])
    if "delete" in data:
        if not isinstance(data["delete"], bool):
            raise ConfigError(f"delete must be true or false, got {data['delete']!r}")
        settings["delete"] = data["delete"]
    if "base_url" in data:
        if not isinstance(data["base_url"], str) or not data["base_url"]:
            raise ConfigError(f"base_url must be a URL string, got {data['base_url']!r}")
        settings["base_url"] = data["base_url"]

    return settings


def _require_env(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name, "")
    if not value:
        raise ConfigError(f"{name} environment variable is not set")
    return value


def load_config(
    config_path: Path | None = None,
    *,
    workspace: str | None = None,
    threshold_days: float | None = None,
    protected_branches: Iterable[str] | None = None,
    delete: bool | None = None,
    environ: Mapping[str, str] | None = None,
) -> SweepConfig:
    """Resolve configuration: explicit arguments, then the YAML file, then defaults.

    When ``environ`` is not given, a ``.env`` file in the working directory is
    loaded into the process environment first.

    Raises:
        ConfigError: If the token or workspace is missing, or the file is invalid.
    """
    if environ is None:
        load_dotenv(Path(".env"))
        environ = os.environ

    token = _require_env(environ, TOKEN_ENV)
    if not workspace:
        workspace = _require_env(environ, WORKSPACE_ENV)

    settings = load_settings(config_path) if config_path is not None else {}

    if threshold_days is not None:
        settings["threshold_days"] = _check_threshold(threshold_days)
    if protected_branches is not None:
        settings["protected_branches"] = _check_branches(list(protected_branches))
    if delete is not None:
        settings["delete"] = delete

    return SweepConfig(token=token, workspace=workspace, **settings)
