"""Configuration manager for remindr.

Precedence, lowest first: model defaults, ``remindr.yaml``, ``REMINDR_*``
environment variables, runtime overrides.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from threading import Lock
from typing import Any, ClassVar

from remindr.config.loader import KNOWN_SECTIONS, YAMLConfigLoader
from remindr.config.models import RemindrConfig

ENV_PREFIX = "REMINDR_"


def _merge(base: dict[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in updates.items():
        current = result.get(key)
        result[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, Mapping) else value
    return result


def environment_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Nest ``REMINDR_USAGE__USER_DAILY_AI_CAP=3`` into ``{"usage": {"user_daily_ai_cap": "3"}}``.

    Values stay strings for the models to coerce. Variables that do not name
    a config section (``REMINDR_CONFIG``, ``REMINDR_DATABASE_URL``) are left out.
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for name, value in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, *keys = name[len(ENV_PREFIX) :].lower().split("__")
        if section not in KNOWN_SECTIONS or not keys or not all(keys):
            continue
        node = overrides.setdefault(section, {})
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value.strip()
    return overrides


def build_config(
    config_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> RemindrConfig:
    """Assemble and validate a config from every source.

    Raises:
        ConfigLoadError: the YAML file is unreadable or malformed.
        pydantic.ValidationError: a value is out of range.
    """
    data = _merge(YAMLConfigLoader.load_dict(config_path), environment_overrides())
    return RemindrConfig.model_validate(_merge(data, overrides or {}))


class ConfigManager:
    """Process-wide holder of the active :class:`RemindrConfig`."""

    _instance: ClassVar[ConfigManager | None] = None
    _instance_lock: ClassVar[Lock] = Lock()

    def __init__(self) -> None:
        self._lock = Lock()
        self._config = RemindrConfig()

    @classmethod
    def instance(cls) -> ConfigManager:
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def _reset_for_tests(cls) -> None:
        with cls._instance_lock:
            cls._instance = None

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> ConfigManager:
        """Build a config from every source and make it the active one."""
        manager = cls.instance()
        config = build_config(config_path, overrides)
        with manager._lock:
            manager._config = config
        return manager

    def get(self) -> RemindrConfig:
        with self._lock:
            return self._config

