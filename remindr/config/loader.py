"""YAML configuration loader utilities."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "REMINDR_CONFIG"
KNOWN_SECTIONS = frozenset({"scheduler", "usage", "integrations", "storage", "retention", "logging"})


class ConfigLoadError(ValueError):
    """Raised when configuration YAML cannot be read or parsed."""


def _describe_yaml_error(target: Path, exc: yaml.YAMLError) -> str:
    mark = getattr(exc, "problem_mark", None)
    if mark is None:
        return f"Invalid YAML at {target}"
    return f"Invalid YAML at {target}:{mark.line + 1}:{mark.column + 1}"


class YAMLConfigLoader:
    """Load remindr.yaml; path priority is env, then CLI argument, then cwd."""

    DEFAULT_FILENAME = "remindr.yaml"

    @classmethod
    def resolve_path(cls, cli_path: str | Path | None = None) -> Path:
        env_path = os.environ.get(CONFIG_PATH_ENV, "").strip()
        if env_path:
            return Path(env_path)
        if cli_path is not None and str(cli_path).strip():
            return Path(str(cli_path).strip())
        return Path.cwd() / cls.DEFAULT_FILENAME

    @classmethod
    def load_dict(cls, path: str | Path | None = None) -> dict[str, Any]:
        """Load YAML into a dict. A missing or empty file yields ``{}``.

        Raises:
            ConfigLoadError: unreadable file, invalid YAML, or a non-mapping root.
        """
        target = cls.resolve_path(path)
        if not target.is_file():
            logger.debug("config_file_absent path=%s", target)
            return {}
        try:
            text = target.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigLoadError(f"Cannot read config file {target}: {exc}") from exc
        if not text.strip():
            return {}
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigLoadError(_describe_yaml_error(target, exc)) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(f"Config root must be mapping: {target}")
        unknown = sorted(str(key) for key in data if key not in KNOWN_SECTIONS)
        if unknown:
            logger.warning("config_unknown_sections path=%s sections=%s", target, ",".join(unknown))
        return data
