"""Central configuration.

Env vars:
  PLUGGABILITY_LOG_LEVEL  - level for the ``pluggability`` logger (default WARNING)
  PLUGGABILITY_PATH       - extra plugin search roots, ``os.pathsep`` separated,
                            searched before ``sys.path``
  PLUGGABILITY_CONFIG     - YAML file with per-kind prefixes/exclusions, applied
                            to root classes as they are declared
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, List

import yaml
from pydantic import BaseModel, Field, ValidationError

from pluggability.core.errors import PluginConfigError
from pluggability.utils.exclusions import ExclusionRule, GlobRule, RegexRule

_log = logging.getLogger(__name__)

_REGEX_PREFIX = 're:'


def _env_paths(name: str) -> List[Path]:
    raw = os.getenv(name)
    if not raw:
        return []
    paths: List[Path] = []
    for part in raw.split(os.pathsep):
        part = part.strip()
        if part and Path(part) not in paths:
            paths.append(Path(part))
    return paths


def _env_file(name: str) -> Path | None:
    raw = os.getenv(name)
    return Path(raw) if raw else None


class Settings(BaseModel):
    # Logging level for the library (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = os.getenv('PLUGGABILITY_LOG_LEVEL', 'WARNING')
    search_paths: List[Path] = Field(default_factory=lambda: _env_paths('PLUGGABILITY_PATH'))
    config_file: Path | None = Field(default_factory=lambda: _env_file('PLUGGABILITY_CONFIG'))


settings = Settings()


class PluginTypeConfig(BaseModel):
    """One section of the YAML plugin configuration, keyed by kind."""

    prefixes: List[str] = Field(default_factory=list)
    exclusions: List[str] = Field(default_factory=list)

    def exclusion_rules(self) -> List[ExclusionRule]:
        rules: List[ExclusionRule] = []
        for raw in self.exclusions:
            if raw.startswith(_REGEX_PREFIX):
                rules.append(RegexRule(re.compile(raw[len(_REGEX_PREFIX):])))
            else:
                rules.append(GlobRule(raw))
        return rules


def load_plugin_config(path: str | os.PathLike) -> Dict[str, PluginTypeConfig]:
    """Parse a YAML plugin configuration file.

    Sections that fail validation are logged and skipped; a document that is
    not a mapping of kind -> section raises :class:`PluginConfigError`.
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise PluginConfigError(f"failed to read plugin config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise PluginConfigError(f"plugin config {path} must be a mapping of kind -> settings")

    config: Dict[str, PluginTypeConfig] = {}
    for kind, section in data.items():
        try:
            config[str(kind)] = PluginTypeConfig.model_validate(section or {})
        except ValidationError as exc:
            _log.warning("invalid plugin config section kind=%s file=%s: %s", kind, path, exc)
    return config


def apply_plugin_config(config: Dict[str, PluginTypeConfig] | str | os.PathLike) -> None:
    """Apply per-kind settings to declared roots and remember the rest."""
    from pluggability import registry

    if not isinstance(config, dict):
        config = load_plugin_config(config)
    for kind, section in config.items():
        registry.configure_kind(kind, section.prefixes, section.exclusion_rules())
