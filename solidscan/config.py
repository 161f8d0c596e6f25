"""Resolved analyzer configuration and its YAML loader."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError
from .result import Finding
from .severity import Severity
from .utils import read_yaml_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "solidscan.yaml"


@dataclass(frozen=True)
class RuleSettings:
    enabled: bool = True
    severity: Optional[Severity] = None
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Suppression:
    """Silence findings for units matching ``unit`` (a glob), optionally for one rule."""

    unit: str
    rule: Optional[str] = None

    def matches(self, finding: Finding) -> bool:
        if self.rule is not None and self.rule != finding.rule_id:
            return False
        return fnmatchcase(finding.target.unit, self.unit)


@dataclass(frozen=True)
class Configuration:
    rules: Mapping[str, RuleSettings] = field(default_factory=dict)
    suppressions: Tuple[Suppression, ...] = ()
    default_enabled: bool = True

    def settings_for(self, rule_id: str) -> RuleSettings:
        return self.rules.get(rule_id) or RuleSettings(enabled=self.default_enabled)

    def allows(self, rule_id: str) -> bool:
        settings = self.rules.get(rule_id)
        if settings is None:
            return self.default_enabled
        return settings.enabled

    def severity_for(self, rule_id: str, default: Severity) -> Severity:
        return self.settings_for(rule_id).severity or default

    def options_for(self, rule_id: str) -> Mapping[str, Any]:
        return self.settings_for(rule_id).options

    def is_suppressed(self, finding: Finding) -> bool:
        return any(suppression.matches(finding) for suppression in self.suppressions)


def load_config(path: Optional[Path] = None) -> Configuration:
    """Load configuration from a YAML (or JSON) file, or return the defaults."""

    if path is None:
        path = Path(DEFAULT_CONFIG_FILENAME)
        if not path.exists():
            return Configuration()
    elif not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        data = read_yaml_file(path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Configuration file {path} is not valid YAML: {exc}") from exc
    logger.debug("Loaded configuration from %s", path)
    return config_from_dict(data or {})


def config_from_dict(data: Mapping[str, Any]) -> Configuration:
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration must be a mapping")
    unknown = set(data) - {"default_enabled", "rules", "suppressions"}
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    default_enabled = data.get("default_enabled", True)
    if not isinstance(default_enabled, bool):
        raise ConfigError("default_enabled must be a boolean")

    rules: Dict[str, RuleSettings] = {}
    raw_rules = data.get("rules")
    if raw_rules is None:
        raw_rules = {}
    if not isinstance(raw_rules, Mapping):
        raise ConfigError("rules must be a mapping of rule id to settings")
    for rule_id, raw in raw_rules.items():
        rules[str(rule_id)] = _parse_rule_settings(str(rule_id), raw)

    suppressions = []
    raw_suppressions = data.get("suppressions")
    if raw_suppressions is None:
        raw_suppressions = []
    if not isinstance(raw_suppressions, list):
        raise ConfigError("suppressions must be a list")
    for index, raw in enumerate(raw_suppressions):
        if isinstance(raw, str):
            suppressions.append(Suppression(unit=raw))
            continue
        if not isinstance(raw, Mapping) or "unit" not in raw:
            raise ConfigError(f"suppressions[{index}] must name a unit pattern")
        rule = raw.get("rule")
        suppressions.append(Suppression(unit=str(raw["unit"]), rule=str(rule) if rule else None))

    return Configuration(rules=rules, suppressions=tuple(suppressions), default_enabled=default_enabled)


def _parse_rule_settings(rule_id: str, raw: Any) -> RuleSettings:
    if raw is None:
        return RuleSettings()
    if isinstance(raw, bool):
        return RuleSettings(enabled=raw)
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Settings for {rule_id} must be a boolean or a mapping")

    enabled = raw.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigError(f"{rule_id}.enabled must be a boolean")

    severity = None
    if raw.get("severity") is not None:
        try:
            severity = Severity.parse(raw["severity"])
        except ValueError as exc:
            raise ConfigError(f"{rule_id}.severity: {exc}") from exc

    options = raw.get("options") or {}
    if not isinstance(options, Mapping):
        raise ConfigError(f"{rule_id}.options must be a mapping")
    return RuleSettings(enabled=enabled, severity=severity, options=dict(options))
