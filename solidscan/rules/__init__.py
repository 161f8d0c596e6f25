"""Detector protocol and rule registry."""

from __future__ import annotations

import logging
from collections import OrderedDict
from importlib import import_module
from importlib.metadata import entry_points
from typing import Any, Callable, Iterator, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from solidscan.config import Configuration
from solidscan.errors import DuplicateRuleError
from solidscan.model import MemberDecl, SourceUnit, TypeDecl
from solidscan.result import Finding, Target
from solidscan.severity import Severity

logger = logging.getLogger(__name__)

PLUGIN_GROUP = "solidscan.detectors"


@runtime_checkable
class Detector(Protocol):
    """Protocol implemented by all detectors.

    ``evaluate`` must depend only on its argument so detectors can run in any
    order and from several threads at once.
    """

    def id(self) -> str:
        """Return the stable rule identifier."""

    def evaluate(self, unit: SourceUnit) -> Sequence[Finding]:
        """Analyze ``unit`` and return the findings it triggers."""


class BaseDetector:
    """Convenience base holding the rule metadata shared by built-in detectors."""

    rule_id = "base"
    severity = Severity.WARNING
    hint: Optional[str] = None

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self.options = dict(options or {})

    def id(self) -> str:
        return self.rule_id

    def evaluate(self, unit: SourceUnit) -> Sequence[Finding]:
        raise NotImplementedError

    def _finding(
        self,
        unit: SourceUnit,
        message: str,
        type_decl: Optional[TypeDecl] = None,
        member: Optional[MemberDecl] = None,
    ) -> Finding:
        return Finding(
            rule_id=self.rule_id,
            severity=self.severity,
            target=Target(
                unit=unit.identifier,
                type_name=type_decl.name if type_decl else None,
                member_name=member.name if member else None,
            ),
            message=message,
            hint=self.hint,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.rule_id!r})"


class RuleRegistry:
    """Ordered set of detectors keyed by their id."""

    def __init__(self, detectors: Sequence[Detector] = ()) -> None:
        self._detectors: "OrderedDict[str, Detector]" = OrderedDict()
        for detector in detectors:
            self.register(detector)

    def register(self, detector: Detector) -> Detector:
        rule_id = detector.id()
        if rule_id in self._detectors:
            raise DuplicateRuleError(rule_id)
        self._detectors[rule_id] = detector
        logger.debug("Registered detector %s", rule_id)
        return detector

    def unregister(self, rule_id: str) -> None:
        self._detectors.pop(rule_id, None)

    def get(self, rule_id: str) -> Optional[Detector]:
        return self._detectors.get(rule_id)

    def ids(self) -> List[str]:
        return list(self._detectors)

    def enabled(self, config: Optional[Configuration] = None) -> List[Detector]:
        if config is None:
            return list(self._detectors.values())
        return [detector for rule_id, detector in self._detectors.items() if config.allows(rule_id)]

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._detectors

    def __iter__(self) -> Iterator[Detector]:
        return iter(list(self._detectors.values()))

    def __len__(self) -> int:
        return len(self._detectors)


BUILTIN_RULE_MODULES = (
    "srp_fanout",
    "ocp_type_tag",
    "lsp_field_mutation",
    "isp_fat_interface",
    "dip_concrete_field",
    "resource_unclosed",
    "error_swallowed",
)


def builtin_rule_factories() -> List[Callable[[Optional[Configuration]], Detector]]:
    """Return the ``get_rule`` factory of every built-in rule module in catalogue order."""

    return [import_module(f"{__name__}.{name}").get_rule for name in BUILTIN_RULE_MODULES]


def default_registry(config: Optional[Configuration] = None) -> RuleRegistry:
    """Return a registry holding the built-in detectors, configured from ``config``."""

    config = config or Configuration()
    registry = RuleRegistry()
    for get_rule in builtin_rule_factories():
        registry.register(get_rule(config))
    return registry


def load_plugins(registry: RuleRegistry, config: Optional[Configuration] = None, group: str = PLUGIN_GROUP) -> List[str]:
    """Register detectors advertised through package entry points.

    The entry point name is the rule id; its object is a callable (usually the
    detector class) taking the rule's options mapping. Returns the ids that were
    registered.
    """

    config = config or Configuration()
    registered: List[str] = []
    for entry_point in entry_points(group=group):
        factory: Callable[[Mapping[str, Any]], Detector] = entry_point.load()
        detector = registry.register(factory(config.options_for(entry_point.name)))
        registered.append(detector.id())
        logger.info("Loaded detector plugin %s from %s", detector.id(), entry_point.value)
    return registered
