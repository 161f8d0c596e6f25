"""Detect types whose methods mix several responsibilities in one body."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Pattern, Sequence, Tuple

from solidscan.config import Configuration
from solidscan.model import MemberDecl, SourceUnit, Statement, StatementTag, methods_of, walk
from solidscan.result import Finding
from solidscan.severity import Severity

from . import BaseDetector, Detector

CALL_TAGS = frozenset({StatementTag.CALL})
CHECK_TAGS = frozenset({StatementTag.CALL, StatementTag.BRANCH, StatementTag.LITERAL_COMPARE})

DEFAULT_CATEGORIES: Mapping[str, Tuple[Sequence[str], FrozenSet[StatementTag]]] = {
    "data-access": (
        (
            r"(?i)(repo|repository|dao|db|database|session|jdbc|sql|cursor|connection|entitymanager)\.",
            r"(?i)(^|\.)(save\w*|persist|insert\w*|delete\w*|find\w*|select|query\w*|execute\w*|commit)$",
        ),
        CALL_TAGS,
    ),
    "notification": (
        (
            r"(?i)(mailer|mail(_?service|_?sender|_?client)?|smtp\w*|notifier|notification\w*|sms\w*|webhook\w*|publisher)\.",
            r"(?i)(^|\.)(send\w*|notify\w*|publish\w*|broadcast)$",
        ),
        CALL_TAGS,
    ),
    "validation": (
        (
            r"(?i)(^|\.)(validate\w*|is_?valid\w*|check\w*|verify\w*)$",
            r"(?i)(^|\.)(contains|matches|is_?empty|is_?blank)$",
        ),
        CHECK_TAGS,
    ),
}


@dataclass(frozen=True)
class ResponsibilityCategory:
    name: str
    patterns: Tuple[Pattern[str], ...]
    tags: FrozenSet[StatementTag]

    def matches(self, statement: Statement) -> bool:
        if statement.tag not in self.tags or not statement.target:
            return False
        return any(pattern.search(statement.target) for pattern in self.patterns)


def build_categories(raw: Optional[Mapping[str, Any]] = None) -> Tuple[ResponsibilityCategory, ...]:
    """Compile responsibility categories.

    ``raw`` maps a category name to either a list of regexes (matched against
    call targets) or a mapping with ``patterns`` and ``tags`` keys. When absent
    the built-in data-access/notification/validation set is used.
    """

    categories: List[ResponsibilityCategory] = []
    if raw is None:
        for name, (patterns, tags) in DEFAULT_CATEGORIES.items():
            categories.append(ResponsibilityCategory(name, tuple(re.compile(p) for p in patterns), tags))
        return tuple(categories)

    for name, definition in raw.items():
        if isinstance(definition, Mapping):
            patterns = definition.get("patterns") or []
            tags = frozenset(StatementTag(tag) for tag in definition.get("tags") or [StatementTag.CALL.value])
        else:
            patterns = definition
            tags = CALL_TAGS
        if isinstance(patterns, str):
            patterns = [patterns]
        categories.append(ResponsibilityCategory(str(name), tuple(re.compile(p) for p in patterns), tags))
    return tuple(categories)


class ResponsibilityFanoutDetector(BaseDetector):
    """Flag types that mix data access, notification and validation in one method."""

    rule_id = "srp.responsibility-fanout"
    severity = Severity.WARNING
    hint = (
        "Split the type so each class has a single reason to change: move persistence into a "
        "repository, notifications into a notifier and validation into a validator, then "
        "coordinate them from a thin service."
    )

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self.categories = build_categories(self.options.get("categories"))
        self.min_categories = int(self.options.get("min_categories", 2))

    def evaluate(self, unit: SourceUnit) -> List[Finding]:
        findings: List[Finding] = []
        for type_decl in unit.types:
            if type_decl.is_interface:
                continue
            offenders: Dict[str, List[str]] = {}
            for method in methods_of(type_decl):
                found = self.categories_in(method)
                if len(found) >= self.min_categories:
                    offenders[method.name] = found
            if not offenders:
                continue
            described = "; ".join(f"{name} ({', '.join(found)})" for name, found in offenders.items())
            findings.append(
                self._finding(
                    unit,
                    f"Type {type_decl.name} mixes responsibilities within single methods: {described}",
                    type_decl=type_decl,
                )
            )
        return findings

    def categories_in(self, method: MemberDecl) -> List[str]:
        """Return the responsibility categories a method body touches, in category order.

        Each statement counts towards the first category it matches only.
        """

        touched = set()
        for statement in walk(method.body):
            for category in self.categories:
                if category.matches(statement):
                    touched.add(category.name)
                    break
        return [category.name for category in self.categories if category.name in touched]


def get_rule(config: Optional[Configuration] = None) -> Detector:
    config = config or Configuration()
    return ResponsibilityFanoutDetector(config.options_for(ResponsibilityFanoutDetector.rule_id))
