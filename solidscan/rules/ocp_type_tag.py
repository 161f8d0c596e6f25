"""Detect methods that dispatch behaviour on literal type tags."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from solidscan.config import Configuration
from solidscan.model import LiteralValue, MemberDecl, SourceUnit, StatementTag, methods_of, walk
from solidscan.result import Finding
from solidscan.severity import Severity

from . import BaseDetector, Detector


def is_tag_literal(value: LiteralValue) -> bool:
    """Return True for string literals and enum constants, the values a type tag takes."""

    return isinstance(value, str) and value != ""


class TypeTagBranchingDetector(BaseDetector):
    """Flag ``if x.type == "SENIOR"`` style dispatch that must be edited for each new case."""

    rule_id = "ocp.type-tag-branching"
    severity = Severity.WARNING
    hint = (
        "Replace the conditional chain with polymorphism: give each case its own strategy or "
        "subclass behind a shared interface and look it up instead of branching on the tag."
    )

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self.min_branches = int(self.options.get("min_branches", 2))

    def evaluate(self, unit: SourceUnit) -> List[Finding]:
        findings: List[Finding] = []
        for type_decl in unit.types:
            for method in methods_of(type_decl):
                literals = self.tag_literals(method)
                if len(literals) < self.min_branches:
                    continue
                subjects = sorted({subject for subject, _ in literals if subject})
                values = ", ".join(repr(value) for _, value in literals)
                on = f" on {', '.join(subjects)}" if subjects else ""
                findings.append(
                    self._finding(
                        unit,
                        f"Method {type_decl.name}.{method.name} branches {len(literals)} times{on} "
                        f"comparing against literal tags {values}",
                        type_decl=type_decl,
                        member=method,
                    )
                )
        return findings

    def tag_literals(self, method: MemberDecl) -> List[tuple]:
        return [
            (statement.target, statement.value)
            for statement in walk(method.body)
            if statement.tag is StatementTag.BRANCH and is_tag_literal(statement.value)
        ]


def get_rule(config: Optional[Configuration] = None) -> Detector:
    config = config or Configuration()
    return TypeTagBranchingDetector(config.options_for(TypeTagBranchingDetector.rule_id))
