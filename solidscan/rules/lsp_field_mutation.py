"""Detect overriding setters that silently mutate other fields."""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional

from solidscan.config import Configuration
from solidscan.model import MemberDecl, SourceUnit, StatementTag, TypeDecl, methods_of, supertypes_of, walk
from solidscan.result import Finding
from solidscan.severity import Severity

from . import BaseDetector, Detector

SETTER_PATTERN = r"^set(?:_|(?=[A-Z]))(?P<field>\w+)$"
RECEIVER_PREFIXES = ("this.", "self.", "@")


def normalize_field(name: str) -> str:
    for prefix in RECEIVER_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
            break
    return name.lstrip("_").lower()


class FieldMutationCouplingDetector(BaseDetector):
    """Flag the Square/Rectangle substitution break: a setter override writing a sibling field."""

    rule_id = "lsp.field-mutation-coupling"
    severity = Severity.ERROR
    hint = (
        "Callers of the base type expect a setter to change only its own field. Do not derive "
        "from a type whose contract you cannot keep; model both as separate implementations of "
        "a shared abstraction, or make the type immutable."
    )

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self.setter_pattern = re.compile(self.options.get("setter_pattern", SETTER_PATTERN))

    def evaluate(self, unit: SourceUnit) -> List[Finding]:
        findings: List[Finding] = []
        for type_decl in unit.types:
            if type_decl.is_interface:
                continue
            for method in methods_of(type_decl):
                match = self.setter_pattern.match(method.name)
                if not match or not self._overrides(unit, type_decl, method):
                    continue
                own_field = normalize_field(match.group("field"))
                foreign = self._foreign_writes(method, own_field)
                if not foreign:
                    continue
                findings.append(
                    self._finding(
                        unit,
                        f"Override {type_decl.name}.{method.name} also writes {', '.join(foreign)}, "
                        f"breaking substitutability for callers of {', '.join(supertypes_of(type_decl)) or 'its base type'}",
                        type_decl=type_decl,
                        member=method,
                    )
                )
        return findings

    def _overrides(self, unit: SourceUnit, type_decl: TypeDecl, method: MemberDecl) -> bool:
        if method.is_override:
            return True
        for name in supertypes_of(type_decl):
            parent = unit.find_type(name)
            if parent is not None and parent.member(method.name) is not None:
                return True
        return False

    def _foreign_writes(self, method: MemberDecl, own_field: str) -> List[str]:
        written: List[str] = []
        for statement in walk(method.body):
            if statement.tag is not StatementTag.FIELD_WRITE or not statement.target:
                continue
            if normalize_field(statement.target) == own_field:
                continue
            if statement.target not in written:
                written.append(statement.target)
        return written


def get_rule(config: Optional[Configuration] = None) -> Detector:
    config = config or Configuration()
    return FieldMutationCouplingDetector(config.options_for(FieldMutationCouplingDetector.rule_id))
