"""Detect interfaces broad enough that implementers stub members out."""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional

from solidscan.config import Configuration
from solidscan.model import MemberDecl, SourceUnit, StatementTag, TypeDecl, methods_of
from solidscan.result import Finding
from solidscan.severity import Severity

from . import BaseDetector, Detector

NOOP_EXCEPTIONS = r"(?i)(unsupported|notimplemented|not_implemented)"


class FatInterfaceDetector(BaseDetector):
    """Flag interfaces whose implementers leave members empty or unsupported."""

    rule_id = "isp.fat-interface"
    severity = Severity.INFO
    hint = (
        "Segregate the interface into smaller role interfaces so clients and implementers depend "
        "only on the methods they use."
    )

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self.max_methods = int(self.options.get("max_methods", 1))
        self.noop_exceptions = re.compile(self.options.get("noop_exceptions", NOOP_EXCEPTIONS))

    def evaluate(self, unit: SourceUnit) -> List[Finding]:
        findings: List[Finding] = []
        for interface in unit.types:
            if not interface.is_interface:
                continue
            required = [method.name for method in methods_of(interface)]
            if len(required) <= self.max_methods:
                continue
            stubs = self._stubbed_members(unit, interface, required)
            if not stubs:
                continue
            findings.append(
                self._finding(
                    unit,
                    f"Interface {interface.name} declares {len(required)} methods; implementers leave "
                    f"members unimplemented: {', '.join(stubs)}",
                    type_decl=interface,
                )
            )
        return findings

    def _stubbed_members(self, unit: SourceUnit, interface: TypeDecl, required: List[str]) -> List[str]:
        stubs: List[str] = []
        for implementer in unit.implementers_of(interface):
            if implementer.is_interface:
                continue
            for name in required:
                member = implementer.member(name)
                if member is not None and member.is_method and self.is_noop(member):
                    stubs.append(f"{implementer.name}.{name}")
        return stubs

    def is_noop(self, member: MemberDecl) -> bool:
        """Return True for an empty body or one that only throws an unsupported-operation error."""

        if not member.body:
            return True
        if len(member.body) != 1:
            return False
        statement = member.body[0]
        return (
            statement.tag is StatementTag.THROW
            and statement.target is not None
            and bool(self.noop_exceptions.search(statement.target))
        )


def get_rule(config: Optional[Configuration] = None) -> Detector:
    config = config or Configuration()
    return FatInterfaceDetector(config.options_for(FatInterfaceDetector.rule_id))
