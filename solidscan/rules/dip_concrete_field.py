"""Detect hard-wired construction of concrete collaborators."""

from __future__ import annotations

from typing import List, Optional

from solidscan.config import Configuration
from solidscan.model import SourceUnit, TypeDecl, fields_of, methods_of
from solidscan.result import Finding
from solidscan.severity import Severity

from . import BaseDetector, Detector


class ConcreteFieldConstructionDetector(BaseDetector):
    """Flag ``private MySqlDatabase db = new MySqlDatabase()`` in a type that already accepts abstractions."""

    rule_id = "dip.concrete-field-construction"
    severity = Severity.WARNING
    hint = (
        "Depend on an abstraction: declare the field with an interface type and inject the "
        "implementation through the constructor, as the type already does for its other collaborators."
    )

    def evaluate(self, unit: SourceUnit) -> List[Finding]:
        findings: List[Finding] = []
        for type_decl in unit.types:
            if type_decl.is_interface:
                continue
            injected = self._injected_abstractions(unit, type_decl)
            if not injected:
                continue
            for field in fields_of(type_decl):
                if field.type is None or field.initializer is None:
                    continue
                if unit.is_interface(field.type):
                    continue
                if field.initializer.instantiates != field.type:
                    continue
                findings.append(
                    self._finding(
                        unit,
                        f"Field {type_decl.name}.{field.name} constructs concrete {field.type} directly "
                        f"while the constructor already injects {', '.join(injected)}",
                        type_decl=type_decl,
                        member=field,
                    )
                )
        return findings

    def _injected_abstractions(self, unit: SourceUnit, type_decl: TypeDecl) -> List[str]:
        injected: List[str] = []
        for method in methods_of(type_decl):
            if not method.constructor:
                continue
            for param in method.params:
                if unit.is_interface(param.type) and param.type not in injected:
                    injected.append(param.type)
        return injected


def get_rule(config: Optional[Configuration] = None) -> Detector:
    config = config or Configuration()
    return ConcreteFieldConstructionDetector(config.options_for(ConcreteFieldConstructionDetector.rule_id))
