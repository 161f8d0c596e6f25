"""Detect catch blocks that make exceptions disappear."""

from __future__ import annotations

import re
from collections import Counter
from typing import Any, List, Mapping, Optional, Pattern, Sequence, Tuple

from solidscan.config import Configuration
from solidscan.model import SourceUnit, Statement, StatementTag, methods_of, walk
from solidscan.result import Finding
from solidscan.severity import Severity

from . import BaseDetector, Detector

LOGGING_PATTERNS = (
    r"(?i)(^|\.)(log|logger|logging|logs|slf4j|log4j|console|syslog)\.",
    r"(?i)(^|\.)(log_?exception|report_?error|capture_?exception)$",
)


class SwallowedExceptionDetector(BaseDetector):
    """Flag handlers that neither rethrow, log, nor record the failure."""

    rule_id = "error.swallowed-exception"
    severity = Severity.ERROR
    hint = (
        "Rethrow the exception (wrapped with context if needed), log it with its stack trace, or "
        "record the failure in state the caller can observe; never discard it silently."
    )

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        patterns = self.options.get("logging_patterns", LOGGING_PATTERNS)
        if isinstance(patterns, str):
            patterns = [patterns]
        self.logging_patterns: Tuple[Pattern[str], ...] = tuple(re.compile(p) for p in patterns)

    def evaluate(self, unit: SourceUnit) -> List[Finding]:
        findings: List[Finding] = []
        for type_decl in unit.types:
            for method in methods_of(type_decl):
                occurrences = Counter()
                for statement in walk(method.body):
                    if statement.tag is not StatementTag.CATCH or self.handles(statement.body):
                        continue
                    caught = statement.target or "exception"
                    occurrences[caught] += 1
                    ordinal = f" (occurrence {occurrences[caught]})" if occurrences[caught] > 1 else ""
                    findings.append(
                        self._finding(
                            unit,
                            f"Handler for {caught} in {type_decl.name}.{method.name} swallows the exception "
                            f"without rethrowing, logging or recording it{ordinal}",
                            type_decl=type_decl,
                            member=method,
                        )
                    )
        return findings

    def handles(self, handler: Sequence[Statement]) -> bool:
        for statement in walk(handler):
            if statement.tag in (StatementTag.THROW, StatementTag.FIELD_WRITE):
                return True
            if statement.tag is StatementTag.CALL and self.is_logging_call(statement):
                return True
        return False

    def is_logging_call(self, statement: Statement) -> bool:
        target = statement.target or ""
        return any(pattern.search(target) for pattern in self.logging_patterns)


def get_rule(config: Optional[Configuration] = None) -> Detector:
    config = config or Configuration()
    return SwallowedExceptionDetector(config.options_for(SwallowedExceptionDetector.rule_id))
