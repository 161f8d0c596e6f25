"""Detect resources that leak when an exception leaves the method."""

from __future__ import annotations

from collections import Counter
from typing import Iterator, List, Optional, Sequence, Tuple

from solidscan.config import Configuration
from solidscan.model import MemberDecl, SourceUnit, Statement, StatementTag, methods_of, walk
from solidscan.result import Finding
from solidscan.severity import Severity

from . import BaseDetector, Detector

# Statements that may raise or leave the block before a plain release runs.
EXIT_TAGS = frozenset(
    {
        StatementTag.CALL,
        StatementTag.THROW,
        StatementTag.RESOURCE_ACQUIRE,
        StatementTag.BRANCH,
        StatementTag.CATCH,
    }
)


def same_resource(acquired: Optional[str], released: Optional[str]) -> bool:
    if acquired is None or released is None:
        return True
    return acquired == released


def iter_blocks(statements: Sequence[Statement]) -> Iterator[Tuple[Statement, ...]]:
    """Yield the method body and every nested body as separate blocks."""

    yield tuple(statements)
    for statement in statements:
        if statement.body:
            yield from iter_blocks(statement.body)


class UnclosedResourceDetector(BaseDetector):
    """Flag acquisitions without scoped acquisition or a guaranteed release."""

    rule_id = "resource.unclosed-on-exception-path"
    severity = Severity.ERROR
    hint = (
        "Acquire the resource in a scoped construct (try-with-resources, using, a with-block) or "
        "release it in a finally block so it is closed on every exit path, including exceptions."
    )

    def evaluate(self, unit: SourceUnit) -> List[Finding]:
        findings: List[Finding] = []
        for type_decl in unit.types:
            for method in methods_of(type_decl):
                occurrences = Counter()
                for resource, problem in self.leaks(method):
                    message = (
                        f"Resource {resource or '<anonymous>'} acquired in {type_decl.name}.{method.name} {problem}"
                    )
                    occurrences[message] += 1
                    if occurrences[message] > 1:
                        message = f"{message} (occurrence {occurrences[message]})"
                    findings.append(
                        self._finding(
                            unit,
                            message,
                            type_decl=type_decl,
                            member=method,
                        )
                    )
        return findings

    def leaks(self, method: MemberDecl) -> List[Tuple[Optional[str], str]]:
        guaranteed = [
            statement.target
            for statement in walk(method.body)
            if statement.tag is StatementTag.RESOURCE_RELEASE and statement.cleanup
        ]
        leaks: List[Tuple[Optional[str], str]] = []
        for block in iter_blocks(method.body):
            for index, statement in enumerate(block):
                if statement.tag is not StatementTag.RESOURCE_ACQUIRE or statement.scoped:
                    continue
                if any(same_resource(statement.target, released) for released in guaranteed):
                    continue
                problem = self._release_problem(statement, block[index + 1:])
                if problem:
                    leaks.append((statement.target, problem))
        return leaks

    def _release_problem(self, acquire: Statement, following: Sequence[Statement]) -> Optional[str]:
        exit_seen = False
        for statement in following:
            if statement.tag is StatementTag.RESOURCE_RELEASE and same_resource(acquire.target, statement.target):
                if exit_seen:
                    return "is released only on the normal path; an exception before the release leaks it"
                return None
            if statement.tag in EXIT_TAGS:
                exit_seen = True
        return "has no guaranteed release on every exit path"


def get_rule(config: Optional[Configuration] = None) -> Detector:
    config = config or Configuration()
    return UnclosedResourceDetector(config.options_for(UnclosedResourceDetector.rule_id))
