"""Merge findings from all units into a deterministic, deduplicated sequence."""

from __future__ import annotations

from typing import Iterable, Set, Tuple

from .result import Finding, Summary


def aggregate(findings: Iterable[Finding]) -> Tuple[Finding, ...]:
    """Drop findings repeating a (rule id, target, message) triple and sort the rest.

    Order is severity descending, then unit identifier, rule id, type, member
    and message ascending. Sorting happens before deduplication, so the most
    severe copy of a duplicate is kept whatever order the findings arrived in.
    Input findings are never modified.
    """

    seen: Set[Tuple] = set()
    unique = []
    for finding in sorted(findings, key=lambda finding: finding.sort_key):
        if finding.identity in seen:
            continue
        seen.add(finding.identity)
        unique.append(finding)
    return tuple(unique)


def summarize(findings: Iterable[Finding]) -> Summary:
    summary = Summary()
    for finding in findings:
        summary.increment(finding.severity)
    return summary
