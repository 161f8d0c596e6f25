"""Core result data structures for the analyzer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, overload

from .severity import Severity

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.ERROR,
    Severity.WARNING,
    Severity.INFO,
)


@dataclass(frozen=True)
class Target:
    """Weak reference to the code a finding is about, by identifier path."""

    unit: str
    type_name: Optional[str] = None
    member_name: Optional[str] = None

    @property
    def path(self) -> str:
        path = self.unit
        if self.type_name:
            path += f"::{self.type_name}"
            if self.member_name:
                path += f".{self.member_name}"
        return path

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class Finding:
    """Capture a single detector firing."""

    rule_id: str
    severity: Severity
    target: Target
    message: str
    hint: Optional[str] = None

    @property
    def identity(self) -> Tuple[str, Target, str]:
        return (self.rule_id, self.target, self.message)

    @property
    def sort_key(self) -> Tuple[int, str, str, str, str, str]:
        return (
            -self.severity.rank,
            self.target.unit,
            self.rule_id,
            self.target.type_name or "",
            self.target.member_name or "",
            self.message,
        )

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["target"] = self.target.path
        data["unit"] = self.target.unit
        return data


class AnalysisResult(Sequence[Finding]):
    """Read-only sequence of findings produced by one analysis pass."""

    complete = True

    def __init__(
        self,
        findings: Iterable[Finding] = (),
        units_analyzed: int = 0,
        units_skipped: int = 0,
    ) -> None:
        self._findings: Tuple[Finding, ...] = tuple(findings)
        self.units_analyzed = units_analyzed
        self.units_skipped = units_skipped

    @overload
    def __getitem__(self, index: int) -> Finding: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[Finding, ...]: ...

    def __getitem__(self, index):
        return self._findings[index]

    def __len__(self) -> int:
        return len(self._findings)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self._findings)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AnalysisResult):
            return self._findings == other._findings and self.complete == other.complete
        if isinstance(other, (tuple, list)):
            return list(self._findings) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(findings={len(self._findings)}, "
            f"units_analyzed={self.units_analyzed}, units_skipped={self.units_skipped})"
        )

    @property
    def findings(self) -> Tuple[Finding, ...]:
        return self._findings


class PartialResult(AnalysisResult):
    """Findings of the units completed before the pass was cancelled."""

    complete = False


@dataclass
class Summary:
    """Aggregate finding counts by severity."""

    error: int = 0
    warning: int = 0
    info: int = 0

    def increment(self, severity: Severity) -> None:
        attr = severity.value
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value, getattr(self, severity.value)) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, severity.value) for severity in SEVERITY_ORDER)


@dataclass
class Report:
    """Bundle summary and ordered findings for the reporter."""

    summary: Summary = field(default_factory=Summary)
    findings: List[Finding] = field(default_factory=list)
    complete: bool = True

    @classmethod
    def from_findings(cls, findings: Iterable[Finding], complete: bool = True) -> "Report":
        report = cls(complete=complete)
        for finding in findings:
            report.add_finding(finding)
        return report

    @property
    def passed(self) -> bool:
        return self.summary.error == 0 and self.summary.warning == 0

    def add_finding(self, finding: Finding) -> None:
        self.summary.increment(finding.severity)
        self.findings.append(finding)

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
            "passed": self.passed,
            "complete": self.complete,
        }

    def exit_code(self) -> int:
        if not self.findings:
            return 0
        return max(finding.severity.rank for finding in self.findings)

    def top_findings(self, limit: int = 5) -> List[Finding]:
        """Return findings ordered by severity ranking."""

        ordered = sorted(self.findings, key=lambda finding: finding.sort_key)
        return ordered[:limit]


def format_summary_table(report: Report, max_findings: int = 5) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Analysis Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in report.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if report.passed else "FAIL"
    if not report.complete:
        status += " (partial)"
    lines.append(f"Status    : {status}")
    lines.append(f"Findings  : {report.summary.total}")

    findings = report.top_findings(max_findings)
    if findings:
        lines.append("")
        lines.append("Top Findings")
        lines.append("-" * 40)
        for finding in findings:
            lines.append(f"[{finding.severity.value}] {finding.rule_id} -> {finding.target.path}")
            lines.append(f"  {finding.message}")
            if finding.hint:
                lines.append(f"  Hint: {finding.hint}")
    return "\n".join(lines)
