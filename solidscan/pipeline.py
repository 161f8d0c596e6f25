"""Fan source units through the enabled detectors and collect their findings."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Union

from .aggregate import aggregate
from .config import Configuration
from .errors import MalformedUnitError, ParseError
from .loader import PendingUnit
from .model import SourceUnit
from .result import AnalysisResult, Finding, PartialResult, Target
from .rules import Detector, RuleRegistry
from .severity import Severity

logger = logging.getLogger(__name__)

DETECTOR_FAILURE = "internal.detector-failure"
MALFORMED_UNIT = "internal.malformed-unit"
PARSE_FAILURE = "internal.parse-failure"
UNIT_TIMEOUT = "internal.unit-timeout"

UnitInput = Union[SourceUnit, PendingUnit]


def analyze(
    units: Iterable[UnitInput],
    registry: RuleRegistry,
    config: Optional[Configuration] = None,
    *,
    max_workers: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
    unit_timeout: Optional[float] = None,
) -> AnalysisResult:
    """Run every enabled detector over every unit.

    Units are independent, so they are analysed on a thread pool; findings are
    returned in input-unit order and detector-registration order regardless of
    scheduling. Errors local to one unit become ``internal.*`` findings. If
    ``cancel`` is set, units not yet started are skipped and a
    :class:`PartialResult` is returned.
    """

    config = config or Configuration()
    detectors = tuple(registry.enabled(config))
    inputs = list(units)
    logger.debug("Analyzing %d units with %d detectors", len(inputs), len(detectors))

    def work(unit: UnitInput) -> Optional[List[Finding]]:
        if cancel is not None and cancel.is_set():
            return None
        return _analyze_unit(unit, detectors, config, unit_timeout)

    if max_workers == 1 or len(inputs) <= 1:
        outcomes = [work(unit) for unit in inputs]
    else:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="solidscan") as pool:
            outcomes = list(pool.map(work, inputs))

    findings: List[Finding] = []
    analyzed = skipped = 0
    for outcome in outcomes:
        if outcome is None:
            skipped += 1
            continue
        analyzed += 1
        findings.extend(outcome)

    if skipped:
        logger.info("Analysis cancelled; %d of %d units skipped", skipped, len(inputs))
        return PartialResult(findings, units_analyzed=analyzed, units_skipped=skipped)
    return AnalysisResult(findings, units_analyzed=analyzed)


def run(
    units: Iterable[UnitInput],
    registry: RuleRegistry,
    config: Optional[Configuration] = None,
    **kwargs,
) -> AnalysisResult:
    """Analyze then aggregate, keeping the partial marker."""

    result = analyze(units, registry, config, **kwargs)
    result_cls = PartialResult if not result.complete else AnalysisResult
    return result_cls(
        aggregate(result),
        units_analyzed=result.units_analyzed,
        units_skipped=result.units_skipped,
    )


def _analyze_unit(
    unit: UnitInput,
    detectors: Sequence[Detector],
    config: Configuration,
    unit_timeout: Optional[float],
) -> List[Finding]:
    identifier = unit.identifier
    deadline = time.monotonic() + unit_timeout if unit_timeout is not None else None
    if isinstance(unit, PendingUnit):
        try:
            unit = unit.load()
        except MalformedUnitError as exc:
            logger.warning("Unit %s is malformed: %s", identifier, exc)
            return [_internal(MALFORMED_UNIT, identifier, f"Malformed unit: {exc}")]
        except ParseError as exc:
            logger.warning("Unit %s could not be parsed: %s", identifier, exc)
            return [_internal(PARSE_FAILURE, identifier, f"Parse error: {exc}")]
        except OSError as exc:
            logger.warning("Unit %s could not be read: %s", identifier, exc)
            return [_internal(PARSE_FAILURE, identifier, f"Cannot read unit: {exc}")]
        except Exception as exc:
            logger.warning("Unit %s could not be loaded", identifier, exc_info=True)
            return [_internal(PARSE_FAILURE, identifier, f"Cannot load unit: {type(exc).__name__}: {exc}")]

    logger.debug("Analyzing unit %s", unit.identifier)
    findings: List[Finding] = []
    for index, detector in enumerate(detectors):
        if _expired(deadline):
            findings.append(_timeout(unit.identifier, unit_timeout, detectors[index:]))
            return findings
        findings.extend(_run_detector(detector, unit, config))
    if _expired(deadline):
        findings.append(_timeout(unit.identifier, unit_timeout, ()))
    return findings


def _expired(deadline: Optional[float]) -> bool:
    return deadline is not None and time.monotonic() > deadline


def _timeout(unit_identifier: str, unit_timeout: Optional[float], pending: Sequence[Detector]) -> Finding:
    if pending:
        remaining = ", ".join(_detector_name(detector) for detector in pending)
        detail = f"detectors not run: {remaining}"
    else:
        detail = "all detectors ran past the budget"
    logger.warning("Unit %s exceeded %ss; %s", unit_identifier, unit_timeout, detail)
    return _internal(UNIT_TIMEOUT, unit_identifier, f"Analysis exceeded {unit_timeout}s; {detail}")


def _run_detector(detector: Detector, unit: SourceUnit, config: Configuration) -> List[Finding]:
    rule_id = _detector_name(detector)
    try:
        return _collect(detector, unit, config)
    except Exception as exc:
        logger.warning("Detector %s failed on unit %s", rule_id, unit.identifier, exc_info=True)
        return [
            _internal(
                DETECTOR_FAILURE,
                unit.identifier,
                f"Detector {rule_id} failed: {type(exc).__name__}: {exc}",
            )
        ]


def _collect(detector: Detector, unit: SourceUnit, config: Configuration) -> List[Finding]:
    findings: List[Finding] = []
    for finding in detector.evaluate(unit):
        if not isinstance(finding, Finding):
            raise TypeError(f"expected a Finding, got {type(finding).__name__}")
        if not _targets_unit(finding, unit):
            raise LookupError(f"reported a target outside the unit: {finding.target}")
        severity = config.severity_for(finding.rule_id, finding.severity)
        if severity is not finding.severity:
            finding = replace(finding, severity=severity)
        if config.is_suppressed(finding):
            continue
        findings.append(finding)
    return findings


def _detector_name(detector: Detector) -> str:
    try:
        return str(detector.id())
    except Exception:
        logger.debug("Detector %r has no usable id", detector, exc_info=True)
        return type(detector).__name__


def _targets_unit(finding: Finding, unit: SourceUnit) -> bool:
    target = finding.target
    return target.unit == unit.identifier and unit.contains(target.type_name, target.member_name)


def _internal(rule_id: str, unit_identifier: str, message: str) -> Finding:
    return Finding(
        rule_id=rule_id,
        severity=Severity.ERROR,
        target=Target(unit=unit_identifier),
        message=message,
    )
