"""Command-line entry point for the solidscan analyzer."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from . import __version__
from .config import Configuration, load_config
from .errors import SolidscanError
from .loader import pending_units
from .pipeline import run
from .result import AnalysisResult, Report, format_summary_table
from .rules import RuleRegistry, default_registry, load_plugins
from .severity import Severity

logger = logging.getLogger(__name__)

DEFAULT_MODEL_DIRS = ("models",)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solidscan",
        description="Detect object-oriented design violations in structural source models",
    )
    parser.add_argument(
        "--model",
        "-m",
        dest="model_paths",
        action="append",
        default=[],
        help="Model file or directory of model files to analyze (repeatable).",
    )
    parser.add_argument(
        "--config",
        "-c",
        dest="config_path",
        default=None,
        help="YAML configuration file (defaults to ./solidscan.yaml when present).",
    )
    parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="json",
        help="Report format for file output (defaults to json).",
    )
    parser.add_argument(
        "--out",
        "--output",
        dest="output_path",
        type=str,
        default=None,
        help="Path to write the structured report (e.g., artifacts/solidscan.json).",
    )
    parser.add_argument(
        "--min-severity",
        choices=[severity.value for severity in Severity],
        default=Severity.INFO.value,
        help="Drop findings below this severity from the report.",
    )
    parser.add_argument("--workers", type=int, default=None, help="Number of analysis threads.")
    parser.add_argument("--timeout", type=float, default=None, help="Per-unit analysis budget in seconds.")
    parser.add_argument(
        "--no-plugins",
        action="store_true",
        help="Do not load detectors advertised by installed packages.",
    )
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Increase log verbosity.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def build_registry(config: Configuration, use_plugins: bool = True) -> RuleRegistry:
    registry = default_registry(config)
    if use_plugins:
        load_plugins(registry, config)
    return registry


def run_analysis(
    model_paths: Iterable[str],
    config: Configuration,
    registry: RuleRegistry,
    workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> AnalysisResult:
    units = list(pending_units(model_paths))
    logger.info("Analyzing %d model files", len(units))
    return run(units, registry, config, max_workers=workers, unit_timeout=timeout)


def build_report(result: AnalysisResult, min_severity: Severity = Severity.INFO) -> Report:
    kept = [finding for finding in result if finding.severity.rank >= min_severity.rank]
    return Report.from_findings(kept, complete=result.complete)


def write_output(report: Report, output_path: str | None, report_format: str) -> None:
    summary = format_summary_table(report)
    print(summary)

    if report_format == "json":
        payload = json.dumps(report.to_dict(), indent=2)
    else:
        payload = "\n".join(
            f"{finding.severity.value}\t{finding.rule_id}\t{finding.target.path}\t{finding.message}"
            for finding in report.findings
        )
    if output_path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(payload, encoding="utf-8")
        print(f"\nReport written to {output_path}")
    elif report_format == "json":
        print("\nJSON Report")
        print(payload)


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    model_paths = args.model_paths or list(DEFAULT_MODEL_DIRS)
    try:
        config = load_config(Path(args.config_path) if args.config_path else None)
        registry = build_registry(config, use_plugins=not args.no_plugins)
    except SolidscanError as exc:
        print(f"solidscan: {exc}", file=sys.stderr)
        return 3
    result = run_analysis(model_paths, config, registry, workers=args.workers, timeout=args.timeout)
    report = build_report(result, Severity.parse(args.min_severity))
    write_output(report, args.output_path, args.format)
    return report.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
