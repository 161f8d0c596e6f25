"""Exception taxonomy for the analyzer."""

from __future__ import annotations

from typing import Optional, Tuple


class SolidscanError(Exception):
    """Base class for all analyzer errors."""


class MalformedUnitError(SolidscanError):
    """A structural model violates one of its construction invariants."""


class DuplicateRuleError(SolidscanError):
    """A detector id was registered twice."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Detector {rule_id!r} is already registered")
        self.rule_id = rule_id


class ParseError(SolidscanError):
    """Raw input could not be turned into a structural model."""

    def __init__(self, message: str, position: Optional[Tuple[int, int]] = None) -> None:
        location = f" at line {position[0]}, column {position[1]}" if position else ""
        super().__init__(f"{message}{location}")
        self.message = message
        self.position = position


class ConfigError(SolidscanError):
    """The analyzer configuration could not be resolved."""
