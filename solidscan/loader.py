"""Build structural models from serialized YAML/JSON documents.

Language front-ends emit one document per source unit::

    unit: billing/OrderService.java
    types:
      - name: OrderService
        kind: class
        implements: [Service]
        members:
          - name: place
            kind: method
            body:
              - call: repository.save
              - branch: customer.type
                value: SENIOR
              - catch: IOException
                body: []

Statement entries use one tag key (``branch``, ``acquire``, ``release``,
``throw``, ``catch``, ``call``, ``write``, ``compare`` or the canonical tag
names) whose value is the statement target, plus optional ``value``, ``body``,
``scoped`` and ``cleanup`` keys.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml

from .errors import ParseError
from .model import (
    Initializer,
    MemberDecl,
    MemberKind,
    Param,
    SourceUnit,
    Statement,
    StatementTag,
    TypeDecl,
    TypeKind,
    Visibility,
)
from .utils import iter_model_files, read_text_file, read_yaml_text

logger = logging.getLogger(__name__)

TAG_ALIASES = {
    "branch": StatementTag.BRANCH,
    "acquire": StatementTag.RESOURCE_ACQUIRE,
    "release": StatementTag.RESOURCE_RELEASE,
    "throw": StatementTag.THROW,
    "catch": StatementTag.CATCH,
    "call": StatementTag.CALL,
    "write": StatementTag.FIELD_WRITE,
    "compare": StatementTag.LITERAL_COMPARE,
}
TAG_ALIASES.update({tag.value: tag for tag in StatementTag})
STATEMENT_KEYS = {"value", "body", "scoped", "cleanup"}


@dataclass(frozen=True)
class PendingUnit:
    """A unit that is loaded lazily inside the analysis worker."""

    identifier: str
    load: Callable[[], SourceUnit]


def parse(raw_text: str, unit_identifier: str) -> SourceUnit:
    """Parse a serialized structural model into a :class:`SourceUnit`.

    Raises :class:`ParseError` for undecodable or mis-shaped documents and lets
    :class:`~solidscan.errors.MalformedUnitError` propagate for invariant
    violations.
    """

    try:
        data = read_yaml_text(raw_text)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark
        position = (mark.line + 1, mark.column + 1) if mark is not None else None
        raise ParseError(exc.problem or str(exc), position) from exc
    except yaml.YAMLError as exc:
        raise ParseError(str(exc)) from exc
    if data is None:
        data = {}
    return build_unit(data, unit_identifier)


def build_unit(data: Any, unit_identifier: str) -> SourceUnit:
    """Build a unit from an already decoded mapping."""

    if not isinstance(data, Mapping):
        raise ParseError(f"Unit {unit_identifier}: document must be a mapping")
    identifier = str(data.get("unit") or unit_identifier)
    raw_types = _ensure_list(data.get("types"), f"{identifier}: types")
    types = tuple(_build_type(raw, f"{identifier}: types[{index}]") for index, raw in enumerate(raw_types))
    return SourceUnit(identifier=identifier, types=types)


def load_unit(path: Path, identifier: Optional[str] = None) -> SourceUnit:
    """Read and parse one model file; undecodable bytes raise :class:`ParseError`."""

    try:
        text = read_text_file(path)
    except UnicodeDecodeError as exc:
        raise ParseError(f"{path.as_posix()} is not valid UTF-8: {exc.reason} at byte {exc.start}") from exc
    return parse(text, identifier or path.as_posix())


def pending_units(paths: Iterable[str]) -> Iterator[PendingUnit]:
    """Discover model files and yield lazily loaded units for each."""

    for path in iter_model_files(paths):
        identifier = path.as_posix()
        logger.debug("Discovered model file %s", identifier)
        yield PendingUnit(identifier=identifier, load=_file_loader(path, identifier))


def _file_loader(path: Path, identifier: str) -> Callable[[], SourceUnit]:
    def load() -> SourceUnit:
        return load_unit(path, identifier)

    return load


# ----------------------------------------------------------------------
# Shape helpers
# ----------------------------------------------------------------------
def _build_type(raw: Any, where: str) -> TypeDecl:
    if not isinstance(raw, Mapping) or not raw.get("name"):
        raise ParseError(f"{where}: type declaration needs a name")
    kind = _enum(TypeKind, raw.get("kind", TypeKind.CLASS.value), f"{where}.kind")
    members = tuple(
        _build_member(member, f"{where}.members[{index}]")
        for index, member in enumerate(_ensure_list(raw.get("members"), f"{where}.members"))
    )
    return TypeDecl(
        name=str(raw["name"]),
        kind=kind,
        members=members,
        supertypes=_names(raw.get("extends", raw.get("supertypes")), f"{where}.extends"),
        implements=_names(raw.get("implements"), f"{where}.implements"),
    )


def _build_member(raw: Any, where: str) -> MemberDecl:
    if not isinstance(raw, Mapping) or not raw.get("name"):
        raise ParseError(f"{where}: member declaration needs a name")
    kind = _enum(MemberKind, raw.get("kind", MemberKind.METHOD.value), f"{where}.kind")
    body = _build_body(raw.get("body"), f"{where}.body")
    if kind is MemberKind.FIELD and body:
        raise ParseError(f"{where}: fields cannot have a body")
    params = tuple(
        _build_param(param, f"{where}.params[{index}]")
        for index, param in enumerate(_ensure_list(raw.get("params"), f"{where}.params"))
    )
    return MemberDecl(
        name=str(raw["name"]),
        kind=kind,
        type=_optional_str(raw.get("type", raw.get("returns"))),
        body=body,
        visibility=_enum(Visibility, raw.get("visibility", Visibility.PUBLIC.value), f"{where}.visibility"),
        is_override=bool(raw.get("override", False)),
        params=params,
        constructor=bool(raw.get("constructor", False)),
        initializer=_build_initializer(raw.get("init"), f"{where}.init"),
    )


def _build_param(raw: Any, where: str) -> Param:
    if isinstance(raw, str):
        name, _, type_name = raw.partition(":")
        return Param(name=name.strip(), type=type_name.strip() or None)
    if not isinstance(raw, Mapping) or not raw.get("name"):
        raise ParseError(f"{where}: parameter needs a name")
    return Param(name=str(raw["name"]), type=_optional_str(raw.get("type")))


def _build_initializer(raw: Any, where: str) -> Optional[Initializer]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return Initializer(text=raw)
    if not isinstance(raw, Mapping):
        raise ParseError(f"{where}: initializer must be text or a mapping")
    return Initializer(instantiates=_optional_str(raw.get("new")), text=str(raw.get("text", "")))


def _build_body(raw: Any, where: str) -> Tuple[Statement, ...]:
    return tuple(
        _build_statement(statement, f"{where}[{index}]")
        for index, statement in enumerate(_ensure_list(raw, where))
    )


def _build_statement(raw: Any, where: str) -> Statement:
    if isinstance(raw, str):
        tag = TAG_ALIASES.get(raw)
        if tag is None:
            raise ParseError(f"{where}: unknown statement {raw!r}")
        return Statement(tag=tag)
    if not isinstance(raw, Mapping):
        raise ParseError(f"{where}: statement must be a mapping")
    tag_keys = [key for key in raw if key in TAG_ALIASES]
    if len(tag_keys) != 1:
        raise ParseError(f"{where}: statement needs exactly one tag key, found {tag_keys or 'none'}")
    unknown = set(raw) - set(tag_keys) - STATEMENT_KEYS
    if unknown:
        raise ParseError(f"{where}: unknown statement keys {sorted(unknown)}")
    key = tag_keys[0]
    value = raw.get("value")
    if value is not None and not isinstance(value, (str, int, float, bool)):
        raise ParseError(f"{where}.value: compared value must be a scalar")
    return Statement(
        tag=TAG_ALIASES[key],
        target=_optional_str(raw[key]),
        value=value,
        body=_build_body(raw.get("body"), f"{where}.body"),
        scoped=bool(raw.get("scoped", False)),
        cleanup=bool(raw.get("cleanup", False)),
    )


def _ensure_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(f"{where}: expected a list")
    return value


def _names(value: Any, where: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(name) for name in _ensure_list(value, where))


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _enum(enum_cls, value: Any, where: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ParseError(f"{where}: {value!r} is not one of {choices}") from None
