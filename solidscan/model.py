"""Structural model of one analysed source unit.

The model is produced by an external parser (or :mod:`solidscan.loader`) and is
read by every detector. All classes are frozen; collections are tuples so a
constructed unit can be shared between worker threads without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Sequence, Tuple, Union

from .errors import MalformedUnitError

LiteralValue = Union[str, int, float, bool, None]


class TypeKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"


class MemberKind(str, Enum):
    METHOD = "method"
    FIELD = "field"


class Visibility(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PACKAGE = "package"
    PRIVATE = "private"


class StatementTag(str, Enum):
    BRANCH = "branch"
    RESOURCE_ACQUIRE = "resource-acquire"
    RESOURCE_RELEASE = "resource-release"
    THROW = "throw"
    CATCH = "catch"
    CALL = "call"
    FIELD_WRITE = "field-write"
    LITERAL_COMPARE = "literal-compare"


@dataclass(frozen=True)
class Statement:
    """A tagged statement node.

    ``target`` names what the statement acts on: the callee of a call, the field
    of a field-write, the resource of an acquire/release, the exception type of a
    throw or catch, or the subject of a branch. ``value`` is the literal a branch
    or literal-compare compares against. ``body`` holds nested statements (branch
    arm, catch handler).
    """

    tag: StatementTag
    target: Optional[str] = None
    value: LiteralValue = None
    body: Tuple["Statement", ...] = ()
    scoped: bool = False
    cleanup: bool = False


@dataclass(frozen=True)
class Param:
    name: str
    type: Optional[str] = None


@dataclass(frozen=True)
class Initializer:
    """Field initializer; ``instantiates`` is set when it constructs a type directly."""

    instantiates: Optional[str] = None
    text: str = ""


@dataclass(frozen=True)
class MemberDecl:
    name: str
    kind: MemberKind
    type: Optional[str] = None
    body: Tuple[Statement, ...] = ()
    visibility: Visibility = Visibility.PUBLIC
    is_override: bool = False
    params: Tuple[Param, ...] = ()
    constructor: bool = False
    initializer: Optional[Initializer] = None

    @property
    def is_method(self) -> bool:
        return self.kind is MemberKind.METHOD

    @property
    def is_field(self) -> bool:
        return self.kind is MemberKind.FIELD


@dataclass(frozen=True)
class TypeDecl:
    name: str
    kind: TypeKind = TypeKind.CLASS
    members: Tuple[MemberDecl, ...] = ()
    supertypes: Tuple[str, ...] = ()
    implements: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise MalformedUnitError("Type declaration without a name")
        if self.kind is not TypeKind.INTERFACE:
            return
        for member in self.members:
            if member.is_method and member.body:
                raise MalformedUnitError(
                    f"Interface {self.name} declares a body for method {member.name}"
                )
            if member.is_field and member.initializer is not None:
                raise MalformedUnitError(
                    f"Interface {self.name} declares an initializer for field {member.name}"
                )

    @property
    def is_interface(self) -> bool:
        return self.kind is TypeKind.INTERFACE

    def member(self, name: str) -> Optional[MemberDecl]:
        for member in self.members:
            if member.name == name:
                return member
        return None


@dataclass(frozen=True)
class SourceUnit:
    identifier: str
    types: Tuple[TypeDecl, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.identifier:
            raise MalformedUnitError("Source unit without an identifier")
        seen = set()
        for type_decl in self.types:
            if type_decl.name in seen:
                raise MalformedUnitError(
                    f"Unit {self.identifier} declares type {type_decl.name} more than once"
                )
            seen.add(type_decl.name)

    def find_type(self, name: Optional[str]) -> Optional[TypeDecl]:
        if name is None:
            return None
        for type_decl in self.types:
            if type_decl.name == name:
                return type_decl
        return None

    def is_interface(self, name: Optional[str]) -> bool:
        type_decl = self.find_type(name)
        return type_decl is not None and type_decl.is_interface

    def implementers_of(self, interface: TypeDecl) -> Tuple[TypeDecl, ...]:
        return tuple(
            type_decl
            for type_decl in self.types
            if interface.name in type_decl.implements or interface.name in type_decl.supertypes
        )

    def contains(self, type_name: Optional[str], member_name: Optional[str] = None) -> bool:
        """Return True if the referenced type (and member) exist in this unit."""

        if type_name is None:
            return member_name is None
        type_decl = self.find_type(type_name)
        if type_decl is None:
            return False
        return member_name is None or type_decl.member(member_name) is not None


def members_of(type_decl: TypeDecl) -> Tuple[MemberDecl, ...]:
    return type_decl.members


def methods_of(type_decl: TypeDecl) -> Tuple[MemberDecl, ...]:
    return tuple(member for member in type_decl.members if member.is_method)


def fields_of(type_decl: TypeDecl) -> Tuple[MemberDecl, ...]:
    return tuple(member for member in type_decl.members if member.is_field)


def supertypes_of(type_decl: TypeDecl) -> Tuple[str, ...]:
    return type_decl.supertypes + tuple(
        name for name in type_decl.implements if name not in type_decl.supertypes
    )


def body_of(member: MemberDecl) -> Tuple[Statement, ...]:
    return member.body


def walk(statements: Sequence[Statement]) -> Iterator[Statement]:
    """Yield statements depth-first, including nested bodies."""

    for statement in statements:
        yield statement
        if statement.body:
            yield from walk(statement.body)
