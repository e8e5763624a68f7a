"""Type values for annotated shell variables.

A type is either one of the four scalars or a binary union. Unions nest to
express more than two alternatives and keep the order they were written in.
"""

from __future__ import annotations

from dataclasses import dataclass

# ── Type values ─────────────────────────────────────────────────


@dataclass(frozen=True)
class PrimitiveType:
    name: str


@dataclass(frozen=True)
class OrType:
    """Value is one of the two branches."""

    left: BashType
    right: BashType


BashType = PrimitiveType | OrType


# ── Built-in type constants ─────────────────────────────────────

STRING = PrimitiveType("string")
INTEGER = PrimitiveType("int")
BOOL = PrimitiveType("bool")
ANY = PrimitiveType("any")

BUILTINS: dict[str, BashType] = {
    "string": STRING,
    "int": INTEGER,
    "bool": BOOL,
    "any": ANY,
}


# ── Type utilities ──────────────────────────────────────────────


def type_name(ty: BashType) -> str:
    """Human-readable name for diagnostics."""
    if isinstance(ty, OrType):
        return f"{type_name(ty.left)} | {type_name(ty.right)}"
    return ty.name


def types_from_or(ty: BashType) -> list[BashType]:
    """Flatten a union into its scalar members, left to right."""
    if isinstance(ty, OrType):
        return types_from_or(ty.left) + types_from_or(ty.right)
    return [ty]


def matches(a: BashType, b: BashType) -> bool:
    """Symmetric check: could a value of one type also be of the other?"""
    if isinstance(a, OrType):
        return matches(a.left, b) or matches(a.right, b)
    if isinstance(b, OrType):
        return matches(b.left, a) or matches(b.right, a)
    return a == ANY or b == ANY or a == b


def can_contain(container: BashType, value: BashType) -> bool:
    """Check whether *container* is a safe widening of *value*.

    Unions compare as sets of members, so member order and duplicates do
    not matter. A scalar container only holds itself, except ``any`` which
    holds everything.
    """
    if isinstance(container, OrType):
        if isinstance(value, OrType):
            members = types_from_or(container)
            return all(ty in members for ty in types_from_or(value))
        return matches(container.left, value) or matches(container.right, value)
    return container == ANY or container == value
