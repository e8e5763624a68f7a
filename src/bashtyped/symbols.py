"""Variable binding store for a single scan."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from bashtyped.source import Span
from bashtyped.types import BashType, can_contain


class Method(Enum):
    INFERRED = "inferred"
    DECLARED = "declared"


@dataclass(frozen=True)
class TypeDeclaration:
    span: Span
    bash_type: BashType
    method: Method


class VariableTable:
    """Maps variable names to the first declaration seen for them.

    Later declarations are only validated against that first one. A
    compatible widening is accepted but not stored, so the first binding
    stays the baseline for the rest of the scan.
    """

    def __init__(self) -> None:
        self._variables: dict[str, TypeDeclaration] = {}

    def declare(
        self, name: str, decl: TypeDeclaration, *, force: bool = False,
    ) -> TypeDeclaration | None:
        """Bind *name* if unbound. Returns the existing declaration on conflict."""
        existing = self._variables.get(name)
        if existing is None:
            self._variables[name] = decl
            return None
        if force or can_contain(decl.bash_type, existing.bash_type):
            return None
        return existing

    def lookup(self, name: str) -> TypeDeclaration | None:
        return self._variables.get(name)

    def as_dict(self) -> dict[str, TypeDeclaration]:
        return dict(self._variables)

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)
