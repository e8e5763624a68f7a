"""Shared test helpers for the bashtyped test suite."""

from __future__ import annotations

from bashtyped.checker import Checker
from bashtyped.errors import Diagnostic
from bashtyped.source import Span
from bashtyped.symbols import VariableTable


def span(start: int, end: int) -> Span:
    """Span in the file name every helper below checks under."""
    return Span("<test>", start, end)


def scan(source: str) -> Checker:
    """Check source and return the checker, whatever it found."""
    checker = Checker("<test>")
    checker.check(source)
    return checker


def check(source: str) -> VariableTable:
    """Check source, asserting no errors. Returns the variable table."""
    checker = scan(source)
    errors = [d for d in checker.diagnostics if d.severity.value == "error"]
    assert not errors, f"Unexpected errors: {[f'{d.code}: {d.message}' for d in errors]}"
    return checker.variables


def check_fails(source: str, error_code: str) -> list[Diagnostic]:
    """Check source, asserting the given error code appears."""
    checker = scan(source)
    matching = [d for d in checker.diagnostics if d.code == error_code]
    assert matching, (
        f"Expected error {error_code} but got: "
        f"{[f'{d.code}: {d.message}' for d in checker.diagnostics] or 'no diagnostics'}"
    )
    return matching
