"""Parsing of type annotations and directives embedded in comments.

Two comment forms carry meaning:

    a=1 #/ int | string          type annotation for the adjacent assignment
    #[force]                     suppress the next statement's type conflict
    #[set_var(name, int)]        declare a variable without assigning it

Every other comment is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from bashtyped.errors import (
    InvalidVariableNameError,
    MalformedTypeError,
    MissingArgumentError,
)
from bashtyped.source import Span
from bashtyped.types import BUILTINS, BashType, OrType

ANNOTATION_PREFIX = "#/"
DIRECTIVE_PREFIX = "#["

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class Comment:
    """A type annotation waiting for the statement it describes."""

    text: str
    span: Span


@dataclass(frozen=True)
class ForceDirective:
    span: Span


@dataclass(frozen=True)
class SetVarDirective:
    name: str
    bash_type: BashType
    span: Span


Directive = ForceDirective | SetVarDirective


def parse_comment(text: str, span: Span) -> Comment | Directive | None:
    """Classify a raw comment token.

    Returns a ``Comment`` for ``#/`` annotations, a directive for recognised
    ``#[...]`` commands, and None for anything else.
    """
    if text.startswith(ANNOTATION_PREFIX):
        return Comment(text[len(ANNOTATION_PREFIX):].strip(), span)
    if text.startswith(DIRECTIVE_PREFIX):
        body = text[len(DIRECTIVE_PREFIX):].strip()
        if body.endswith("]"):
            return parse_directive(body[:-1].strip(), span)
    return None


def parse_directive(command: str, span: Span) -> Directive | None:
    """Parse the inside of a ``#[...]`` comment. Unknown commands yield None."""
    if command == "force":
        return ForceDirective(span)
    if command.startswith("set_var(") and command.endswith(")"):
        args = command[len("set_var("):-1].split(",")
        if len(args) != 2:
            raise MissingArgumentError(expected=2, received=len(args), span=span)
        name = args[0].strip()
        if not _NAME_RE.fullmatch(name):
            raise InvalidVariableNameError(name, span)
        return SetVarDirective(name, type_from_string(args[1], span), span)
    return None


def type_from_string(text: str, span: Span) -> BashType:
    """Resolve a type expression such as ``int | string``.

    Unions split on the first ``|`` so they nest to the right:
    ``int|string|bool`` becomes ``int | (string | bool)``.
    """
    cleaned = text.strip()
    builtin = BUILTINS.get(cleaned)
    if builtin is not None:
        return builtin
    first, sep, rest = cleaned.partition("|")
    if not sep:
        raise MalformedTypeError(cleaned, span)
    return OrType(type_from_string(first, span), type_from_string(rest, span))
