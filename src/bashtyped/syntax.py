"""Bash syntax trees via tree-sitter."""

from __future__ import annotations

import tree_sitter_bash
from tree_sitter import Language, Node, Parser, Tree

from bashtyped.errors import InvalidUnicodeError
from bashtyped.source import Span

BASH_LANGUAGE = Language(tree_sitter_bash.language())


def parse(source: bytes) -> Tree:
    return Parser(BASH_LANGUAGE).parse(source)


def node_span(node: Node, filename: str) -> Span:
    return Span(filename, node.start_byte, node.end_byte)


def node_text(node: Node, source: bytes, filename: str) -> str:
    """Decode the source text of *node*. Raises InvalidUnicodeError."""
    try:
        return source[node.start_byte:node.end_byte].decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidUnicodeError(node_span(node, filename)) from None
