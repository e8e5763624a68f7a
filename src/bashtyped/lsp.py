"""bashtyped language server, pygls-based, for shell scripts.

Provides diagnostics, hover and document symbols via stdio transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer
from tree_sitter import Node, Tree

from bashtyped import __version__
from bashtyped.checker import Checker
from bashtyped.errors import Diagnostic, Severity
from bashtyped.source import SourceFile, Span
from bashtyped.symbols import VariableTable
from bashtyped.types import type_name

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}


def span_to_range(span: Span, source: SourceFile) -> lsp.Range:
    """Convert a byte Span to a 0-indexed LSP Range."""
    sl, sc = source.location(span.start)
    el, ec = source.location(span.end)
    return lsp.Range(
        start=lsp.Position(line=sl - 1, character=sc - 1),
        end=lsp.Position(line=el - 1, character=ec - 1),
    )


def _to_lsp_diag(d: Diagnostic, source: SourceFile) -> lsp.Diagnostic:
    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    if d.labels:
        span_range = span_to_range(d.labels[0].span, source)
    related = [
        lsp.DiagnosticRelatedInformation(
            location=lsp.Location(uri=source.name, range=span_to_range(label.span, source)),
            message=label.message,
        )
        for label in d.labels[1:]
        if label.message
    ]
    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP.get(d.severity, lsp.DiagnosticSeverity.Error),
        source="bashtyped",
        code=d.code,
        message=f"[{d.code}] {d.message}",
        related_information=related or None,
    )


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: SourceFile
    variables: VariableTable | None = None
    tree: Tree | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


server = LanguageServer(
    "bashtyped-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _analyze(uri: str, text: str) -> DocumentState:
    """Run the checker, cache results, return state."""
    source = SourceFile(text, uri)
    ds = DocumentState(source=source)
    try:
        checker = Checker(uri)
        ds.variables = checker.check(source.content)
        ds.tree = checker.tree
        ds.diagnostics = [_to_lsp_diag(d, source) for d in checker.diagnostics]
    except Exception as e:
        ds.diagnostics = [lsp.Diagnostic(
            range=lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0)),
            severity=lsp.DiagnosticSeverity.Error, source="bashtyped",
            message=f"[internal] checker error: {e}",
        )]
    _state[uri] = ds
    return ds


# Node kinds that name a variable, and the expansions that wrap one
_NAME_KINDS = ("variable_name", "special_variable_name")
_EXPANSION_KINDS = ("simple_expansion", "expansion")


def _variable_node(node: Node) -> Node | None:
    if node.type in _NAME_KINDS:
        return node
    if node.type in _EXPANSION_KINDS:
        names = [c for c in node.named_children if c.type in _NAME_KINDS]
        if len(names) == 1:
            return names[0]
    return None


def _variable_at(ds: DocumentState, line: int, character: int) -> str:
    """Name of the variable under a 0-indexed position, or "".

    Resolves assignment targets, ``$name`` and ``${name}``, with the cursor
    anywhere on the name or its ``$``/braces.
    """
    if ds.tree is None:
        return ""
    offset = ds.source.offset(line + 1, character + 1)
    if offset is None:
        return ""
    # A cursor just after a name still counts as on it
    for at in (offset, offset - 1):
        if at < 0:
            continue
        node = ds.tree.root_node.named_descendant_for_byte_range(at, at)
        found = _variable_node(node) if node is not None else None
        if found is not None:
            return ds.source.span_text(Span(ds.source.name, found.start_byte, found.end_byte))
    return ""


def _publish(uri: str, ds: DocumentState) -> None:
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    _publish(uri, _analyze(uri, params.text_document.text))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync, take last content change
    text = params.content_changes[-1].text if params.content_changes else ""
    _publish(uri, _analyze(uri, text))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.variables is None:
        return None

    word = _variable_at(ds, params.position.line, params.position.character)
    decl = ds.variables.lookup(word) if word else None
    if decl is None:
        return None

    content = f"**variable** `{word}` : `{type_name(decl.bash_type)}` ({decl.method.value})"
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=content,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.variables is None:
        return []
    return _variable_symbols(ds)


def _variable_symbols(ds: DocumentState) -> list[lsp.DocumentSymbol]:
    symbols: list[lsp.DocumentSymbol] = []
    for name, decl in ds.variables.as_dict().items():
        span_range = span_to_range(decl.span, ds.source)
        symbols.append(lsp.DocumentSymbol(
            name=name,
            kind=lsp.SymbolKind.Variable,
            range=span_range,
            selection_range=span_range,
            detail=type_name(decl.bash_type),
        ))
    return symbols


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the bashtyped language server on stdio."""
    server.start_io()
