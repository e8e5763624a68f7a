"""Type checker for annotated shell scripts.

Walks a tree-sitter Bash tree depth-first. Comments are parsed into type
annotations and directives, assignments get their value's type inferred and
reconciled with any annotation, and every binding goes through the variable
table, which rejects incompatible redeclarations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tree_sitter import Node, Tree

from bashtyped.annotations import (
    ANNOTATION_PREFIX,
    Comment,
    ForceDirective,
    SetVarDirective,
    parse_comment,
    type_from_string,
)
from bashtyped.errors import (
    Diagnostic,
    DiagnosticLabel,
    ScanError,
    Severity,
    UnknownVariableError,
    UnsupportedExpressionError,
)
from bashtyped.source import Span
from bashtyped.symbols import Method, TypeDeclaration, VariableTable
from bashtyped.syntax import node_span, node_text, parse
from bashtyped.types import INTEGER, STRING, BashType, can_contain, type_name

logger = logging.getLogger(__name__)

# Literal forms whose type never depends on the variable table
_LITERAL_TYPES: dict[str, BashType] = {
    "number": INTEGER,
    "word": STRING,
    "raw_string": STRING,
}


@dataclass(frozen=True)
class ScanContext:
    """Per-statement state. A new one is built at every statement boundary."""

    force: bool = False


@dataclass(frozen=True)
class Carry:
    """What a run of comments hands to the statement after it."""

    annotation: Comment | None = None
    force: bool = False


@dataclass
class _Frame:
    """One level of the walk: a sibling list and how far through it we are."""

    children: list[Node]
    scope: ScanContext
    index: int = 0
    carry: Carry = field(default_factory=Carry)
    consumed: int | None = None


class Checker:
    """Type checker for a single script. Use one instance per file."""

    def __init__(self, filename: str = "<input>") -> None:
        self.filename = filename
        self.source = b""
        self.variables = VariableTable()
        self.diagnostics: list[Diagnostic] = []
        self.tree: Tree | None = None

    # ── Public API ──────────────────────────────────────────────

    def check(self, source: bytes | str) -> VariableTable:
        """Scan a script. Raises nothing; check self.diagnostics."""
        if isinstance(source, str):
            source = source.encode("utf-8")
        self.source = source
        self.tree = parse(source)
        self._walk(self.tree.root_node)
        return self.variables

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    # ── Traversal ───────────────────────────────────────────────

    def _walk(self, root: Node) -> None:
        """Visit every node below *root* depth-first, pre-order.

        Annotations and ``force`` flow from a comment to the next sibling
        statement only. A forced statement forces everything nested in it.
        The walk keeps its own stack so nesting depth is not limited by the
        interpreter's recursion limit.
        """
        stack = [_Frame(root.children, ScanContext())]
        while stack:
            frame = stack[-1]
            if frame.index >= len(frame.children):
                stack.pop()
                continue
            node = frame.children[frame.index]
            frame.index += 1
            # Terminators like ";" and newlines are not statements
            if not node.is_named or node.id == frame.consumed:
                continue
            ctx = ScanContext(force=frame.scope.force or frame.carry.force)

            if node.type == "comment":
                frame.carry = self._visit_comment(node, frame.carry, ctx)
                continue

            if node.type == "variable_assignment":
                trailing = self._trailing_annotation(node)
                if trailing is not None:
                    frame.consumed = trailing.id
                try:
                    self._visit_assignment(node, trailing, frame.carry.annotation, ctx)
                except ScanError as e:
                    self._report(e)

            frame.carry = Carry()
            if node.child_count:
                stack.append(_Frame(node.children, ctx))

    def _visit_comment(self, node: Node, carry: Carry, ctx: ScanContext) -> Carry:
        span = node_span(node, self.filename)
        try:
            parsed = parse_comment(node_text(node, self.source, self.filename), span)
            if isinstance(parsed, SetVarDirective):
                decl = TypeDeclaration(span, parsed.bash_type, Method.DECLARED)
                self._set_variable(parsed.name, decl, ctx)
        except ScanError as e:
            self._report(e)
            return carry

        if isinstance(parsed, Comment):
            return Carry(annotation=parsed, force=carry.force)
        if isinstance(parsed, ForceDirective):
            return Carry(annotation=carry.annotation, force=True)
        if isinstance(parsed, SetVarDirective):
            return carry
        return Carry(force=carry.force)

    def _trailing_annotation(self, node: Node) -> Node | None:
        """The ``#/`` comment that ends the assignment's line, if any."""
        sibling = node.next_named_sibling
        if sibling is None or sibling.type != "comment":
            return None
        if sibling.start_point.row != node.end_point.row:
            return None
        prefix = self.source[sibling.start_byte:sibling.start_byte + len(ANNOTATION_PREFIX)]
        if prefix != ANNOTATION_PREFIX.encode():
            return None
        return sibling

    # ── Assignments ─────────────────────────────────────────────

    def _visit_assignment(
        self,
        node: Node,
        trailing: Node | None,
        pending: Comment | None,
        ctx: ScanContext,
    ) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            raise UnsupportedExpressionError(node.type, node_span(node, self.filename))
        name = node_text(name_node, self.source, self.filename)
        # `a=` has no value node
        value = node.child_by_field_name("value")
        if value is None or value.start_byte == value.end_byte:
            inferred = STRING
            inferred_span = node_span(node, self.filename)
        else:
            inferred = self.infer_type(value)
            inferred_span = Span(self.filename, name_node.start_byte, value.end_byte)

        annotation = pending
        if trailing is not None:
            text = node_text(trailing, self.source, self.filename)
            inline = parse_comment(text, node_span(trailing, self.filename))
            if isinstance(inline, Comment):
                annotation = inline

        if annotation is None:
            decl = TypeDeclaration(inferred_span, inferred, Method.INFERRED)
        else:
            suggested = type_from_string(annotation.text, annotation.span)
            if not (can_contain(suggested, inferred) or ctx.force):
                self._mismatch(annotation.span, suggested, inferred_span, inferred)
                return
            decl = TypeDeclaration(
                annotation.span.combine(inferred_span), suggested, Method.DECLARED,
            )
        self._set_variable(name, decl, ctx)

    def _set_variable(self, name: str, decl: TypeDeclaration, ctx: ScanContext) -> None:
        existing = self.variables.declare(name, decl, force=ctx.force)
        if existing is None:
            logger.debug(
                "%s: %s %s as %s",
                decl.span, name, decl.method.value, type_name(decl.bash_type),
            )
            return
        self.diagnostics.append(Diagnostic(
            severity=Severity.ERROR,
            code="E201",
            message=f"variable `{name}` defined with different type",
            labels=[
                _declaration_label(existing, later=False),
                _declaration_label(decl, later=True),
            ],
        ))

    # ── Inference ───────────────────────────────────────────────

    def infer_type(self, node: Node) -> BashType:
        """Type of an assignment's value node."""
        kind = node.type
        literal = _LITERAL_TYPES.get(kind)
        if literal is not None:
            return literal
        if kind == "string":
            # "$x" takes the type of x; anything with literal text is a string
            named = node.named_children
            if len(named) == 1 and named[0].type != "string_content":
                return self.infer_type(named[0])
            return STRING
        if kind == "simple_expansion":
            return self._infer_variable(node)
        if kind == "expansion" and node.named_child_count == 1:
            # ${name} only; operators like ${name:-x} are unsupported
            if node.named_children[0].type == "variable_name":
                return self._infer_variable(node)
        raise UnsupportedExpressionError(kind, node_span(node, self.filename))

    def _infer_variable(self, node: Node) -> BashType:
        names = [
            child for child in node.named_children
            if child.type in ("variable_name", "special_variable_name")
        ]
        if len(names) != 1:
            raise UnsupportedExpressionError(node.type, node_span(node, self.filename))
        name_node = names[0]
        name = node_text(name_node, self.source, self.filename)
        decl = self.variables.lookup(name)
        if decl is None:
            raise UnknownVariableError(name, node_span(name_node, self.filename))
        return decl.bash_type

    # ── Error helpers ───────────────────────────────────────────

    def _report(self, error: ScanError) -> None:
        logger.debug("%s: %s", error.span, error.message)
        self.diagnostics.append(error.to_diagnostic())

    def _mismatch(
        self,
        specified_span: Span,
        specified: BashType,
        inferred_span: Span,
        inferred: BashType,
    ) -> None:
        self.diagnostics.append(Diagnostic(
            severity=Severity.ERROR,
            code="E200",
            message="types do not match",
            labels=[
                DiagnosticLabel(
                    span=specified_span,
                    message=f"type specified as {type_name(specified)}",
                    style="declared",
                ),
                DiagnosticLabel(
                    span=inferred_span,
                    message=f"type inferred to be {type_name(inferred)}",
                    style="inferred",
                ),
            ],
        ))


def _declaration_label(decl: TypeDeclaration, *, later: bool) -> DiagnosticLabel:
    qualifier = "later " if later else ""
    return DiagnosticLabel(
        span=decl.span,
        message=f"type {qualifier}{decl.method.value} to be {type_name(decl.bash_type)}",
        style=decl.method.value,
    )
