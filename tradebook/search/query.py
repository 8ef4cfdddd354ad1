"""Textual trade queries in an RSQL-style syntax.

    book.name==Rates;legs.notional=ge=1000000
    (status==NEW,status==AMENDED) and counterparty==*bank*
    trade_id=in=(10001,10002,10003)

``;`` (or ``and``) binds tighter than ``,`` (or ``or``); parentheses
group. Operators: ``==`` ``!=`` ``=gt=``/``>`` ``=ge=``/``>=``
``=lt=``/``<`` ``=le=``/``<=`` ``=in=`` ``=out=``. Values may be bare or
single/double quoted; ``=in=`` and ``=out=`` take a parenthesised list.
On text selectors ``==``, ``!=``, ``=in=`` and ``=out=`` ignore case and
surrounding blanks, and ``*value*`` matches a substring.

Parsing is two-phase. ``parse_query`` builds a syntax tree of QueryNode
values and accepts any ``=name=`` operator; ``to_predicate`` resolves
selectors, operators and values against the field registry and rejects
what it does not know. Both return Err(ParseError) rather than raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import final

from tradebook.core.errors import ParseError
from tradebook.core.result import Err, Ok
from tradebook.core.types import UtcDatetime
from tradebook.search.predicate import (
    And,
    Comparison,
    ComparisonOp,
    Or,
    Predicate,
    ValueKind,
    coerce_value,
    field_spec,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Syntax tree
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ComparisonNode:
    selector: str
    operator: str
    arguments: tuple[str, ...]
    position: int = 0


@final
@dataclass(frozen=True, slots=True)
class AndNode:
    children: tuple[QueryNode, ...]


@final
@dataclass(frozen=True, slots=True)
class OrNode:
    children: tuple[QueryNode, ...]


type QueryNode = ComparisonNode | AndNode | OrNode


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

# Longest spellings first so ">=" is not read as ">".
_SYMBOL_OPERATORS = ("==", "!=", ">=", "<=", ">", "<")
_RESERVED = frozenset("'\"();,")
_SELECTOR_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_.")

_AND = "and"
_OR = "or"
_OPEN = "("
_PRECEDENCE = {_AND: 2, _OR: 1}


class _SyntaxError(Exception):
    def __init__(self, message: str, position: int) -> None:
        super().__init__(message)
        self.message = message
        self.position = position


def _parse_error(text: str, message: str, position: int | None, source: str) -> ParseError:
    return ParseError(
        message=message,
        code="INVALID_QUERY",
        timestamp=UtcDatetime.now(),
        source=source,
        query=text,
        position=position,
    )


class _Scanner:
    """Cursor over the query text. Raises _SyntaxError on malformed input."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def at_end(self) -> bool:
        self.skip_ws()
        return self.pos >= len(self.text)

    def peek(self) -> str:
        self.skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def keyword(self, word: str) -> bool:
        """Consume ``word`` when it stands alone (followed by space or '(')."""
        self.skip_ws()
        end = self.pos + len(word)
        if self.text[self.pos:end].lower() != word:
            return False
        if end < len(self.text) and not (self.text[end].isspace() or self.text[end] == "("):
            return False
        self.pos = end
        return True

    def selector(self) -> str:
        self.skip_ws()
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in _SELECTOR_CHARS:
            self.pos += 1
        if self.pos == start:
            raise _SyntaxError("Expected a selector", start)
        return self.text[start:self.pos]

    def operator(self) -> str:
        self.skip_ws()
        start = self.pos
        if self.text.startswith("=", start):
            # "=name=" form; "==" is matched below.
            end = start + 1
            while end < len(self.text) and self.text[end].isalpha():
                end += 1
            if end > start + 1 and self.text.startswith("=", end):
                self.pos = end + 1
                return self.text[start:self.pos]
        for symbol in _SYMBOL_OPERATORS:
            if self.text.startswith(symbol, start):
                self.pos = start + len(symbol)
                return symbol
        raise _SyntaxError("Expected a comparison operator", start)

    def value(self) -> str:
        self.skip_ws()
        start = self.pos
        if start >= len(self.text):
            raise _SyntaxError("Expected a value", start)
        quote = self.text[start]
        if quote in ("'", '"'):
            return self._quoted(quote)
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch.isspace() or ch in _RESERVED:
                break
            self.pos += 1
        if self.pos == start:
            raise _SyntaxError("Expected a value", start)
        return self.text[start:self.pos]

    def _quoted(self, quote: str) -> str:
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "\\" and self.pos + 1 < len(self.text):
                chars.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            self.pos += 1
            if ch == quote:
                return "".join(chars)
            chars.append(ch)
        raise _SyntaxError("Unterminated quoted value", start)

    def arguments(self) -> tuple[str, ...]:
        if self.peek() != "(":
            return (self.value(),)
        self.pos += 1
        values = [self.value()]
        while self.peek() == ",":
            self.pos += 1
            values.append(self.value())
        if self.peek() != ")":
            raise _SyntaxError("Expected ',' or ')' in value list", self.pos)
        self.pos += 1
        return tuple(values)

    def comparison(self) -> ComparisonNode:
        self.skip_ws()
        position = self.pos
        selector = self.selector()
        operator = self.operator()
        return ComparisonNode(selector, operator, self.arguments(), position)


def _combine(op: str, left: QueryNode, right: QueryNode) -> QueryNode:
    # Flatten chains of the same operator: a;b;c is one AndNode of three.
    if op == _AND:
        head = left.children if isinstance(left, AndNode) else (left,)
        return AndNode(children=(*head, right))
    head = left.children if isinstance(left, OrNode) else (left,)
    return OrNode(children=(*head, right))


def _reduce(operators: list[str], operands: list[QueryNode]) -> None:
    op = operators.pop()
    right = operands.pop()
    left = operands.pop()
    operands.append(_combine(op, left, right))


def _parse(text: str) -> QueryNode:
    # Operator-precedence parse on explicit stacks.
    scanner = _Scanner(text)
    operators: list[str] = []
    operands: list[QueryNode] = []
    open_positions: list[int] = []
    expect_operand = True

    while not scanner.at_end():
        if expect_operand:
            if scanner.peek() == "(":
                open_positions.append(scanner.pos)
                operators.append(_OPEN)
                scanner.pos += 1
                continue
            operands.append(scanner.comparison())
            expect_operand = False
            continue

        ch = scanner.peek()
        if ch == ")":
            if not open_positions:
                raise _SyntaxError("Unbalanced ')'", scanner.pos)
            while operators[-1] != _OPEN:
                _reduce(operators, operands)
            operators.pop()
            open_positions.pop()
            scanner.pos += 1
            continue

        if ch == ";":
            scanner.pos += 1
            op = _AND
        elif ch == ",":
            scanner.pos += 1
            op = _OR
        elif scanner.keyword(_AND):
            op = _AND
        elif scanner.keyword(_OR):
            op = _OR
        else:
            raise _SyntaxError("Expected ';', ',', 'and', 'or' or ')'", scanner.pos)

        while (
            operators
            and operators[-1] != _OPEN
            and _PRECEDENCE[operators[-1]] >= _PRECEDENCE[op]
        ):
            _reduce(operators, operands)
        operators.append(op)
        expect_operand = True

    if expect_operand:
        raise _SyntaxError("Unexpected end of query", len(text))
    if open_positions:
        raise _SyntaxError("Unbalanced '('", open_positions[-1])
    while operators:
        _reduce(operators, operands)
    return operands[0]


def parse_query(text: str) -> Ok[QueryNode] | Err[ParseError]:
    """Parse query text into a syntax tree. Blank text is an error."""
    if not text or not text.strip():
        return Err(_parse_error(text, "Query is empty", 0, "search.query.parse_query"))
    try:
        return Ok(_parse(text))
    except _SyntaxError as e:
        logger.debug("Rejected query %r at %d: %s", text, e.position, e.message)
        return Err(_parse_error(
            text, f"{e.message} at position {e.position}", e.position, "search.query.parse_query",
        ))


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------

_OPERATORS: dict[str, ComparisonOp] = {
    "==": ComparisonOp.EQ,
    "!=": ComparisonOp.NE,
    "=gt=": ComparisonOp.GT,
    ">": ComparisonOp.GT,
    "=ge=": ComparisonOp.GE,
    ">=": ComparisonOp.GE,
    "=lt=": ComparisonOp.LT,
    "<": ComparisonOp.LT,
    "=le=": ComparisonOp.LE,
    "<=": ComparisonOp.LE,
    "=in=": ComparisonOp.IN,
    "=out=": ComparisonOp.OUT,
}


# Text selectors compare case-insensitively so that every operator agrees with ==.
_TEXT_OPERATORS: dict[ComparisonOp, ComparisonOp] = {
    ComparisonOp.EQ: ComparisonOp.IEQ,
    ComparisonOp.NE: ComparisonOp.INE,
    ComparisonOp.IN: ComparisonOp.IIN,
    ComparisonOp.OUT: ComparisonOp.IOUT,
}


def _is_wildcard(value: str) -> bool:
    return len(value) >= 2 and value.startswith("*") and value.endswith("*")


def _text_comparison(node: ComparisonNode, op: ComparisonOp) -> Comparison:
    text_op = _TEXT_OPERATORS.get(op)
    if text_op is None:
        return Comparison(node.selector, op, node.arguments)
    value = node.arguments[0]
    if op is ComparisonOp.EQ and _is_wildcard(value):
        return Comparison(node.selector, ComparisonOp.ICONTAINS, (value[1:-1],))
    if op is ComparisonOp.NE and _is_wildcard(value):
        return Comparison(node.selector, ComparisonOp.INOTCONTAINS, (value[1:-1],))
    return Comparison(node.selector, text_op, node.arguments)


def _comparison(node: ComparisonNode) -> Comparison:
    """Resolve one comparison. Raises _SyntaxError when it cannot."""
    op = _OPERATORS.get(node.operator.lower())
    if op is None:
        raise _SyntaxError(f"Unknown operator '{node.operator}'", node.position)
    spec = field_spec(node.selector)
    if spec is None:
        raise _SyntaxError(f"Unknown selector '{node.selector}'", node.position)
    if op not in (ComparisonOp.IN, ComparisonOp.OUT) and len(node.arguments) != 1:
        raise _SyntaxError(
            f"Operator '{node.operator}' takes a single value", node.position,
        )

    if spec.kind is ValueKind.TEXT:
        return _text_comparison(node, op)

    try:
        values = tuple(coerce_value(spec.kind, raw) for raw in node.arguments)
    except ValueError as e:
        raise _SyntaxError(
            f"Invalid value for '{node.selector}': {e}", node.position,
        ) from e
    return Comparison(node.selector, op, values)


def _translate(root: QueryNode) -> Predicate:
    results: list[Predicate] = []
    stack: list[tuple[QueryNode, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        match node:
            case ComparisonNode():
                results.append(_comparison(node))
            case AndNode(children) | OrNode(children):
                if not expanded:
                    stack.append((node, True))
                    stack.extend((child, False) for child in reversed(children))
                    continue
                split = len(results) - len(children)
                folded = tuple(results[split:])
                del results[split:]
                results.append(And(folded) if isinstance(node, AndNode) else Or(folded))
    return results[0]


def to_predicate(node: QueryNode, text: str = "") -> Ok[Predicate] | Err[ParseError]:
    """Translate a syntax tree into a Predicate over the trade field registry."""
    try:
        return Ok(_translate(node))
    except _SyntaxError as e:
        logger.debug("Rejected query %r: %s", text, e.message)
        return Err(_parse_error(text, e.message, e.position, "search.query.to_predicate"))


def compile_query(text: str) -> Ok[Predicate] | Err[ParseError]:
    """parse_query followed by to_predicate."""
    match parse_query(text):
        case Ok(node):
            return to_predicate(node, text)
        case Err() as err:
            return err
