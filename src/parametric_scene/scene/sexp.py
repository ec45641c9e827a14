"""S-expression lexer, parser and printer for the scene language.

The grammar is deliberately tiny:

    value   := list | atom
    list    := '(' value* ')'
    atom    := number | string | symbol

A ``;`` starts a comment that runs to the end of the line. Numbers are an
optional leading ``-``, digits, and at most one decimal point (``1``,
``-2.5``, ``3.``, ``-.5``); exponent notation is not recognized, so an
atom such as ``1e5`` reads as a symbol. Double-quoted strings support the
escapes ``\\n``, ``\\t`` and ``\\<char>``, and produce the same kind of
value as a bare symbol.

Parsed values are immutable: Symbol, Number and SList.

Example:
    >>> forms = parse('(sphere (at 0 1 0) (r 1))')
    >>> forms[0].head
    'sphere'
    >>> to_source(forms[0])
    '(sphere (at 0 1 0) (r 1))'
"""

import math
import re
from collections.abc import Iterator
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto

from parametric_scene.scene.errors import SceneSyntaxError

# =============================================================================
# Parse values
# =============================================================================


@dataclass(frozen=True)
class Symbol:
    """A symbol or string atom."""

    name: str


@dataclass(frozen=True)
class Number:
    """A numeric atom."""

    value: float


@dataclass(frozen=True)
class SList:
    """An ordered sequence of values."""

    items: tuple["SExp", ...] = ()

    @property
    def head(self) -> str | None:
        """Name of the leading symbol, or None if the list does not start with one."""
        if self.items and isinstance(self.items[0], Symbol):
            return self.items[0].name
        return None

    @property
    def args(self) -> tuple["SExp", ...]:
        """All items after the head."""
        return self.items[1:]

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> "SExp":
        return self.items[index]

    def __iter__(self) -> Iterator["SExp"]:
        return iter(self.items)


SExp = Symbol | Number | SList


# =============================================================================
# Tokenizer
# =============================================================================


class TokenType(Enum):
    LPAREN = auto()
    RPAREN = auto()
    NUMBER = auto()
    STRING = auto()
    SYMBOL = auto()
    END = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str
    line: int
    column: int


NUMBER_RE = re.compile(r"-?\d+(?:\.\d*)?|-\.\d+")
_DELIMITERS = frozenset('()";')
_ESCAPES = {"n": "\n", "t": "\t"}
LINE_WIDTH = 72


class Tokenizer:
    """Splits source text into tokens, tracking 1-based line and column."""

    def __init__(self, source: str, filename: str | None = None) -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _skip_whitespace_and_comments(self) -> None:
        src = self.source
        while self.pos < len(src):
            ch = src[self.pos]
            if ch.isspace():
                self._advance()
            elif ch == ";":
                while self.pos < len(src) and src[self.pos] != "\n":
                    self._advance()
            else:
                break

    def _error(self, message: str, line: int, column: int) -> SceneSyntaxError:
        return SceneSyntaxError(message, line, column, self.filename)

    def next_token(self) -> Token:
        self._skip_whitespace_and_comments()
        line, column = self.line, self.column
        if self.pos >= len(self.source):
            return Token(TokenType.END, "", line, column)

        ch = self.source[self.pos]
        if ch == "(":
            self._advance()
            return Token(TokenType.LPAREN, "(", line, column)
        if ch == ")":
            self._advance()
            return Token(TokenType.RPAREN, ")", line, column)
        if ch == '"':
            return self._read_string(line, column)
        return self._read_atom(line, column)

    def _read_string(self, line: int, column: int) -> Token:
        self._advance()  # opening quote
        chars: list[str] = []
        while self.pos < len(self.source):
            ch = self._advance()
            if ch == '"':
                return Token(TokenType.STRING, "".join(chars), line, column)
            if ch == "\\" and self.pos < len(self.source):
                esc = self._advance()
                chars.append(_ESCAPES.get(esc, esc))
            else:
                chars.append(ch)
        raise self._error("unterminated string literal", line, column)

    def _read_atom(self, line: int, column: int) -> Token:
        start = self.pos
        src = self.source
        while self.pos < len(src) and not src[self.pos].isspace() and src[self.pos] not in _DELIMITERS:
            self._advance()
        text = src[start : self.pos]
        if NUMBER_RE.fullmatch(text):
            return Token(TokenType.NUMBER, text, line, column)
        return Token(TokenType.SYMBOL, text, line, column)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type is TokenType.END:
                return


def tokenize(source: str, filename: str | None = None) -> list[Token]:
    """Tokenize source text. The last token is always END."""
    return list(Tokenizer(source, filename))


# =============================================================================
# Parser
# =============================================================================


class Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, source: str, filename: str | None = None) -> None:
        self.tokens = tokenize(source, filename)
        self.filename = filename
        self.index = 0

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _next(self) -> Token:
        token = self.tokens[self.index]
        if token.type is not TokenType.END:
            self.index += 1
        return token

    def _error(self, message: str, token: Token) -> SceneSyntaxError:
        return SceneSyntaxError(message, token.line, token.column, self.filename)

    def parse_all(self) -> list[SExp]:
        values: list[SExp] = []
        while self._peek().type is not TokenType.END:
            values.append(self.parse_value())
        return values

    def parse_value(self) -> SExp:
        token = self._next()
        if token.type is TokenType.LPAREN:
            items: list[SExp] = []
            while self._peek().type is not TokenType.RPAREN:
                if self._peek().type is TokenType.END:
                    raise self._error("unexpected end of input, expected ')'", token)
                items.append(self.parse_value())
            self._next()
            return SList(tuple(items))
        if token.type is TokenType.NUMBER:
            return Number(float(token.text))
        if token.type in (TokenType.STRING, TokenType.SYMBOL):
            return Symbol(token.text)
        if token.type is TokenType.RPAREN:
            raise self._error("unexpected ')'", token)
        raise self._error("unexpected end of input", token)


def parse(source: str, filename: str | None = None) -> list[SExp]:
    """Parse source text into its top-level values.

    Args:
        source: Scene-language text.
        filename: Optional name used in error messages.

    Returns:
        Top-level values in source order.

    Raises:
        SceneSyntaxError: On an unmatched ')', an unclosed '(', or an
            unterminated string.
    """
    return Parser(source, filename).parse_all()


def parse_one(source: str) -> SExp:
    """Parse text holding exactly one value.

    Raises:
        SceneSyntaxError: If the text is malformed or does not hold
            exactly one value.
    """
    values = parse(source)
    if len(values) != 1:
        raise SceneSyntaxError(f"expected exactly one value, found {len(values)}", 1, 1)
    return values[0]


# =============================================================================
# Printer
# =============================================================================


def _needs_quotes(name: str) -> bool:
    if not name or NUMBER_RE.fullmatch(name):
        return True
    return any(ch.isspace() or ch in _DELIMITERS or ch == "\\" for ch in name)


def _quote(name: str) -> str:
    escaped = name.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\t", "\\t")
    return f'"{escaped}"'


def format_number(value: float) -> str:
    """Format a float so that the tokenizer reads it back unchanged.

    Raises:
        ValueError: For NaN or infinity, which the language cannot express.
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot represent {value} in scene source")
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def to_source(value: SExp, indent: int | None = None) -> str:
    """Print a value as scene-language text.

    Args:
        value: The value to print.
        indent: If given, lists that do not fit in LINE_WIDTH columns and
            contain nested lists are broken across lines with this many
            spaces per level. If None, the output is a single line.

    Returns:
        Text that parses back to an equal value.
    """
    return _to_source(value, indent, 0)


def _to_source(value: SExp, indent: int | None, level: int) -> str:
    if isinstance(value, Symbol):
        return _quote(value.name) if _needs_quotes(value.name) else value.name
    if isinstance(value, Number):
        return format_number(value.value)

    flat = "(" + " ".join(_to_source(item, None, 0) for item in value.items) + ")"
    if indent is None or len(flat) + indent * level <= LINE_WIDTH:
        return flat
    if not any(isinstance(item, SList) for item in value.items[1:]):
        return flat

    parts = [_to_source(item, indent, level + 1) for item in value.items]
    pad = "\n" + " " * (indent * (level + 1))
    return "(" + parts[0] + "".join(pad + p for p in parts[1:]) + ")"


def dumps(values: list[SExp], indent: int | None = 2) -> str:
    """Print a sequence of top-level values, one per line."""
    return "\n".join(to_source(v, indent) for v in values) + "\n"
