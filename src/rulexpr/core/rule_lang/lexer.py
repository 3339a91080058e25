"""
Lexer for the rule expression language.

Pull-based: each call to ``Lexer.scan()`` reads just enough characters to
produce one token, and returns ``None`` once the input is exhausted.

Operator keywords are matched letter by letter from their initial. When a
keyword attempt fails part way, the cursor is restored to just after the
initial letter and that letter alone is emitted as an OTHER token, so
``AX`` lexes as ``OTHER('A') OTHER('X')``. There is no word-boundary
check on success: ``INX`` lexes as ``IN OTHER('X')``.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum, auto

from rulexpr.core.errors import ErrorContext, LexError


class TokenKind(StrEnum):
    """Token tags for the rule language."""

    # Operator keywords
    AND = auto()
    OR = auto()
    MOD = auto()
    IN = auto()
    EQUALS = auto()

    # Punctuation
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()

    # Literals and references
    NUM = auto()
    STR = auto()
    VAR = auto()

    # Any single character not recognised above
    OTHER = auto()


OPERATOR_KINDS = frozenset(
    {TokenKind.AND, TokenKind.OR, TokenKind.MOD, TokenKind.IN, TokenKind.EQUALS}
)


class Token:
    """A single token from the rule lexer."""

    __slots__ = ("kind", "lexeme", "pos")

    def __init__(self, kind: TokenKind, lexeme: str, pos: int) -> None:
        self.kind = kind
        self.lexeme = lexeme
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.lexeme!r}, pos={self.pos})"


_RESERVED: dict[str, TokenKind] = {
    "AND": TokenKind.AND,
    "OR": TokenKind.OR,
    "MOD": TokenKind.MOD,
    "IN": TokenKind.IN,
    "EQUALS": TokenKind.EQUALS,
}

# Each reserved word has a distinct initial
_KEYWORD_BY_INITIAL: dict[str, str] = {word[0]: word for word in _RESERVED}

_DIGITS = frozenset("0123456789")
_BLANKS = frozenset(" \t")


class _EndOfInput(Exception):
    """The cursor ran past the last character."""


class Lexer:
    """Character-level scanner producing one token per ``scan()`` call.

    Not safe for concurrent use; give each parse its own lexer.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        # Index of the next character to read; peek is the one just read
        self.pos = 0
        self.peek: str | None = None
        # Start of a token cut short by the end of input, if any
        self.unfinished: int | None = None
        self._start: int | None = None

    def __iter__(self) -> Iterator[Token]:
        while (tok := self.scan()) is not None:
            yield tok

    def scan(self) -> Token | None:
        """Return the next token, or None when the input is exhausted.

        Running out of characters part way through a keyword attempt, a
        ``${...}`` reference or a string literal also yields None. The start
        of that cut-short token is kept in ``unfinished``.

        Raises:
            LexError: On an illegal character inside ``${...}``.
        """
        self._start = None
        try:
            return self._scan()
        except _EndOfInput:
            self.unfinished = self._start
            return None

    # -- Cursor --

    def _read(self) -> str:
        if self.pos >= len(self.source):
            raise _EndOfInput
        self.peek = self.source[self.pos]
        self.pos += 1
        return self.peek

    def _restore(self, pos: int) -> None:
        self.pos = pos
        self.peek = self.source[pos - 1] if pos > 0 else None

    # -- Token rules --

    def _scan(self) -> Token:
        c = self._read()
        while c in _BLANKS:
            c = self._read()
        start = self.pos - 1
        self._start = start

        if c in _KEYWORD_BY_INITIAL:
            return self._scan_keyword(c, start)
        if c in _DIGITS:
            return self._scan_number(c, start)
        if c == "$":
            return self._scan_var(start)
        if c == '"':
            return self._scan_string(start)
        if c == "(":
            return Token(TokenKind.LEFT_PAREN, c, start)
        if c == ")":
            return Token(TokenKind.RIGHT_PAREN, c, start)

        return Token(TokenKind.OTHER, c, start)

    def _scan_keyword(self, initial: str, start: int) -> Token:
        word = _KEYWORD_BY_INITIAL[initial]
        for expected in word[1:]:
            if self._read() != expected:
                self._restore(start + 1)
                return Token(TokenKind.OTHER, initial, start)
        return Token(_RESERVED[word], word, start)

    def _scan_number(self, first: str, start: int) -> Token:
        digits = [first]
        while True:
            mark = self.pos
            try:
                c = self._read()
            except _EndOfInput:
                break
            if c not in _DIGITS:
                self._restore(mark)
                break
            digits.append(c)
        return Token(TokenKind.NUM, "".join(digits).lstrip("0") or "0", start)

    def _scan_var(self, start: int) -> Token:
        mark = self.pos
        if self._read() != "{":
            self._restore(mark)
            return Token(TokenKind.OTHER, "$", start)

        name: list[str] = []
        while True:
            c = self._read()
            if c.isascii() and c.isalnum():
                name.append(c)
            elif c == "}":
                if not name:
                    raise LexError(
                        "Empty variable name, expected ${name}",
                        ErrorContext(self.source, self.pos - 1),
                    )
                return Token(TokenKind.VAR, "".join(name), start)
            else:
                raise LexError(
                    f"Illegal character {c!r} in variable name, "
                    "names may only contain a-z, A-Z and 0-9",
                    ErrorContext(self.source, self.pos - 1),
                )

    def _scan_string(self, start: int) -> Token:
        chars: list[str] = []
        while True:
            c = self._read()
            if c == "\\":
                chars.append(self._read())
            elif c == '"':
                return Token(TokenKind.STR, "".join(chars), start)
            else:
                chars.append(c)


def tokenize(source: str) -> list[Token]:
    """Scan a whole rule string into a list of tokens."""
    return list(Lexer(source))
