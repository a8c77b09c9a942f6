"""
JulietScript Lexer
==================
Tokenizes JulietScript source into a stream of typed tokens.
Handles identifiers, numbers, plain and triple-quoted strings,
punctuation, and `#` line comments.

Malformed input never raises: each problem is recorded as a diagnostic
and a best-effort token is produced so the parser can keep going.

Character offsets count UTF-16 code units, as editors and language
servers do: a character outside the Basic Multilingual Plane takes two.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from .diagnostics import Diagnostic, Position, Range, error


class TokenType(Enum):
    """All token types in JulietScript."""
    # Words and literals
    IDENTIFIER   = auto()   # names and keywords
    NUMBER       = auto()   # 3, and the rejected forms -3 and 2.5
    STRING       = auto()   # "..."
    BLOCK_STRING = auto()   # """..."""

    # Punctuation
    LBRACE      = auto()   # {
    RBRACE      = auto()   # }
    LBRACKET    = auto()   # [
    RBRACKET    = auto()   # ]
    LPAREN      = auto()   # (
    RPAREN      = auto()   # )
    EQUALS      = auto()   # =
    SEMICOLON   = auto()   # ;
    COMMA       = auto()   # ,
    DOT         = auto()   # .

    EOF         = auto()


@dataclass
class Token:
    """A single token from JulietScript source."""
    type: TokenType
    value: str
    start: Position
    end: Position

    @property
    def range(self) -> Range:
        return Range(self.start, self.end)

    @property
    def is_string(self) -> bool:
        return self.type in (TokenType.STRING, TokenType.BLOCK_STRING)

    def is_keyword(self, word: str) -> bool:
        return self.type == TokenType.IDENTIFIER and self.value == word

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, L{self.start.line}:{self.start.character})"


PUNCTUATION = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "=": TokenType.EQUALS,
    ";": TokenType.SEMICOLON,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
}

KEYWORDS = frozenset({
    "juliet", "policy", "rubric", "criterion", "points", "means",
    "tiebreakers", "cadence", "variants", "sprints", "compare", "using",
    "keep", "best", "create", "from", "julietArtifactSourceFiles",
    "with", "extend", "halt",
})

ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"'}

WHITESPACE = (" ", "\t", "\r", "\n")


def _is_identifier_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def _is_identifier_part(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


def _is_digit(ch: str | None) -> bool:
    return ch is not None and "0" <= ch <= "9"


class Lexer:
    """
    Tokenizes JulietScript source.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        lexer.diagnostics  # lexical problems, if any

    `iter_tokens()` is a one-pass generator; a fresh Lexer is needed to
    tokenize the same source again.
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 0
        self.character = 0
        self.diagnostics: list[Diagnostic] = []

    def _current(self) -> str | None:
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> str | None:
        idx = self.pos + offset
        if idx >= len(self.source):
            return None
        return self.source[idx]

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.character = 0
        else:
            self.character += 2 if ord(ch) > 0xFFFF else 1
        return ch

    def _position(self) -> Position:
        return Position(self.line, self.character)

    def _report(self, start: Position, message: str):
        self.diagnostics.append(error(message, Range(start, self._position())))

    def _skip_trivia(self):
        """Skip whitespace and `#` comments."""
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in WHITESPACE:
                self._advance()
            elif ch == "#":
                while self.pos < len(self.source) and self.source[self.pos] != "\n":
                    self._advance()
            else:
                break

    def _at_triple_quote(self) -> bool:
        return self.source.startswith('"""', self.pos)

    def _read_block_string(self) -> Token:
        """Read a triple-quoted string; the body is taken verbatim."""
        start = self._position()
        for _ in range(3):
            self._advance()
        content_start = self.pos
        while self.pos < len(self.source):
            if self._at_triple_quote():
                value = self.source[content_start:self.pos]
                for _ in range(3):
                    self._advance()
                return Token(TokenType.BLOCK_STRING, value, start, self._position())
            self._advance()

        self._report(start, "Unterminated block string.")
        return Token(TokenType.BLOCK_STRING, self.source[content_start:], start, self._position())

    def _read_string(self) -> Token:
        """Read a double-quoted string literal on a single line."""
        start = self._position()
        self._advance()  # consume opening "
        chars = []
        while self.pos < len(self.source):
            ch = self._current()
            if ch == '"':
                self._advance()
                return Token(TokenType.STRING, "".join(chars), start, self._position())
            if ch == "\n":
                self._report(start, "String literals cannot span multiple lines; use triple quotes.")
                return Token(TokenType.STRING, "".join(chars), start, self._position())
            if ch == "\\":
                self._advance()
                if self.pos < len(self.source) and self._current() != "\n":
                    next_ch = self._advance()
                    chars.append(ESCAPES.get(next_ch, next_ch))
                continue
            chars.append(self._advance())

        self._report(start, "Unterminated string literal.")
        return Token(TokenType.STRING, "".join(chars), start, self._position())

    def _read_number(self) -> Token:
        """Read a numeric literal. Sign and fraction are kept for the resolver to reject."""
        start = self._position()
        start_pos = self.pos
        if self._current() == "-":
            self._advance()
        while _is_digit(self._current()):
            self._advance()
        if self._current() == "." and _is_digit(self._peek()):
            self._advance()
            while _is_digit(self._current()):
                self._advance()
        return Token(TokenType.NUMBER, self.source[start_pos:self.pos], start, self._position())

    def _read_identifier(self) -> Token:
        """Read an identifier; keywords are identifiers the parser matches by text."""
        start = self._position()
        start_pos = self.pos
        while self.pos < len(self.source) and _is_identifier_part(self.source[self.pos]):
            self._advance()
        return Token(TokenType.IDENTIFIER, self.source[start_pos:self.pos], start, self._position())

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source into a list of tokens ending with EOF."""
        return list(self.iter_tokens())

    def iter_tokens(self) -> Iterator[Token]:
        """Generate tokens one at a time, finishing with a single EOF token."""
        while True:
            self._skip_trivia()
            ch = self._current()

            if ch is None:
                position = self._position()
                yield Token(TokenType.EOF, "", position, position)
                return

            if _is_identifier_start(ch):
                yield self._read_identifier()
                continue

            if _is_digit(ch) or (ch == "-" and _is_digit(self._peek())):
                yield self._read_number()
                continue

            if ch == '"':
                yield self._read_block_string() if self._at_triple_quote() else self._read_string()
                continue

            if ch in PUNCTUATION:
                start = self._position()
                self._advance()
                yield Token(PUNCTUATION[ch], ch, start, self._position())
                continue

            # Unknown character: report and skip
            start = self._position()
            self._advance()
            self._report(start, f"Unexpected character '{ch}'.")


def tokenize(source: str) -> tuple[list[Token], list[Diagnostic]]:
    """Tokenize `source`, returning the tokens and any lexical diagnostics."""
    lexer = Lexer(source)
    tokens = lexer.tokenize()
    return tokens, lexer.diagnostics
