"""
JulietScript Lexer Tests
========================
Token kinds, positions, string forms, comments, and lexical diagnostics.

Usage:
    python -m unittest tests.test_lexer -v
    python -m pytest tests/test_lexer.py
"""
import sys
import os
import unittest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from julietscript.diagnostics import Position, Severity
from julietscript.lexer import Lexer, TokenType, tokenize


def types(source):
    tokens, _ = tokenize(source)
    return [t.type for t in tokens]


# ─────────────────────────────────────────────
#  Tokens
# ─────────────────────────────────────────────

class TestTokens(unittest.TestCase):
    """Token kinds and values."""

    def test_empty_source_is_just_eof(self):
        tokens, diagnostics = tokenize("")
        self.assertEqual(len(tokens), 1)
        self.assertEqual(tokens[0].type, TokenType.EOF)
        self.assertEqual(tokens[0].start, Position(0, 0))
        self.assertEqual(diagnostics, [])

    def test_keywords_are_identifiers(self):
        tokens, _ = tokenize("create julietArtifactSourceFiles")
        self.assertEqual(tokens[0].type, TokenType.IDENTIFIER)
        self.assertTrue(tokens[0].is_keyword("create"))
        self.assertTrue(tokens[1].is_keyword("julietArtifactSourceFiles"))

    def test_identifier_with_digits_and_underscore(self):
        tokens, _ = tokenize("_ship_loop2")
        self.assertEqual(tokens[0].value, "_ship_loop2")

    def test_punctuation(self):
        self.assertEqual(
            types("{}[](),.=;"),
            [
                TokenType.LBRACE, TokenType.RBRACE,
                TokenType.LBRACKET, TokenType.RBRACKET,
                TokenType.LPAREN, TokenType.RPAREN,
                TokenType.COMMA, TokenType.DOT,
                TokenType.EQUALS, TokenType.SEMICOLON,
                TokenType.EOF,
            ],
        )

    def test_extend_target(self):
        self.assertEqual(
            types("Plan.rubric"),
            [TokenType.IDENTIFIER, TokenType.DOT, TokenType.IDENTIFIER, TokenType.EOF],
        )

    def test_numbers(self):
        tokens, diagnostics = tokenize("42 -3 2.5")
        self.assertEqual([t.value for t in tokens[:3]], ["42", "-3", "2.5"])
        self.assertTrue(all(t.type == TokenType.NUMBER for t in tokens[:3]))
        self.assertEqual(diagnostics, [])

    def test_trailing_dot_is_not_a_fraction(self):
        self.assertEqual(
            types("3."),
            [TokenType.NUMBER, TokenType.DOT, TokenType.EOF],
        )


# ─────────────────────────────────────────────
#  Strings
# ─────────────────────────────────────────────

class TestStrings(unittest.TestCase):
    """Quoted and triple-quoted strings."""

    def test_escapes_are_decoded(self):
        tokens, diagnostics = tokenize(r'"a\nb\t\"c\"\\"')
        self.assertEqual(tokens[0].type, TokenType.STRING)
        self.assertEqual(tokens[0].value, 'a\nb\t"c"\\')
        self.assertEqual(diagnostics, [])

    def test_block_string_is_verbatim(self):
        source = '"""line one\nline \\n two"""'
        tokens, diagnostics = tokenize(source)
        self.assertEqual(tokens[0].type, TokenType.BLOCK_STRING)
        self.assertEqual(tokens[0].value, "line one\nline \\n two")
        self.assertEqual(tokens[0].end, Position(1, 14))
        self.assertEqual(diagnostics, [])

    def test_block_string_may_contain_single_quotes(self):
        tokens, _ = tokenize('"""say "hi" """')
        self.assertEqual(tokens[0].value, 'say "hi" ')

    def test_is_string(self):
        tokens, _ = tokenize('"a" """b""" c')
        self.assertEqual([t.is_string for t in tokens[:3]], [True, True, False])

    def test_unterminated_string(self):
        tokens, diagnostics = tokenize('policy P = "abc')
        self.assertEqual(len(diagnostics), 1)
        self.assertEqual(diagnostics[0].message, "Unterminated string literal.")
        self.assertEqual(diagnostics[0].start, Position(0, 11))
        self.assertEqual(tokens[3].type, TokenType.STRING)
        self.assertEqual(tokens[3].value, "abc")

    def test_string_cannot_span_lines(self):
        _, diagnostics = tokenize('"abc\nxyz";')
        self.assertEqual(
            diagnostics[0].message,
            "String literals cannot span multiple lines; use triple quotes.",
        )
        self.assertEqual(diagnostics[0].start, Position(0, 0))

    def test_unterminated_block_string(self):
        tokens, diagnostics = tokenize('"""abc\ndef')
        self.assertEqual(len(diagnostics), 1)
        self.assertEqual(diagnostics[0].message, "Unterminated block string.")
        self.assertEqual(tokens[0].value, "abc\ndef")
        self.assertEqual(tokens[-1].type, TokenType.EOF)


# ─────────────────────────────────────────────
#  Positions, Comments, Bad Characters
# ─────────────────────────────────────────────

class TestPositions(unittest.TestCase):
    """Zero-based line/character tracking."""

    def test_positions_across_lines(self):
        tokens, _ = tokenize("halt;\n  policy")
        self.assertEqual(tokens[0].start, Position(0, 0))
        self.assertEqual(tokens[0].end, Position(0, 4))
        self.assertEqual(tokens[1].start, Position(0, 4))
        self.assertEqual(tokens[2].start, Position(1, 2))

    def test_comments_are_skipped(self):
        tokens, diagnostics = tokenize("# heading\nhalt; # trailing\n# last")
        self.assertEqual([t.value for t in tokens], ["halt", ";", ""])
        self.assertEqual(tokens[0].start, Position(1, 0))
        self.assertEqual(diagnostics, [])

    def test_hash_inside_string_is_not_a_comment(self):
        tokens, _ = tokenize('"#1 priority"')
        self.assertEqual(tokens[0].value, "#1 priority")

    def test_unexpected_character_is_reported_and_skipped(self):
        tokens, diagnostics = tokenize("@ halt")
        self.assertEqual(len(diagnostics), 1)
        self.assertEqual(diagnostics[0].message, "Unexpected character '@'.")
        self.assertEqual(diagnostics[0].severity, Severity.ERROR)
        self.assertEqual(diagnostics[0].start, Position(0, 0))
        self.assertEqual(tokens[0].value, "halt")

    def test_non_ascii_letters_are_not_identifiers(self):
        _, diagnostics = tokenize("é")
        self.assertEqual(diagnostics[0].message, "Unexpected character 'é'.")

    def test_columns_count_utf16_code_units(self):
        tokens, _ = tokenize('"😀é" halt')
        self.assertEqual(tokens[0].end, Position(0, 5))
        self.assertEqual(tokens[1].start, Position(0, 6))

    def test_iter_tokens_ends_with_single_eof(self):
        tokens = list(Lexer("a b").iter_tokens())
        self.assertEqual(sum(1 for t in tokens if t.type == TokenType.EOF), 1)
        self.assertEqual(tokens[-1].type, TokenType.EOF)


if __name__ == "__main__":
    unittest.main(verbosity=2)
