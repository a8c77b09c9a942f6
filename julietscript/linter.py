"""
JulietScript Linter
===================
The single public entry point: `lint(source) -> list[Diagnostic]`.

Runs Lexer → Parser → Resolver and merges their diagnostics, sorted by
position. Pure and reentrant: every call builds its own state, performs
no I/O, and never raises for malformed input.
"""
import logging

from .diagnostics import Diagnostic, DiagnosticCollector
from .lexer import Lexer
from .parser import Parser
from .resolver import Resolver

logger = logging.getLogger(__name__)


def lint(source: str) -> list[Diagnostic]:
    """Lint JulietScript source text. Returns diagnostics sorted by (line, character)."""
    lexer = Lexer(source)
    tokens = lexer.tokenize()

    parser = Parser(tokens)
    program = parser.parse()

    resolver = Resolver()
    resolver.resolve(program.declarations)

    collector = DiagnosticCollector()
    collector.extend(lexer.diagnostics)
    collector.extend(parser.diagnostics)
    collector.extend(resolver.diagnostics)

    logger.debug(
        "linted %d token(s), %d declaration(s): %d error(s), %d warning(s)",
        len(tokens), len(program.declarations),
        collector.error_count, collector.warning_count,
    )
    return collector.sorted()


def lint_to_dicts(source: str) -> list[dict]:
    """Lint and return the JSON-ready form of each diagnostic."""
    return [diagnostic.to_dict() for diagnostic in lint(source)]
