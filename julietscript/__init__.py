"""
JulietScript: a workflow language for AI-assisted engineering.
Reference lint engine: lexer, recovering parser, and resolver.
"""
from .diagnostics import Diagnostic, DiagnosticCollector, Position, Range, Severity
from .lexer import Lexer, Token, TokenType, tokenize
from .parser import (
    Parser, parse, Declaration, ProgramNode,
    RuntimeDefaultsNode, PolicyNode, RubricNode, CriterionNode, CadenceNode,
    CreateNode, AttachmentNode, ExtendNode, HaltNode, OptionNode,
)
from .resolver import Resolver, SymbolTable, resolve
from .linter import lint, lint_to_dicts
from .engines import LintEngine, JulietScriptEngine, get_engine, register_engine, list_engines
from .errors import JulietScriptError, EngineError, FileDiscoveryError

__version__ = "0.1.0"
__all__ = [
    "Diagnostic", "DiagnosticCollector", "Position", "Range", "Severity",
    "Lexer", "Token", "TokenType", "tokenize",
    "Parser", "parse", "Declaration", "ProgramNode",
    "RuntimeDefaultsNode", "PolicyNode", "RubricNode", "CriterionNode",
    "CadenceNode", "CreateNode", "AttachmentNode", "ExtendNode", "HaltNode",
    "OptionNode",
    "Resolver", "SymbolTable", "resolve",
    "lint", "lint_to_dicts",
    "LintEngine", "JulietScriptEngine", "get_engine", "register_engine", "list_engines",
    "JulietScriptError", "EngineError", "FileDiscoveryError",
]
