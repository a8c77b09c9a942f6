"""
Lint Engines — Interface and Registry
=======================================
Engine-agnostic interface for linting JulietScript source.
The built-in engine wraps `julietscript.linter.lint`; alternative
engines (experimental grammars, stricter rule sets) implement the same
interface and are selected by name or by `package.module:attr` path.
"""

from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Callable, Type

from .diagnostics import Diagnostic
from .errors import EngineError
from .linter import lint

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = "julietscript"


class LintEngine(ABC):
    """Abstract base class for lint engines.

    All engines must implement:
        - lint(): turn source text into an ordered diagnostic list,
          without raising for malformed input
    """

    name: str = ""

    @abstractmethod
    def lint(self, source: str) -> list[Diagnostic]:
        """Lint one script.

        Args:
            source: Full text of a JulietScript file.

        Returns:
            Diagnostics sorted by (line, character).
        """
        ...


class JulietScriptEngine(LintEngine):
    """The built-in lexer/parser/resolver pipeline."""

    name = DEFAULT_ENGINE

    def lint(self, source: str) -> list[Diagnostic]:
        return lint(source)


# ─────────────────────────────────────────────────────────────
#  Registry
# ─────────────────────────────────────────────────────────────

_REGISTRY: dict[str, Type[LintEngine]] = {
    DEFAULT_ENGINE: JulietScriptEngine,
}


def register_engine(name: str, engine_class: Type[LintEngine]):
    """Register an engine class under a name."""
    _REGISTRY[name.lower()] = engine_class


def list_engines() -> list[str]:
    """List all registered engine names."""
    return sorted(_REGISTRY.keys())


def get_engine(name: str = DEFAULT_ENGINE) -> LintEngine:
    """Instantiate an engine by registered name or `package.module:attr` path.

    Args:
        name: A registered engine name, or an import path whose attribute
            is a LintEngine subclass or a zero-argument factory.

    Returns:
        A LintEngine instance.

    Raises:
        EngineError: If the engine is unknown or cannot be loaded.
    """
    if ":" in name:
        return _load_engine(name)

    engine_class = _REGISTRY.get(name.lower())
    if engine_class is None:
        raise EngineError(
            f"Unknown engine '{name}'. Available: {list_engines()}. "
            f"Register a custom engine or pass 'package.module:attr'."
        )
    return engine_class()


def _load_engine(path: str) -> LintEngine:
    """Import `package.module:attr` and build an engine from it."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise EngineError(f"Invalid engine path '{path}'. Expected 'package.module:attr'.")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise EngineError(f"Failed to import engine module '{module_name}': {e}") from e

    factory: Callable[[], object] | None = getattr(module, attr, None)
    if factory is None:
        raise EngineError(f"Engine module '{module_name}' has no attribute '{attr}'.")
    if not callable(factory):
        raise EngineError(
            f"'{path}' is not a LintEngine class or factory (got {type(factory).__name__})."
        )

    try:
        engine = factory()
    except Exception as e:
        raise EngineError(f"Failed to create engine from '{path}': {e}") from e
    if not isinstance(engine, LintEngine):
        raise EngineError(
            f"'{path}' did not produce a LintEngine (got {type(engine).__name__})."
        )

    logger.debug("loaded engine %s from %s", type(engine).__name__, path)
    return engine
