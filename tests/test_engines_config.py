"""
Engine Registry and Configuration Tests
=======================================

Usage:
    python -m unittest tests.test_engines_config -v
    python -m pytest tests/test_engines_config.py
"""
import sys
import os
import argparse
import logging
import unittest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from julietscript import engines
from julietscript.config import LintConfig
from julietscript.diagnostics import Diagnostic, Position, Range, Severity
from julietscript.engines import (
    DEFAULT_ENGINE, JulietScriptEngine, LintEngine,
    get_engine, list_engines, register_engine,
)
from julietscript.errors import EngineError, JulietScriptError


class StrictEngine(LintEngine):
    """Flags every non-empty script."""

    name = "strict"

    def lint(self, source):
        if not source:
            return []
        return [Diagnostic(Severity.WARNING, "strict", Range.at(Position(0, 0)))]


def make_strict_engine():
    return StrictEngine()


def broken_engine_factory():
    raise RuntimeError("backend unavailable")


def args(**kwargs):
    defaults = dict(globs=None, root=None, format=None, jobs=None, engine=None, verbose=False)
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


# ─────────────────────────────────────────────
#  Engines
# ─────────────────────────────────────────────

class TestEngines(unittest.TestCase):

    def tearDown(self):
        engines._REGISTRY.pop("strict", None)

    def test_default_engine(self):
        engine = get_engine()
        self.assertIsInstance(engine, JulietScriptEngine)
        self.assertEqual(engine.name, DEFAULT_ENGINE)
        self.assertEqual(engine.lint('extend A.rubric with "x";')[0].severity, Severity.ERROR)

    def test_lookup_is_case_insensitive(self):
        self.assertIsInstance(get_engine("JulietScript"), JulietScriptEngine)

    def test_unknown_engine(self):
        with self.assertRaises(EngineError) as ctx:
            get_engine("nope")
        self.assertIn("Unknown engine 'nope'", str(ctx.exception))

    def test_register_engine(self):
        register_engine("Strict", StrictEngine)
        self.assertIn("strict", list_engines())
        self.assertEqual(len(get_engine("strict").lint("halt;")), 1)

    def test_import_path_class(self):
        engine = get_engine("julietscript.engines:JulietScriptEngine")
        self.assertIsInstance(engine, JulietScriptEngine)

    def test_import_path_factory(self):
        engine = get_engine(f"{__name__}:make_strict_engine")
        self.assertIsInstance(engine, StrictEngine)

    def test_import_path_missing_module(self):
        with self.assertRaises(EngineError):
            get_engine("julietscript_no_such_module:Engine")

    def test_import_path_missing_attribute(self):
        with self.assertRaises(EngineError):
            get_engine("julietscript.engines:NoSuchEngine")

    def test_import_path_not_an_engine(self):
        with self.assertRaises(EngineError):
            get_engine("julietscript.diagnostics:DiagnosticCollector")

    def test_import_path_not_callable(self):
        with self.assertRaises(EngineError) as ctx:
            get_engine("julietscript.engines:DEFAULT_ENGINE")
        self.assertIn("is not a LintEngine class or factory", str(ctx.exception))

    def test_import_path_factory_raises(self):
        with self.assertRaises(EngineError) as ctx:
            get_engine(f"{__name__}:broken_engine_factory")
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_engine_error_is_a_julietscript_error(self):
        self.assertTrue(issubclass(EngineError, JulietScriptError))


# ─────────────────────────────────────────────
#  Configuration
# ─────────────────────────────────────────────

class TestLintConfig(unittest.TestCase):

    def test_defaults(self):
        config = LintConfig.from_args(args(globs=["*.js"]), environ={})
        self.assertEqual(config.globs, ["*.js"])
        self.assertEqual(config.root, ".")
        self.assertEqual(config.output_format, "text")
        self.assertEqual(config.jobs, 1)
        self.assertEqual(config.engine, DEFAULT_ENGINE)
        self.assertEqual(config.log_level, logging.WARNING)

    def test_environment_fallback(self):
        environ = {
            "JULIETSCRIPT_LINT_ROOT": "/work",
            "JULIETSCRIPT_LINT_ENGINE": "strict",
            "JULIETSCRIPT_LINT_JOBS": "4",
            "JULIETSCRIPT_LOG_LEVEL": "info",
        }
        config = LintConfig.from_args(args(), environ=environ)
        self.assertEqual(config.root, "/work")
        self.assertEqual(config.engine, "strict")
        self.assertEqual(config.jobs, 4)
        self.assertEqual(config.log_level, logging.INFO)

    def test_arguments_override_environment(self):
        environ = {"JULIETSCRIPT_LINT_ROOT": "/work", "JULIETSCRIPT_LINT_JOBS": "4"}
        config = LintConfig.from_args(args(root="src", jobs=2, format="json"), environ=environ)
        self.assertEqual(config.root, "src")
        self.assertEqual(config.jobs, 2)
        self.assertEqual(config.output_format, "json")

    def test_verbose_wins(self):
        config = LintConfig.from_args(args(verbose=True), environ={"JULIETSCRIPT_LOG_LEVEL": "ERROR"})
        self.assertEqual(config.log_level, logging.DEBUG)

    def test_invalid_jobs(self):
        with self.assertRaises(JulietScriptError):
            LintConfig.from_args(args(jobs=0), environ={})
        with self.assertRaises(JulietScriptError):
            LintConfig.from_args(args(), environ={"JULIETSCRIPT_LINT_JOBS": "many"})

    def test_invalid_log_level(self):
        with self.assertRaises(JulietScriptError):
            LintConfig.from_args(args(), environ={"JULIETSCRIPT_LOG_LEVEL": "LOUD"})

    def test_invalid_format(self):
        with self.assertRaises(JulietScriptError):
            LintConfig.from_args(args(format="xml"), environ={})


if __name__ == "__main__":
    unittest.main(verbosity=2)
