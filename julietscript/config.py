"""
Lint host configuration.

Command-line arguments win; unset values fall back to environment
variables, then to defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .engines import DEFAULT_ENGINE
from .errors import JulietScriptError

OUTPUT_FORMATS = ("text", "json")

ENV_ROOT = "JULIETSCRIPT_LINT_ROOT"
ENV_ENGINE = "JULIETSCRIPT_LINT_ENGINE"
ENV_JOBS = "JULIETSCRIPT_LINT_JOBS"
ENV_LOG_LEVEL = "JULIETSCRIPT_LOG_LEVEL"


@dataclass
class LintConfig:
    """Settings for one `julietscript-lint` run."""

    globs: list[str] = field(default_factory=list)  # Patterns relative to root unless absolute
    root: str = "."
    output_format: str = "text"                    # "text" or "json"
    jobs: int = 1                                  # Files linted in parallel
    engine: str = DEFAULT_ENGINE                   # Registry name or "package.module:attr"
    log_level: int = logging.WARNING

    @classmethod
    def from_args(cls, args: Any, environ: Optional[Mapping[str, str]] = None) -> "LintConfig":
        """Build a config from parsed CLI arguments and the environment."""
        env = os.environ if environ is None else environ

        root = getattr(args, "root", None) or env.get(ENV_ROOT, ".")
        engine = getattr(args, "engine", None) or env.get(ENV_ENGINE, DEFAULT_ENGINE)

        jobs = getattr(args, "jobs", None)
        if jobs is None:
            jobs = _parse_jobs(env.get(ENV_JOBS, "1"))
        if jobs < 1:
            raise JulietScriptError(f"--jobs must be at least 1, got {jobs}")

        output_format = getattr(args, "format", None) or "text"
        if output_format not in OUTPUT_FORMATS:
            raise JulietScriptError(
                f"Unknown output format '{output_format}'. Supported: {', '.join(OUTPUT_FORMATS)}."
            )

        if getattr(args, "verbose", False):
            log_level = logging.DEBUG
        else:
            log_level = _parse_log_level(env.get(ENV_LOG_LEVEL, "WARNING"))

        return cls(
            globs=list(getattr(args, "globs", None) or []),
            root=root,
            output_format=output_format,
            jobs=jobs,
            engine=engine,
            log_level=log_level,
        )


def _parse_jobs(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise JulietScriptError(f"{ENV_JOBS} must be an integer, got '{value}'") from None


def _parse_log_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise JulietScriptError(f"{ENV_LOG_LEVEL} is not a logging level: '{value}'")
    return level
