"""
julietscript-lint — Command-Line Interface
==========================================
Discovers JulietScript files by glob, lints each one in-process, and
prints one line per diagnostic followed by a summary.

Usage:
    # Lint every script under the current directory
    julietscript-lint --glob "**/*.julietscript"

    # Several patterns, resolved against another root
    julietscript-lint --root ./workflows --glob "*.julietscript" --glob "drafts/**/*.js"

    # Machine-readable output, four files at a time
    julietscript-lint --glob "**/*.julietscript" --format json --jobs 4

    # Print an annotated example script
    julietscript-lint example

Exit status:
    0  no diagnostics
    1  at least one diagnostic
    2  operational failure (bad root, no files matched, unreadable file,
       unknown engine)
"""

from __future__ import annotations

import argparse
import glob
import json
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from .config import OUTPUT_FORMATS, LintConfig
from .diagnostics import Diagnostic, Severity
from .engines import LintEngine, get_engine
from .errors import FileDiscoveryError, JulietScriptError
from .example import EXAMPLE_SCRIPT

logger = logging.getLogger(__name__)

EXIT_CLEAN = 0
EXIT_ISSUES = 1
EXIT_FAILURE = 2

PROG = "julietscript-lint"


@dataclass
class FileResult:
    """Diagnostics for one linted file."""

    path: str
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


# ─────────────────────────────────────────────────────────────
#  Helpers
# ─────────────────────────────────────────────────────────────

def collect_files(root: str, patterns: list[str]) -> list[Path]:
    """Expand glob patterns under `root` into a sorted, de-duplicated file list."""
    try:
        base = Path(root).resolve(strict=True)
    except OSError as e:
        raise FileDiscoveryError(f"failed to resolve --root directory '{root}': {e}") from e
    if not base.is_dir():
        raise FileDiscoveryError(f"--root '{root}' is not a directory")

    files: set[Path] = set()
    for pattern in patterns:
        resolved = pattern if os.path.isabs(pattern) else str(base / pattern)
        matches = glob.glob(resolved, recursive=True)
        logger.debug("pattern %r matched %d path(s)", pattern, len(matches))
        for match in matches:
            path = Path(match)
            if path.is_file():
                files.add(path.resolve())

    if not files:
        raise FileDiscoveryError(
            f"no files matched. Provided patterns: {', '.join(patterns)}"
        )
    return sorted(files)


def load_files(paths: list[Path]) -> list[tuple[str, str]]:
    """Read each file as UTF-8. Returns (path, source) pairs."""
    sources = []
    for path in paths:
        try:
            sources.append((str(path), path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as e:
            raise FileDiscoveryError(f"failed to read '{path}': {e}") from e
    return sources


def lint_files(engine: LintEngine, sources: list[tuple[str, str]], jobs: int = 1) -> list[FileResult]:
    """Lint every source with `engine`, fanning out across `jobs` threads."""
    texts = [source for _, source in sources]
    if jobs > 1 and len(sources) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            all_diagnostics = list(pool.map(engine.lint, texts))
    else:
        all_diagnostics = [engine.lint(text) for text in texts]

    results = [
        FileResult(path=path, diagnostics=diagnostics)
        for (path, _), diagnostics in zip(sources, all_diagnostics)
    ]
    return sorted(results, key=lambda r: r.path)


def format_diagnostic(path: str, diagnostic: Diagnostic) -> str:
    """`path:line:character: severity: message`, with 1-based line and character."""
    start = diagnostic.start
    return (
        f"{path}:{start.line + 1}:{start.character + 1}: "
        f"{diagnostic.severity.value}: {diagnostic.message}"
    )


def format_summary(results: list[FileResult]) -> str:
    diagnostics = [d for result in results for d in result.diagnostics]
    errors = sum(1 for d in diagnostics if d.severity == Severity.ERROR)
    warnings = sum(1 for d in diagnostics if d.severity == Severity.WARNING)
    return (
        f"Linted {len(results)} file(s): {len(diagnostics)} issue(s) "
        f"({errors} error(s), {warnings} warning(s))."
    )


# ─────────────────────────────────────────────────────────────
#  Commands
# ─────────────────────────────────────────────────────────────

def cmd_lint(config: LintConfig) -> int:
    """Lint all matched files and print the report."""
    engine = get_engine(config.engine)
    files = collect_files(config.root, config.globs)
    logger.info("linting %d file(s) with engine '%s'", len(files), config.engine)

    results = lint_files(engine, load_files(files), jobs=config.jobs)

    if config.output_format == "json":
        print(json.dumps([result.to_dict() for result in results], indent=2))
    else:
        for result in results:
            for diagnostic in result.diagnostics:
                print(format_diagnostic(result.path, diagnostic))
        print(format_summary(results))

    has_issues = any(result.diagnostics for result in results)
    return EXIT_ISSUES if has_issues else EXIT_CLEAN


def cmd_example(config: LintConfig) -> int:
    """Print the annotated example script."""
    print(EXAMPLE_SCRIPT, end="")
    return EXIT_CLEAN


# ─────────────────────────────────────────────────────────────
#  Main
# ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Lint JulietScript files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            f"  {PROG} --glob '**/*.julietscript'\n"
            f"  {PROG} --root ./workflows --glob '*.julietscript' --format json\n"
            f"  {PROG} example\n"
        ),
    )
    parser.add_argument("--glob", dest="globs", action="append", metavar="PATTERN",
                        help="Glob pattern for JulietScript files. Repeat to lint more patterns.")
    parser.add_argument("--root", default=None, metavar="DIR",
                        help="Base directory for relative --glob patterns (default: .)")
    parser.add_argument("--format", default=None, choices=OUTPUT_FORMATS,
                        help="Report format (default: text)")
    parser.add_argument("--jobs", "-j", default=None, type=int,
                        help="Number of files to lint in parallel (default: 1)")
    parser.add_argument("--engine", default=None,
                        help="Lint engine name or 'package.module:attr' (default: julietscript)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    subparsers.add_parser("example", help="Print an annotated JulietScript example")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None and not args.globs:
        parser.error("the following arguments are required: --glob")

    commands = {
        "example": cmd_example,
        None: cmd_lint,
    }

    try:
        config = LintConfig.from_args(args)
        logging.basicConfig(
            level=config.log_level,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )
        return commands[args.command](config)
    except JulietScriptError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
