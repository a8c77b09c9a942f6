"""
JulietScript Resolver
=====================
Semantic pass that runs after parsing. Walks the declarations once in
source order, maintaining one namespace per declaration kind, and
validates every reference and rule the grammar alone cannot enforce.

Checks:
  1. Declare-before-use: `compare using`, `using [...]`, `with {...}`
     and `extend` must name something already declared
  2. Duplicate declarations within a namespace
  3. Tiebreakers must match a criterion declared earlier in the rubric
  4. `extend` targets only the supported properties
  5. Numeric fields are non-negative integers (some strictly positive)
  6. Required contents: source file lists, prompts, cadence keys
  7. Advisory style rules (unknown keys, duplicates), reported as warnings
"""
from typing import Iterable, Optional

from .diagnostics import Diagnostic, Position, error, warning
from .lexer import Token
from .parser import (
    Declaration, RuntimeDefaultsNode, PolicyNode, RubricNode, CriterionNode,
    CadenceNode, CreateNode, ExtendNode, HaltNode, ORIGIN_PROMPT,
)


POLICY = "policy"
RUBRIC = "rubric"
CADENCE = "cadence"
ARTIFACT = "artifact"

JULIET_ALLOWED_KEYS = ("engine",)
CADENCE_ALLOWED_KEYS = ("engine", "variants", "sprints")
CADENCE_REQUIRED_KEYS = ("variants", "sprints")
CREATE_ATTACHMENT_KINDS = {
    "preflight": POLICY,
    "failureTriage": POLICY,
    "cadence": CADENCE,
    "rubric": RUBRIC,
}
EXTEND_PROPERTIES = ("rubric",)


class SymbolTable:
    """Four independent namespaces mapping name to declaration position."""

    NAMESPACES = (POLICY, RUBRIC, CADENCE, ARTIFACT)

    def __init__(self):
        self._symbols: dict[str, dict[str, Position]] = {
            kind: {} for kind in self.NAMESPACES
        }

    def declare(self, kind: str, name: str, position: Position) -> bool:
        """Record a declaration. Returns False if the name is already taken."""
        namespace = self._symbols[kind]
        if name in namespace:
            return False
        namespace[name] = position
        return True

    def lookup(self, kind: str, name: str) -> Optional[Position]:
        return self._symbols[kind].get(name)

    def names(self, kind: str) -> list[str]:
        return list(self._symbols[kind])


class Resolver:
    """
    Reference and semantic checks for parsed JulietScript.

    Usage:
        resolver = Resolver()
        diagnostics = resolver.resolve(program.declarations)
    """

    def __init__(self):
        self.diagnostics: list[Diagnostic] = []
        self.symbols = SymbolTable()
        self._runtime_declared = False

    def resolve(self, declarations: Iterable[Declaration]) -> list[Diagnostic]:
        """Check every declaration in order. Returns diagnostics in emission order."""
        self.diagnostics = []
        self.symbols = SymbolTable()
        self._runtime_declared = False

        for decl in declarations:
            if isinstance(decl, RuntimeDefaultsNode):
                self._check_runtime_defaults(decl)
            elif isinstance(decl, PolicyNode):
                self._declare(POLICY, decl.name)
            elif isinstance(decl, RubricNode):
                self._check_rubric(decl)
            elif isinstance(decl, CadenceNode):
                self._check_cadence(decl)
            elif isinstance(decl, CreateNode):
                self._check_create(decl)
            elif isinstance(decl, ExtendNode):
                self._check_extend(decl)
            elif isinstance(decl, HaltNode):
                # Declarations after halt are still checked and not flagged.
                continue

        return self.diagnostics

    def _error(self, token: Token, message: str):
        self.diagnostics.append(error(message, token.range))

    def _warning(self, token: Token, message: str):
        self.diagnostics.append(warning(message, token.range))

    # ─────────────────────────────────────────────────────────
    #  Symbols
    # ─────────────────────────────────────────────────────────

    def _declare(self, kind: str, name: Optional[Token]):
        if name is None:
            return
        if not self.symbols.declare(kind, name.value, name.start):
            self._error(name, f"{kind} '{name.value}' already declared")

    def _reference(self, kind: str, name: Optional[Token]):
        if name is None:
            return
        if self.symbols.lookup(kind, name.value) is None:
            self._error(name, f"reference to undeclared {kind} '{name.value}'")

    # ─────────────────────────────────────────────────────────
    #  Numbers
    # ─────────────────────────────────────────────────────────

    def _integer(self, token: Token, label: str) -> bool:
        """Check for a non-negative integer literal, reporting anything else.

        The literal is never converted: digit runs are unbounded.
        """
        if not token.value.isdigit():
            self._error(token, f"{label} must be a non-negative integer, got '{token.value}'.")
            return False
        return True

    def _positive_integer(self, token: Token, label: str, zero_message: str):
        if self._integer(token, label) and not token.value.strip("0"):
            self._error(token, zero_message)

    # ─────────────────────────────────────────────────────────
    #  juliet { ... }
    # ─────────────────────────────────────────────────────────

    def _check_runtime_defaults(self, node: RuntimeDefaultsNode):
        if self._runtime_declared:
            self._warning(
                node.keyword,
                "Duplicate juliet block. Only one top-level juliet block is expected.",
            )
        self._runtime_declared = True

        for option in node.options:
            if option.key.value not in JULIET_ALLOWED_KEYS:
                self._warning(
                    option.key,
                    f"Unknown juliet key '{option.key.value}'. "
                    f"Supported keys: {', '.join(JULIET_ALLOWED_KEYS)}.",
                )

    # ─────────────────────────────────────────────────────────
    #  rubric
    # ─────────────────────────────────────────────────────────

    def _check_rubric(self, node: RubricNode):
        self._declare(RUBRIC, node.name)
        if node.block is None:
            return

        if not node.criteria:
            self._warning(node.name, f"Rubric '{node.name.value}' declares no criteria.")

        for criterion in node.criteria:
            self._check_criterion(criterion)

        for label in node.tiebreakers:
            if not self._criterion_declared_before(node, label):
                self._error(
                    label,
                    f"Tiebreaker '{label.value}' does not match any criterion "
                    f"declared earlier in rubric '{node.name.value}'.",
                )

    def _check_criterion(self, criterion: CriterionNode):
        if criterion.points is not None:
            self._integer(criterion.points, "Criterion points")
        if criterion.meaning is not None and not criterion.meaning.value.strip():
            self._warning(criterion.meaning, "Criterion meaning should not be empty.")

    @staticmethod
    def _criterion_declared_before(node: RubricNode, label: Token) -> bool:
        return any(
            criterion.label is not None
            and criterion.label.value == label.value
            and criterion.label.start < label.start
            for criterion in node.criteria
        )

    # ─────────────────────────────────────────────────────────
    #  cadence
    # ─────────────────────────────────────────────────────────

    def _check_cadence(self, node: CadenceNode):
        self._declare(CADENCE, node.name)
        if node.block is None:
            return

        for setting in node.settings:
            key = setting.key.value
            if key not in CADENCE_ALLOWED_KEYS:
                self._warning(
                    setting.key,
                    f"Unknown cadence key '{key}'. "
                    f"Supported keys: {', '.join(CADENCE_ALLOWED_KEYS)}.",
                )
            elif key in CADENCE_REQUIRED_KEYS and setting.value is not None:
                self._positive_integer(
                    setting.value,
                    f"Cadence '{key}'",
                    f"Cadence '{key}' should be greater than 0.",
                )

        for rubric in node.compare_rubrics:
            self._reference(RUBRIC, rubric)

        for count in node.keep_best:
            self._positive_integer(
                count, "'keep best' value", "'keep best' value should be greater than 0."
            )

        keys = node.setting_keys()
        for key in CADENCE_REQUIRED_KEYS:
            if key not in keys:
                self._warning(node.name, f"Cadence is missing required key '{key}'.")
        if not node.has_compare:
            self._warning(node.name, "Cadence is missing required action 'compare using'.")
        if not node.has_keep_best:
            self._warning(node.name, "Cadence is missing required action 'keep best'.")

    # ─────────────────────────────────────────────────────────
    #  create
    # ─────────────────────────────────────────────────────────

    def _check_create(self, node: CreateNode):
        if node.name is None:
            return

        if node.origin == ORIGIN_PROMPT:
            if node.prompt is not None and not node.prompt.value.strip():
                self._error(node.prompt, f"Prompt for artifact '{node.name.value}' must not be empty.")
        elif node.source_list is not None:
            self._check_source_files(node)

        for dependency in node.using:
            self._reference(ARTIFACT, dependency)

        seen_keys: set[str] = set()
        for attachment in node.attachments:
            key = attachment.key.value
            if key in seen_keys:
                self._warning(attachment.key, f"Duplicate create attachment '{key}'.")
            seen_keys.add(key)

            kind = CREATE_ATTACHMENT_KINDS.get(key)
            if kind is None:
                self._warning(
                    attachment.key,
                    f"Unknown create attachment key '{key}'. "
                    f"Supported keys: {', '.join(CREATE_ATTACHMENT_KINDS)}.",
                )
                continue
            self._reference(kind, attachment.value)

        # Registered last: an artifact cannot use itself.
        self._declare(ARTIFACT, node.name)

    def _check_source_files(self, node: CreateNode):
        if not node.source_files:
            self._error(
                node.source_list,
                "Expected at least one file path in julietArtifactSourceFiles list.",
            )
            return

        seen_paths: set[str] = set()
        for path in node.source_files:
            if path.value in seen_paths:
                self._warning(
                    path,
                    f"Duplicate source file path '{path.value}' in julietArtifactSourceFiles list.",
                )
            seen_paths.add(path.value)

    # ─────────────────────────────────────────────────────────
    #  extend
    # ─────────────────────────────────────────────────────────

    def _check_extend(self, node: ExtendNode):
        self._reference(ARTIFACT, node.target)
        if node.property is not None and node.property.value not in EXTEND_PROPERTIES:
            self._error(
                node.property,
                f"Unsupported extend property '{node.property.value}'. "
                "Only '<Artifact>.rubric' is currently supported by extend.",
            )


def resolve(declarations: Iterable[Declaration]) -> list[Diagnostic]:
    """Run all reference and semantic checks over parsed declarations."""
    return Resolver().resolve(declarations)
