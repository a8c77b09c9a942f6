"""
JulietScript Parser
===================
Recursive-descent parser that turns the lexer's token stream into an
ordered list of top-level declarations.

Supports:
  - juliet runtime-defaults blocks
  - policy, rubric, and cadence declarations
  - create statements with from / using / with clauses
  - extend and halt statements
  - Panic-mode recovery: a failed production records a diagnostic,
    skips to a synchronizing token, and parsing resumes from there

Recovery never uses exceptions. Productions return partially filled
nodes so the resolver can still register names and check what parsed.
"""
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .diagnostics import Diagnostic, Position, Range, error
from .lexer import Token, TokenType


# ─────────────────────────────────────────────────────────────
#  Declaration Nodes
# ─────────────────────────────────────────────────────────────

@dataclass
class Declaration:
    """Base class for all top-level declarations."""
    node_type: str = ""
    keyword: Optional[Token] = None

    @property
    def start(self) -> Position:
        return self.keyword.start if self.keyword else Position(0, 0)


@dataclass
class OptionNode:
    """A `key = value;` assignment inside a juliet or cadence block."""
    key: Token
    value: Optional[Token] = None


@dataclass
class RuntimeDefaultsNode(Declaration):
    """juliet { engine = codex; }"""
    options: list[OptionNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "RuntimeDefaults"


@dataclass
class PolicyNode(Declaration):
    """policy Name = "body";"""
    name: Optional[Token] = None
    body: Optional[Token] = None

    def __post_init__(self):
        self.node_type = "Policy"


@dataclass
class CriterionNode:
    """criterion "Label" points N means "text";"""
    keyword: Token
    label: Optional[Token] = None
    points: Optional[Token] = None
    meaning: Optional[Token] = None


@dataclass
class RubricNode(Declaration):
    """A rubric block: weighted criteria plus ordered tiebreakers.

    `block` is the opening brace, or None when the body never parsed.
    """
    name: Optional[Token] = None
    block: Optional[Token] = None
    criteria: list[CriterionNode] = field(default_factory=list)
    tiebreakers: list[Token] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Rubric"


@dataclass
class CadenceNode(Declaration):
    """A cadence block.

    cadence Name {
        engine = codex;
        variants = 3;
        sprints = 2;
        compare using SomeRubric;
        keep best 2;
    }
    """
    name: Optional[Token] = None
    block: Optional[Token] = None
    settings: list[OptionNode] = field(default_factory=list)
    compare_rubrics: list[Token] = field(default_factory=list)
    keep_best: list[Token] = field(default_factory=list)
    has_compare: bool = False
    has_keep_best: bool = False

    def __post_init__(self):
        self.node_type = "Cadence"

    def setting_keys(self) -> set[str]:
        return {setting.key.value for setting in self.settings}


@dataclass
class AttachmentNode:
    """A `key = Name;` entry inside a create statement's with-block."""
    key: Token
    value: Optional[Token] = None


ORIGIN_PROMPT = "juliet"
ORIGIN_SOURCE_FILES = "julietArtifactSourceFiles"


@dataclass
class CreateNode(Declaration):
    """An artifact declaration.

    create Name from juliet "prompt" using [A, B] with { rubric = R; };
    create Name from julietArtifactSourceFiles ["a.md", "b.md"];
    """
    name: Optional[Token] = None
    origin: str = ""
    prompt: Optional[Token] = None
    source_list: Optional[Token] = None
    source_files: list[Token] = field(default_factory=list)
    using: list[Token] = field(default_factory=list)
    attachments: list[AttachmentNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Create"


@dataclass
class ExtendNode(Declaration):
    """extend Artifact.rubric with "guidance";"""
    target: Optional[Token] = None
    property: Optional[Token] = None
    guidance: Optional[Token] = None

    def __post_init__(self):
        self.node_type = "Extend"


@dataclass
class HaltNode(Declaration):
    """halt; or halt "reason";"""
    message: Optional[Token] = None

    def __post_init__(self):
        self.node_type = "Halt"


@dataclass
class ProgramNode:
    """Root node: all declarations in source order."""
    declarations: list[Declaration] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────
#  Parser
# ─────────────────────────────────────────────────────────────

TOP_LEVEL_KEYWORDS = ("juliet", "policy", "rubric", "cadence", "create", "extend", "halt")

OPENERS = (TokenType.LBRACE, TokenType.LBRACKET, TokenType.LPAREN)
CLOSERS = (TokenType.RBRACE, TokenType.RBRACKET, TokenType.RPAREN)


class Parser:
    """
    Recursive-descent parser for JulietScript.

    Usage:
        parser = Parser(tokens)
        program = parser.parse()
        parser.diagnostics  # syntax errors, in emission order

    Synchronizing rules:
        - statement level: the next `;` at depth 0 (consumed) or the
          next statement start
        - block level: the next `;` at the block's depth (consumed),
          the block's `}` (left for the caller), or a statement start

    A statement start is a top-level keyword not followed by `=` or
    `.`; `juliet` additionally needs a following `{`. Inside brackets
    it must also be the first token on its line, so keys such as
    `cadence = Loop;` in a with-block are not mistaken for one.
    """

    def __init__(self, tokens: Iterable[Token]):
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].type != TokenType.EOF:
            end = self.tokens[-1].end if self.tokens else Position(0, 0)
            self.tokens.append(Token(TokenType.EOF, "", end, end))
        self.pos = 0
        self.diagnostics: list[Diagnostic] = []
        self._productions: dict[str, Callable[[Token], Declaration]] = {
            "juliet": self._parse_juliet,
            "policy": self._parse_policy,
            "rubric": self._parse_rubric,
            "cadence": self._parse_cadence,
            "create": self._parse_create,
            "extend": self._parse_extend,
            "halt": self._parse_halt,
        }

    # ─────────────────────────────────────────────────────────
    #  Token Cursor
    # ─────────────────────────────────────────────────────────

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _previous(self) -> Token:
        return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

    def _peek(self, offset: int = 1) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return token

    def _at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _check_keyword(self, word: str) -> bool:
        return self._current().is_keyword(word)

    def _match(self, token_type: TokenType) -> Optional[Token]:
        if self._check(token_type):
            return self._advance()
        return None

    def _match_keyword(self, word: str) -> Optional[Token]:
        if self._check_keyword(word):
            return self._advance()
        return None

    def _starts_line(self) -> bool:
        """True when the current token is the first on its line."""
        if self.pos == 0:
            return True
        return self._previous().end.line < self._current().start.line

    # ─────────────────────────────────────────────────────────
    #  Diagnostics and Expectations
    # ─────────────────────────────────────────────────────────

    def _report(self, token: Token, message: str):
        self.diagnostics.append(error(message, token.range))

    def _report_after_previous(self, message: str):
        """Anchor a diagnostic immediately after the last consumed token."""
        self.diagnostics.append(error(message, Range.at(self._previous().end)))

    def _expect(self, token_type: TokenType, message: str) -> Optional[Token]:
        token = self._match(token_type)
        if token is None:
            self._report(self._current(), message)
        return token

    def _expect_keyword(self, word: str, message: str) -> Optional[Token]:
        token = self._match_keyword(word)
        if token is None:
            self._report(self._current(), message)
        return token

    def _expect_identifier(self, message: str) -> Optional[Token]:
        return self._expect(TokenType.IDENTIFIER, message)

    def _expect_string(self, message: str) -> Optional[Token]:
        if self._current().is_string:
            return self._advance()
        self._report(self._current(), message)
        return None

    def _expect_value(self, message: str) -> Optional[Token]:
        if self._current().type in (
            TokenType.IDENTIFIER, TokenType.STRING,
            TokenType.BLOCK_STRING, TokenType.NUMBER,
        ):
            return self._advance()
        self._report(self._current(), message)
        return None

    def _expect_engine_value(self) -> Optional[Token]:
        if self._current().type in (TokenType.IDENTIFIER, TokenType.STRING):
            return self._advance()
        self._report(self._current(), "Expected engine value as an identifier or quoted string.")
        return None

    def _expect_terminator(self, message: str, in_block: bool = False) -> bool:
        """Expect `;`. When it is missing, skip junk left on the same line."""
        if self._match(TokenType.SEMICOLON):
            return True
        self._report_after_previous(message)
        if not self._starts_line():
            if in_block:
                self._synchronize_block()
            else:
                self._synchronize_statement()
        return False

    # ─────────────────────────────────────────────────────────
    #  Panic-Mode Recovery
    # ─────────────────────────────────────────────────────────

    def _is_statement_start(self, nested: bool = False) -> bool:
        token = self._current()
        if token.type != TokenType.IDENTIFIER or token.value not in TOP_LEVEL_KEYWORDS:
            return False
        following = self._peek()
        if following.type in (TokenType.EQUALS, TokenType.DOT):
            return False
        if token.value == "juliet" and following.type != TokenType.LBRACE:
            return False
        return not nested or self._starts_line()

    def _report_unclosed(self, openers: list[Token]):
        for opener in openers:
            self._report(opener, f"Unmatched '{opener.value}'.")

    def _skip_bracket(self, openers: list[Token]):
        """Consume the current token, tracking skipped brackets in `openers`."""
        token = self._advance()
        if token.type in OPENERS:
            openers.append(token)
        elif token.type in CLOSERS and openers:
            openers.pop()

    def _synchronize_statement(self):
        """Skip to the next `;` at depth 0 (consumed) or the next statement start.

        Brackets opened while skipping and still open at a statement
        start or EOF are reported as unmatched.
        """
        openers: list[Token] = []
        while not self._at_end():
            if not openers and self._check(TokenType.SEMICOLON):
                self._advance()
                return
            if self._is_statement_start():
                break
            self._skip_bracket(openers)
        self._report_unclosed(openers)

    def _synchronize_block(self):
        """Skip to the next `;` in this block (consumed), its `}`, or a statement start."""
        openers: list[Token] = []
        while not self._at_end():
            if not openers:
                if self._check(TokenType.SEMICOLON):
                    self._advance()
                    return
                if self._check(TokenType.RBRACE):
                    return
            if self._is_statement_start(nested=True) or (openers and self._is_statement_start()):
                break
            self._skip_bracket(openers)
        self._report_unclosed(openers)

    def _in_block(self) -> bool:
        """Loop condition for `{ ... }` bodies."""
        return not (
            self._check(TokenType.RBRACE)
            or self._at_end()
            or self._is_statement_start(nested=True)
        )

    # ─────────────────────────────────────────────────────────
    #  Top-Level Parsing
    # ─────────────────────────────────────────────────────────

    def parse(self) -> ProgramNode:
        """Parse the whole token stream. Never stops before EOF."""
        program = ProgramNode()

        while not self._at_end():
            token = self._current()

            if token.type == TokenType.IDENTIFIER and token.value in self._productions:
                self._advance()
                program.declarations.append(self._productions[token.value](token))
            elif token.type in CLOSERS:
                self._report(token, f"Unmatched '{token.value}'.")
                self._advance()
            else:
                self._report(
                    token,
                    "Expected a top-level statement: juliet, policy, rubric, "
                    "cadence, create, extend, or halt.",
                )
                self._synchronize_statement()

        return program

    def _parse_list(
        self,
        items: list[Token],
        expect_item: Callable[[str], Optional[Token]],
        open_message: str,
        item_message: str,
        close_message: str,
    ) -> Optional[Token]:
        """Parse `[ item, item, ... ]` into `items`. Returns the `[` token, or None on failure."""
        opening = self._expect(TokenType.LBRACKET, open_message)
        if opening is None:
            return None

        if not self._check(TokenType.RBRACKET):
            while True:
                item = expect_item(item_message)
                if item is None:
                    return None
                items.append(item)
                if not self._match(TokenType.COMMA):
                    break

        if self._expect(TokenType.RBRACKET, close_message) is None:
            return None
        return opening

    # ─────────────────────────────────────────────────────────
    #  juliet { ... }
    # ─────────────────────────────────────────────────────────

    def _parse_juliet(self, keyword: Token) -> RuntimeDefaultsNode:
        node = RuntimeDefaultsNode(keyword=keyword)
        if self._expect(TokenType.LBRACE, "Expected '{' after 'juliet'.") is None:
            self._synchronize_statement()
            return node

        while self._in_block():
            key = self._expect_identifier("Expected a key name in juliet block.")
            if key is None:
                self._synchronize_block()
                continue

            option = OptionNode(key=key)
            node.options.append(option)
            if self._expect(TokenType.EQUALS, "Expected '=' after juliet key.") is None:
                self._synchronize_block()
                continue

            if key.value == "engine":
                option.value = self._expect_engine_value()
            else:
                option.value = self._expect_value("Expected a value after '='.")
            if option.value is None:
                self._synchronize_block()
                continue

            self._expect_terminator("Expected ';' after juliet assignment.", in_block=True)

        self._expect(TokenType.RBRACE, "Expected '}' to close juliet block.")
        return node

    # ─────────────────────────────────────────────────────────
    #  policy Name = "...";
    # ─────────────────────────────────────────────────────────

    def _parse_policy(self, keyword: Token) -> PolicyNode:
        node = PolicyNode(keyword=keyword)
        node.name = self._expect_identifier("Expected policy name.")
        if node.name is None:
            self._synchronize_statement()
            return node

        if self._expect(TokenType.EQUALS, "Expected '=' after policy name.") is None:
            self._synchronize_statement()
            return node

        node.body = self._expect_string(
            "Expected a string or triple-quoted block string for policy body."
        )
        if node.body is None:
            self._synchronize_statement()
            return node

        self._expect_terminator("Expected ';' after policy declaration.")
        return node

    # ─────────────────────────────────────────────────────────
    #  rubric Name { criterion ...; tiebreakers [...]; }
    # ─────────────────────────────────────────────────────────

    def _parse_rubric(self, keyword: Token) -> RubricNode:
        node = RubricNode(keyword=keyword)
        node.name = self._expect_identifier("Expected rubric name.")
        if node.name is None:
            self._synchronize_statement()
            return node

        node.block = self._expect(TokenType.LBRACE, "Expected '{' after rubric name.")
        if node.block is None:
            self._synchronize_statement()
            return node

        while self._in_block():
            criterion_keyword = self._match_keyword("criterion")
            if criterion_keyword is not None:
                self._parse_criterion(node, criterion_keyword)
                continue

            if self._match_keyword("tiebreakers"):
                self._parse_tiebreakers(node)
                continue

            self._report(self._current(), "Expected 'criterion' or 'tiebreakers' inside rubric block.")
            self._synchronize_block()

        self._expect(TokenType.RBRACE, "Expected '}' to close rubric block.")
        return node

    def _parse_criterion(self, node: RubricNode, keyword: Token):
        criterion = CriterionNode(keyword=keyword)
        node.criteria.append(criterion)

        criterion.label = self._expect_string("Expected criterion name string.")
        if criterion.label is None:
            self._synchronize_block()
            return

        if self._expect_keyword("points", "Expected 'points' after criterion label.") is None:
            self._synchronize_block()
            return

        criterion.points = self._expect(TokenType.NUMBER, "Expected integer points value.")
        if criterion.points is None:
            self._synchronize_block()
            return

        if self._match_keyword("means"):
            criterion.meaning = self._expect_string("Expected criterion meaning string after 'means'.")
            if criterion.meaning is None:
                self._synchronize_block()
                return

        self._expect_terminator("Expected ';' after criterion definition.", in_block=True)

    def _parse_tiebreakers(self, node: RubricNode):
        opening = self._parse_list(
            node.tiebreakers,
            self._expect_string,
            "Expected '[' after tiebreakers.",
            "Expected criterion name in tiebreakers list.",
            "Expected ']' after tiebreakers list.",
        )
        if opening is None:
            self._synchronize_block()
            return
        self._expect_terminator("Expected ';' after tiebreakers statement.", in_block=True)

    # ─────────────────────────────────────────────────────────
    #  cadence Name { ... }
    # ─────────────────────────────────────────────────────────

    def _parse_cadence(self, keyword: Token) -> CadenceNode:
        node = CadenceNode(keyword=keyword)
        node.name = self._expect_identifier("Expected cadence name.")
        if node.name is None:
            self._synchronize_statement()
            return node

        node.block = self._expect(TokenType.LBRACE, "Expected '{' after cadence name.")
        if node.block is None:
            self._synchronize_statement()
            return node

        while self._in_block():
            if self._match_keyword("compare"):
                node.has_compare = True
                self._parse_compare(node)
                continue

            if self._match_keyword("keep"):
                node.has_keep_best = True
                self._parse_keep_best(node)
                continue

            if self._check(TokenType.IDENTIFIER) and self._peek().type == TokenType.EQUALS:
                self._parse_cadence_setting(node)
                continue

            self._report(self._current(), "Expected cadence assignment or action (compare/keep).")
            self._synchronize_block()

        self._expect(TokenType.RBRACE, "Expected '}' to close cadence block.")
        return node

    def _parse_compare(self, node: CadenceNode):
        if self._expect_keyword("using", "Expected 'using' after 'compare'.") is None:
            self._synchronize_block()
            return

        rubric = self._expect_identifier("Expected rubric name after 'compare using'.")
        if rubric is None:
            self._synchronize_block()
            return
        node.compare_rubrics.append(rubric)

        self._expect_terminator("Expected ';' after compare statement.", in_block=True)

    def _parse_keep_best(self, node: CadenceNode):
        if self._expect_keyword("best", "Expected 'best' after 'keep'.") is None:
            self._synchronize_block()
            return

        count = self._expect(TokenType.NUMBER, "Expected integer keep limit after 'keep best'.")
        if count is None:
            self._synchronize_block()
            return
        node.keep_best.append(count)

        self._expect_terminator("Expected ';' after keep statement.", in_block=True)

    def _parse_cadence_setting(self, node: CadenceNode):
        key = self._advance()
        self._advance()  # consume =
        setting = OptionNode(key=key)
        node.settings.append(setting)

        if key.value == "engine":
            setting.value = self._expect_engine_value()
        elif key.value in ("variants", "sprints"):
            setting.value = self._expect(
                TokenType.NUMBER, f"Expected an integer for cadence key '{key.value}'."
            )
        else:
            setting.value = self._expect_value("Expected a value after cadence assignment.")

        if setting.value is None:
            self._synchronize_block()
            return

        self._expect_terminator("Expected ';' after cadence assignment.", in_block=True)

    # ─────────────────────────────────────────────────────────
    #  create Name from ... [using [...]] [with { ... }];
    # ─────────────────────────────────────────────────────────

    def _parse_create(self, keyword: Token) -> CreateNode:
        node = CreateNode(keyword=keyword)
        node.name = self._expect_identifier("Expected artifact name after 'create'.")
        if node.name is None:
            self._synchronize_statement()
            return node

        if self._expect_keyword("from", "Expected 'from' after artifact name.") is None:
            self._synchronize_statement()
            return node

        if not self._parse_origin(node):
            self._synchronize_statement()
            return node

        if self._match_keyword("using"):
            opening = self._parse_list(
                node.using,
                self._expect_identifier,
                "Expected '[' after 'using'.",
                "Expected artifact name in 'using' list.",
                "Expected ']' after using list.",
            )
            if opening is None:
                self._synchronize_statement()
                return node

        if self._match_keyword("with"):
            if not self._parse_attachments(node):
                self._synchronize_statement()
                return node

        self._expect_terminator("Expected ';' after create statement.")
        return node

    def _parse_origin(self, node: CreateNode) -> bool:
        if self._match_keyword(ORIGIN_PROMPT):
            node.origin = ORIGIN_PROMPT
            node.prompt = self._expect_string("Expected prompt string after 'from juliet'.")
            return node.prompt is not None

        if self._match_keyword(ORIGIN_SOURCE_FILES):
            node.origin = ORIGIN_SOURCE_FILES
            node.source_list = self._parse_list(
                node.source_files,
                self._expect_string,
                "Expected '[' after 'julietArtifactSourceFiles'.",
                "Expected quoted file path in source files list.",
                "Expected ']' after source files list.",
            )
            return node.source_list is not None

        self._report(
            self._current(),
            "Expected 'juliet' or 'julietArtifactSourceFiles' after 'from'.",
        )
        return False

    def _parse_attachments(self, node: CreateNode) -> bool:
        if self._expect(TokenType.LBRACE, "Expected '{' to begin create attachments block.") is None:
            return False

        while self._in_block():
            key = self._expect_identifier("Expected attachment key in create with-block.")
            if key is None:
                self._synchronize_block()
                continue

            attachment = AttachmentNode(key=key)
            node.attachments.append(attachment)
            if self._expect(TokenType.EQUALS, "Expected '=' after create attachment key.") is None:
                self._synchronize_block()
                continue

            attachment.value = self._expect_identifier("Expected reference name after '='.")
            if attachment.value is None:
                self._synchronize_block()
                continue

            self._expect_terminator("Expected ';' after create attachment.", in_block=True)

        return self._expect(TokenType.RBRACE, "Expected '}' to close create attachments block.") is not None

    # ─────────────────────────────────────────────────────────
    #  extend Name.property with "...";
    # ─────────────────────────────────────────────────────────

    def _parse_extend(self, keyword: Token) -> ExtendNode:
        node = ExtendNode(keyword=keyword)
        node.target = self._expect_identifier("Expected artifact name after 'extend'.")
        if node.target is None:
            self._synchronize_statement()
            return node

        if self._expect(TokenType.DOT, "Expected '.' after artifact name in extend target.") is None:
            self._synchronize_statement()
            return node

        node.property = self._expect_identifier("Expected extend target after '.'.")
        if node.property is None:
            self._synchronize_statement()
            return node

        if self._expect_keyword("with", "Expected 'with' after extend target.") is None:
            self._synchronize_statement()
            return node

        node.guidance = self._expect_string("Expected string or block string after 'with'.")
        if node.guidance is None:
            self._synchronize_statement()
            return node

        self._expect_terminator("Expected ';' after extend statement.")
        return node

    # ─────────────────────────────────────────────────────────
    #  halt ["..."];
    # ─────────────────────────────────────────────────────────

    def _parse_halt(self, keyword: Token) -> HaltNode:
        node = HaltNode(keyword=keyword)
        if not self._check(TokenType.SEMICOLON):
            node.message = self._expect_string("Expected optional halt message string before ';'.")
            if node.message is None and not self._at_end() and not self._starts_line():
                self._synchronize_statement()
                return node

        self._expect_terminator("Expected ';' after halt statement.")
        return node


def parse(tokens: Iterable[Token]) -> tuple[list[Declaration], list[Diagnostic]]:
    """Parse a token stream into declarations plus syntax diagnostics."""
    parser = Parser(tokens)
    program = parser.parse()
    return program.declarations, parser.diagnostics
