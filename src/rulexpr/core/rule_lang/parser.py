"""
Recursive descent parser for the rule expression language.

Grammar:
    expr  → "(" OPER arg* ")" | NUM | STR | VAR
    OPER  → AND | OR | MOD | EQUALS | IN
    arg*  → expr, repeated until ")" is the lookahead

The parser keeps a single lookahead token and pulls the next one from the
lexer on demand. Operator arity is not checked here; the evaluator does
that, so ``(MOD 1)`` parses and fails only when evaluated.
"""

from __future__ import annotations

import logging

from rulexpr.core.config import DEFAULT_CONFIG, RuleLangConfig
from rulexpr.core.errors import ErrorContext, ParseError, ParseErrorKind
from rulexpr.core.ir.rules import OPERATOR_NODES, Num, Operator, Rule, Str, Var
from rulexpr.core.rule_lang.lexer import OPERATOR_KINDS, Lexer, Token, TokenKind

logger = logging.getLogger(__name__)


class Parser:
    """Builds one rule AST from a lexer's token stream.

    Not safe for concurrent use; each parse owns its own parser and lexer.
    """

    def __init__(self, lexer: Lexer, config: RuleLangConfig | None = None) -> None:
        self.lexer = lexer
        self.config = config or DEFAULT_CONFIG
        self.look_token: Token | None = None
        self.depth = 0

    def move_token(self) -> bool:
        """Advance the lookahead. Returns False once the stream is exhausted.

        Raises:
            LexError: If the lexer rejects the input.
        """
        self.look_token = self.lexer.scan()
        return self.look_token is not None

    def parse(self) -> Rule:
        """Consume the token stream and return the root node.

        Raises:
            ParseError: If the tokens do not form exactly one expression.
            LexError: If scanning fails.
        """
        if not self.move_token():
            raise ParseError("Rule is empty", ParseErrorKind.EMPTY_RULE)

        rule = self.expr()

        if self.config.allow_trailing_tokens:
            return rule
        if self.look_token is not None:
            tok = self.look_token
            raise ParseError(
                f"Unexpected token after expression: {tok.lexeme!r}",
                ParseErrorKind.TRAILING_TOKENS,
                self._context(tok),
            )
        if self.lexer.unfinished is not None:
            raise ParseError(
                "Incomplete token after expression",
                ParseErrorKind.TRAILING_TOKENS,
                ErrorContext(self.lexer.source, self.lexer.unfinished),
            )
        return rule

    # -- Grammar rules --

    def expr(self) -> Rule:
        """'(' OPER arg* ')' | NUM | STR | VAR"""
        tok = self._require_token()

        if tok.kind == TokenKind.LEFT_PAREN:
            return self.operator_expr()
        if tok.kind == TokenKind.NUM:
            self.move_token()
            return Num(text=tok.lexeme)
        if tok.kind == TokenKind.STR:
            self.move_token()
            return Str(text=tok.lexeme)
        if tok.kind == TokenKind.VAR:
            self.move_token()
            return Var(name=tok.lexeme)

        raise ParseError(
            f"Unexpected token {tok.lexeme!r}, expected '(', a number, a string or ${{name}}",
            ParseErrorKind.UNEXPECTED_TOKEN,
            self._context(tok),
        )

    def operator_expr(self) -> Rule:
        """'(' OPER arg* ')' with the lookahead on '('."""
        self.move_token()
        op_tok = self._require_token()
        if op_tok.kind not in OPERATOR_KINDS:
            raise ParseError(
                f"Unsupported operator: {op_tok.lexeme!r}",
                ParseErrorKind.UNSUPPORTED_OPERATOR,
                self._context(op_tok),
            )
        node_type = OPERATOR_NODES[Operator(op_tok.lexeme)]
        if self.depth >= self.config.max_depth:
            raise ParseError(
                f"Rule nests deeper than {self.config.max_depth} operators",
                ParseErrorKind.FORMAT_NOT_MATCHED,
                self._context(op_tok),
            )

        self.depth += 1
        try:
            return node_type(args=self._arguments(op_tok))
        finally:
            self.depth -= 1

    def _arguments(self, op_tok: Token) -> tuple[Rule, ...]:
        """Collect arguments up to the closing ')' with the lookahead on OPER."""
        args: list[Rule] = []
        self.move_token()
        for _ in range(self.config.max_args + 1):
            tok = self._require_token()
            if tok.kind == TokenKind.RIGHT_PAREN:
                self.move_token()
                return tuple(args)
            args.append(self.expr())

        raise ParseError(
            f"{op_tok.lexeme} has more than {self.config.max_args} arguments "
            "without a closing ')'",
            ParseErrorKind.FORMAT_NOT_MATCHED,
            self._context(op_tok),
        )

    # -- Helpers --

    def _require_token(self) -> Token:
        if self.look_token is None:
            raise ParseError(
                "Reached the end of the rule while expecting ')'",
                ParseErrorKind.FORMAT_NOT_MATCHED,
                ErrorContext(self.lexer.source, len(self.lexer.source)),
            )
        return self.look_token

    def _context(self, tok: Token) -> ErrorContext:
        return ErrorContext(self.lexer.source, tok.pos)


def parse_rule(source: str, config: RuleLangConfig | None = None) -> Rule:
    """Parse a rule string into an AST.

    Args:
        source: Rule text, e.g. ``(AND (EQUALS ${role} "admin") (IN ${tenant} 1 2 3))``
        config: Parser settings; defaults to ``DEFAULT_CONFIG``.

    Returns:
        Parsed rule AST, reusable across evaluations.

    Raises:
        ParseError: If the rule does not match the grammar or nests too deeply.
        LexError: If the rule holds an illegal variable name.
    """
    parser = Parser(Lexer(source), config)
    try:
        rule = parser.parse()
    except RecursionError as e:
        raise ParseError(
            "Rule nests too deeply to parse",
            ParseErrorKind.FORMAT_NOT_MATCHED,
        ) from e
    logger.debug("Parsed rule %r into %s", source, type(rule).__name__)
    return rule
