"""Tests for the rule parser.

Covers:
- Leaf and operator productions, nesting and argument order
- Deferred arity checking
- Every ParseErrorKind, lexer error propagation and config switches
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rulexpr.core.config import RuleLangConfig
from rulexpr.core.errors import LexError, ParseError, ParseErrorKind
from rulexpr.core.ir import And, Equals, In, Mod, Num, Or, Str, Var
from rulexpr.core.rule_lang.lexer import Lexer, TokenKind
from rulexpr.core.rule_lang.parser import Parser, parse_rule

# ============================================================================
# Productions
# ============================================================================


class TestLeaves:
    """NUM, STR and VAR tokens become leaf nodes."""

    def test_number(self) -> None:
        assert parse_rule("42") == Num(text="42")

    def test_string(self) -> None:
        assert parse_rule('"admin"') == Str(text="admin")

    def test_variable(self) -> None:
        assert parse_rule("${role}") == Var(name="role")


class TestOperators:
    """Parenthesised operator expressions."""

    @pytest.mark.parametrize(
        ("source", "node_type"),
        [
            ("(AND)", And),
            ("(OR)", Or),
            ("(MOD)", Mod),
            ("(EQUALS)", Equals),
            ("(IN)", In),
        ],
    )
    def test_each_operator(self, source: str, node_type: type) -> None:
        rule = parse_rule(source)
        assert type(rule) is node_type
        assert rule.args == ()

    def test_arguments_in_order(self) -> None:
        rule = parse_rule("(IN ${id} 3 1 2)")
        assert rule == In(args=(Var(name="id"), Num(text="3"), Num(text="1"), Num(text="2")))

    def test_nested(self) -> None:
        rule = parse_rule('(AND (EQUALS ${role} "admin") (IN ${tenant} 1 2 3))')
        assert rule == And(
            args=(
                Equals(args=(Var(name="role"), Str(text="admin"))),
                In(args=(Var(name="tenant"), Num(text="1"), Num(text="2"), Num(text="3"))),
            )
        )

    def test_whitespace_between_tokens_is_optional(self) -> None:
        assert parse_rule("(MOD(MOD 7 4)2)") == parse_rule("(MOD (MOD 7 4) 2)")

    def test_arity_not_checked(self) -> None:
        assert parse_rule("(MOD 1)") == Mod(args=(Num(text="1"),))
        assert parse_rule("(EQUALS 1 2 3)") == Equals(
            args=(Num(text="1"), Num(text="2"), Num(text="3"))
        )

    def test_canonical_rendering(self) -> None:
        source = '(AND (EQUALS ${role} "admin") (IN ${tenant} 1 2 3) (OR))'
        assert str(parse_rule(source)) == source

    def test_rendering_normalises_spacing(self) -> None:
        assert str(parse_rule("(  OR\t${a}   007 )")) == "(OR ${a} 7)"

    def test_parsed_tree_is_immutable(self) -> None:
        rule = parse_rule("(AND 1)")
        with pytest.raises(ValidationError):
            rule.args = ()  # type: ignore[misc]


# ============================================================================
# Lookahead
# ============================================================================


class TestLookahead:
    """move_token treats end of input as a flag, not an error."""

    def test_move_token_reports_exhaustion(self) -> None:
        parser = Parser(Lexer("("))
        assert parser.move_token() is True
        assert parser.look_token is not None
        assert parser.look_token.kind == TokenKind.LEFT_PAREN
        assert parser.move_token() is False
        assert parser.look_token is None

    def test_each_parse_consumes_its_stream(self) -> None:
        parser = Parser(Lexer("(OR 1)"))
        parser.parse()
        assert parser.move_token() is False


# ============================================================================
# Errors
# ============================================================================


class TestParseErrors:
    """Each failure maps to a ParseErrorKind."""

    @pytest.mark.parametrize("source", ["", "   ", "A", "${abc"])
    def test_empty_rule(self, source: str) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_rule(source)
        assert exc_info.value.kind == ParseErrorKind.EMPTY_RULE

    @pytest.mark.parametrize("source", ["(XOR 1 2)", "(1 2)", "(( AND))", "(and 1)"])
    def test_unsupported_operator(self, source: str) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_rule(source)
        assert exc_info.value.kind == ParseErrorKind.UNSUPPORTED_OPERATOR

    def test_unsupported_operator_position(self) -> None:
        with pytest.raises(ParseError, match="Unsupported operator: 'X'") as exc_info:
            parse_rule("(XOR 1 2)")
        assert exc_info.value.context is not None
        assert exc_info.value.context.pos == 1
        assert "position 1" in str(exc_info.value)

    @pytest.mark.parametrize("source", [")", "(AND x)", "(OR 1 #)", "(IN AND)"])
    def test_unexpected_token(self, source: str) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_rule(source)
        assert exc_info.value.kind == ParseErrorKind.UNEXPECTED_TOKEN

    @pytest.mark.parametrize(
        "source",
        ["(AND 1 2", "(", "(AND", "(AND (OR 1)", "(AND 1 A", '(EQUALS 1 "x'],
    )
    def test_unterminated_argument_list(self, source: str) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_rule(source)
        assert exc_info.value.kind == ParseErrorKind.FORMAT_NOT_MATCHED

    def test_trailing_tokens(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_rule("(AND) (OR)")
        assert exc_info.value.kind == ParseErrorKind.TRAILING_TOKENS
        assert exc_info.value.context is not None
        assert exc_info.value.context.pos == 6

    def test_trailing_close_paren(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_rule("(AND))")
        assert exc_info.value.kind == ParseErrorKind.TRAILING_TOKENS

    @pytest.mark.parametrize(
        ("source", "pos"),
        [("(AND) ${x", 6), ("(AND) A", 6), ('(AND)  "open', 7), ("(AND)EQ", 5)],
    )
    def test_trailing_incomplete_token(self, source: str, pos: int) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_rule(source)
        assert exc_info.value.kind == ParseErrorKind.TRAILING_TOKENS
        assert exc_info.value.context is not None
        assert exc_info.value.context.pos == pos

    def test_trailing_blanks_are_not_tokens(self) -> None:
        assert parse_rule("(AND)   ") == And()

    def test_trailing_tokens_allowed_by_config(self) -> None:
        config = RuleLangConfig(allow_trailing_tokens=True)
        assert parse_rule("(AND) garbage", config) == And()
        assert parse_rule("(AND) ${x", config) == And()

    def test_lex_error_propagates(self) -> None:
        with pytest.raises(LexError):
            parse_rule("(AND ${a-b})")


class TestArgumentCap:
    """max_args bounds the argument loop."""

    def test_within_cap(self) -> None:
        config = RuleLangConfig(max_args=2)
        assert parse_rule("(AND 1 2)", config) == And(args=(Num(text="1"), Num(text="2")))

    def test_over_cap(self) -> None:
        config = RuleLangConfig(max_args=2)
        with pytest.raises(ParseError) as exc_info:
            parse_rule("(AND 1 2 3)", config)
        assert exc_info.value.kind == ParseErrorKind.FORMAT_NOT_MATCHED

    def test_cap_applies_per_list(self) -> None:
        config = RuleLangConfig(max_args=2)
        rule = parse_rule("(AND (OR 1 2) (OR 3 4))", config)
        assert len(rule.args) == 2

    def test_default_cap_is_effectively_unbounded(self) -> None:
        source = "(OR " + " ".join(["0"] * 500) + ")"
        assert len(parse_rule(source).args) == 500


class TestNestingDepth:
    """max_depth bounds operator nesting."""

    @staticmethod
    def nested(depth: int) -> str:
        return "(AND " * depth + "1" + ")" * depth

    def test_at_default_limit(self) -> None:
        rule = parse_rule(self.nested(200))
        assert isinstance(rule, And)
        assert rule.eval({}).data is True

    def test_over_default_limit(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_rule(self.nested(1000))
        assert exc_info.value.kind == ParseErrorKind.FORMAT_NOT_MATCHED
        assert exc_info.value.context is not None
        assert exc_info.value.context.pos == 5 * 200 + 1

    def test_limit_from_config(self) -> None:
        config = RuleLangConfig(max_depth=2)
        assert parse_rule("(AND (OR 1) (OR 0))", config) == And(
            args=(Or(args=(Num(text="1"),)), Or(args=(Num(text="0"),)))
        )
        with pytest.raises(ParseError) as exc_info:
            parse_rule("(AND (OR (MOD 1 2)))", config)
        assert exc_info.value.kind == ParseErrorKind.FORMAT_NOT_MATCHED

    def test_limit_beyond_interpreter_stack(self) -> None:
        config = RuleLangConfig(max_depth=100_000)
        with pytest.raises(ParseError) as exc_info:
            parse_rule(self.nested(5000), config)
        assert exc_info.value.kind == ParseErrorKind.FORMAT_NOT_MATCHED

