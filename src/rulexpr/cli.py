"""
rulexpr command-line interface.

Commands:
- eval: Parse a rule and evaluate it against a JSON context
- parse: Parse a rule and print its canonical form or AST
- tokens: Show the token stream the lexer produces for a rule
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rulexpr import __version__
from rulexpr.core.config import DEFAULT_CONFIG, RuleLangConfig, load_config
from rulexpr.core.errors import ConfigError, RuleError
from rulexpr.core.ir import OPERATOR_NODES, Rule, Value, coerce_context
from rulexpr.core.rule_lang import evaluate, parse_rule, tokenize

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Parse and evaluate S-expression rules.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Exit codes
EXIT_RULE_ERROR = 1
EXIT_BAD_INPUT = 2

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        envvar="RULEXPR_CONFIG",
        help="TOML file with a [rules] table",
    ),
]


def version_callback(value: bool) -> None:
    """Print the version and exit."""
    if value:
        typer.echo(f"rulexpr {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """rulexpr CLI main callback for global options."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


# =============================================================================
# Helpers
# =============================================================================


def _fail(message: str, code: int) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(code=code)


def _load_config(path: Path | None) -> RuleLangConfig:
    if path is None:
        return DEFAULT_CONFIG
    try:
        config = load_config(path)
    except ConfigError as e:
        raise _fail(str(e), EXIT_BAD_INPUT) from e
    logger.debug("Loaded config from %s: %s", path, config)
    return config


def _load_context(inline: str | None, context_file: Path | None) -> dict[str, Value]:
    """Merge the context file and inline JSON (inline wins) into Values."""
    raw: dict[str, Any] = {}
    sources: list[tuple[str, str]] = []
    if context_file is not None:
        try:
            sources.append((str(context_file), context_file.read_text(encoding="utf-8")))
        except OSError as e:
            raise _fail(f"Cannot read context file {context_file}: {e}", EXIT_BAD_INPUT) from e
    if inline is not None:
        sources.append(("--context", inline))

    for label, text in sources:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise _fail(f"Invalid JSON in {label}: {e}", EXIT_BAD_INPUT) from e
        if not isinstance(data, dict):
            raise _fail(f"Context in {label} must be a JSON object", EXIT_BAD_INPUT)
        raw.update(data)

    try:
        return coerce_context(raw)
    except (TypeError, ValidationError) as e:
        raise _fail(f"Invalid context value: {e}", EXIT_BAD_INPUT) from e


def _parse(rule: str, config: RuleLangConfig) -> Rule:
    try:
        return parse_rule(rule, config)
    except RuleError as e:
        raise _fail(str(e), EXIT_RULE_ERROR) from e


def rule_to_dict(rule: Rule) -> dict[str, Any]:
    """JSON-friendly tree of a rule AST, tagged with node names."""
    node = type(rule).__name__
    if type(rule) in OPERATOR_NODES.values():
        return {"node": node, "args": [rule_to_dict(a) for a in rule.args]}  # type: ignore[union-attr]
    return {"node": node, **rule.model_dump()}


# =============================================================================
# Commands
# =============================================================================


@app.command("eval")
def eval_command(
    rule: Annotated[str, typer.Argument(help="Rule text, e.g. '(MOD ${n} 3)'")],
    context: Annotated[
        str | None,
        typer.Option("--context", "-x", help="Context as a JSON object"),
    ] = None,
    context_file: Annotated[
        Path | None,
        typer.Option("--context-file", "-f", help="JSON file holding the context"),
    ] = None,
    config_path: ConfigOption = None,
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Evaluate a rule against a context."""
    config = _load_config(config_path)
    ctx = _load_context(context, context_file)
    parsed = _parse(rule, config)

    try:
        value = evaluate(parsed, ctx, config)
    except RuleError as e:
        raise _fail(str(e), EXIT_RULE_ERROR) from e

    if output_json:
        typer.echo(json.dumps({"kind": str(value.kind), "value": value.to_python()}))
        return
    typer.echo(f"{value.kind}: {value}")


@app.command("parse")
def parse_command(
    rule: Annotated[str, typer.Argument(help="Rule text")],
    config_path: ConfigOption = None,
    output_json: Annotated[bool, typer.Option("--json", help="Output the AST as JSON")] = False,
) -> None:
    """Parse a rule and print it in canonical form."""
    config = _load_config(config_path)
    parsed = _parse(rule, config)

    if output_json:
        typer.echo(json.dumps(rule_to_dict(parsed), indent=2))
        return
    typer.echo(str(parsed))


@app.command("tokens")
def tokens_command(
    rule: Annotated[str, typer.Argument(help="Rule text")],
) -> None:
    """Show the tokens the lexer produces for a rule."""
    try:
        tokens = tokenize(rule)
    except RuleError as e:
        raise _fail(str(e), EXIT_RULE_ERROR) from e

    if not tokens:
        console.print("[dim]No tokens.[/dim]")
        return

    table = Table(title="Tokens")
    table.add_column("Pos", justify="right", style="dim")
    table.add_column("Kind")
    table.add_column("Lexeme")
    for tok in tokens:
        table.add_row(str(tok.pos), tok.kind.name, escape(tok.lexeme))

    console.print(table)
    console.print(f"\n[dim]{len(tokens)} token(s)[/dim]")


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> None:
    app()


if __name__ == "__main__":
    main()
