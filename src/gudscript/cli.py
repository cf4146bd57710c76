"""GudScript command line driver."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from gudscript import __version__
from gudscript.ast_nodes import Program
from gudscript.config import find_config, load_config, source_dir
from gudscript.errors import GudSyntaxError
from gudscript.formatter import GudFormatter
from gudscript.lexer import Lexer
from gudscript.parser import Parser
from gudscript.tokens import Token

logger = logging.getLogger(__name__)


def _use_color(ctx: click.Context, path: Path) -> bool:
    """Resolve --color/--no-color, falling back to gudscript.toml."""
    flag = ctx.obj.get("color") if ctx.obj else None
    if flag is not None:
        return flag
    try:
        return load_config(find_config(path)).diagnostics.color
    except FileNotFoundError:
        return True


def _report(error: GudSyntaxError, color: bool) -> None:
    click.echo(error.render(color=color), err=True)


def _parse_file(path: Path) -> tuple[list[Token], Program]:
    source = path.read_text(encoding="utf-8")
    tokens = Lexer(source, str(path)).lex()
    return tokens, Parser(tokens).program()


def _check_files(files: list[Path], color: bool) -> bool:
    """Lex and parse every file, reporting errors. Returns True if all OK."""
    ok = True
    for path in files:
        logger.debug("checking %s", path)
        try:
            _parse_file(path)
        except GudSyntaxError as e:
            _report(e, color)
            ok = False
    return ok


@click.group()
@click.version_option(__version__, prog_name="gudscript")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.option("--color/--no-color", default=None, help="Force colored diagnostics on or off.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, color: bool | None) -> None:
    """The GudScript language front end."""
    ctx.ensure_object(dict)
    ctx.obj["color"] = color
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def run(ctx: click.Context, file: str) -> None:
    """Print the input, its tokens and its AST."""
    path = Path(file)
    source = path.read_text(encoding="utf-8")
    click.echo(f"[*] Input:\n{source}\n")
    try:
        tokens = Lexer(source, file).lex()
        click.echo("[*] Tokens:\n")
        for tok in tokens:
            click.echo(str(tok))
        program = Parser(tokens).program()
    except GudSyntaxError as e:
        _report(e, _use_color(ctx, path))
        raise SystemExit(1)
    click.echo("[*] AST:\n")
    _dump_ast(program, 0)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def tokens(ctx: click.Context, file: str) -> None:
    """Print the tokens of a GudScript source file."""
    path = Path(file)
    source = path.read_text(encoding="utf-8")
    try:
        for tok in Lexer(source, file).tokenize():
            click.echo(str(tok))
    except GudSyntaxError as e:
        _report(e, _use_color(ctx, path))
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def view(ctx: click.Context, file: str) -> None:
    """View the AST of a GudScript source file."""
    path = Path(file)
    try:
        _, program = _parse_file(path)
    except GudSyntaxError as e:
        _report(e, _use_color(ctx, path))
        raise SystemExit(1)
    _dump_ast(program, 0)


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
@click.pass_context
def check(ctx: click.Context, path: str) -> None:
    """Syntax-check a GudScript project or file."""
    target = Path(path)
    color = _use_color(ctx, target)

    if target.is_file():
        files = [target]
        name = target.name
    else:
        try:
            config_path = find_config(target)
            config = load_config(config_path)
            name = config.package.name
            files = sorted(source_dir(config_path.parent, config).rglob("*.gud"))
        except FileNotFoundError:
            name = target.resolve().name
            files = sorted(target.rglob("*.gud"))

    click.echo(f"checking {name}...")
    if not files:
        click.echo("warning: no .gud files found", err=True)
        return
    if not _check_files(files, color):
        raise SystemExit(1)
    click.echo(f"checked {name}: {len(files)} file(s), no errors")


@main.command(name="format")
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--check", is_flag=True, help="Check formatting without modifying files.")
@click.option("--stdin", "use_stdin", is_flag=True, help="Read from stdin, write to stdout.")
@click.pass_context
def format_cmd(ctx: click.Context, path: str, check: bool, use_stdin: bool) -> None:
    """Format GudScript source files."""
    formatter = GudFormatter()
    color = _use_color(ctx, Path(path))

    if use_stdin:
        source = sys.stdin.read()
        try:
            program = Parser(Lexer(source, "<stdin>").lex()).program()
        except GudSyntaxError as e:
            _report(e, color)
            raise SystemExit(1)
        formatted = formatter.format(program)
        if check:
            if formatted != source:
                raise SystemExit(1)
        else:
            sys.stdout.write(formatted)
        return

    target = Path(path)
    gud_files = sorted(target.rglob("*.gud")) if target.is_dir() else [target]

    if not gud_files:
        click.echo("no .gud files found", err=True)
        return

    needs_formatting = False
    had_errors = False
    for gud_file in gud_files:
        source = gud_file.read_text(encoding="utf-8")
        try:
            _, program = _parse_file(gud_file)
        except GudSyntaxError as e:
            _report(e, color)
            had_errors = True
            continue

        formatted = formatter.format(program)
        if formatted != source:
            if check:
                click.echo(f"would reformat {gud_file}")
                needs_formatting = True
            else:
                gud_file.write_text(formatted, encoding="utf-8")
                click.echo(f"formatted {gud_file}")

    if had_errors or (check and needs_formatting):
        raise SystemExit(1)


@main.command()
def lsp() -> None:
    """Start the GudScript language server."""
    from gudscript.lsp import main as lsp_main

    lsp_main()


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name in ("span", "number_type"):
                continue
            value = getattr(node, field_name)
            if isinstance(value, list):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
