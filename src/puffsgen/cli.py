"""puffs-gen-c command line interface."""

from __future__ import annotations

import logging
import sys
import tomllib
from pathlib import Path

import click

from puffsgen import __version__
from puffsgen.config import GenConfig, find_config, load_config
from puffsgen.errors import CompileError, DiagnosticRenderer


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


def _load_config(config_path: str | None) -> GenConfig:
    if config_path is not None:
        return load_config(Path(config_path))
    try:
        return load_config(find_config())
    except FileNotFoundError:
        return GenConfig()


def _read_sources(files: tuple[str, ...]) -> list[tuple[str, str]]:
    if not files:
        return [("<stdin>", sys.stdin.read())]
    return [(f, Path(f).read_text()) for f in files]


@click.group()
@click.version_option(__version__, prog_name="puffs-gen-c")
@click.option("-v", "--verbose", is_flag=True, help="Log pipeline progress.")
def main(verbose: bool) -> None:
    """Transpile checked Puffs ASTs to C."""
    _setup_logging(verbose)


@main.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None,
              help="Write the C source here instead of stdout.")
@click.option("--package", "package_name", default=None,
              help="Override the package name.")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Path to puffsgen.toml.")
@click.option("--no-format", is_flag=True, help="Skip the external formatter.")
def gen(
    files: tuple[str, ...],
    output: str | None,
    package_name: str | None,
    config_path: str | None,
    no_format: bool,
) -> None:
    """Generate C from FILES (JSON ASTs), or from stdin if none are given."""
    from puffsgen.builder import generate

    try:
        config = _load_config(config_path)
    except tomllib.TOMLDecodeError as e:
        click.echo(f"error: invalid config: {e}", err=True)
        raise SystemExit(1)
    if no_format:
        config.format.enabled = False

    result = generate(_read_sources(files), config, package_name=package_name)

    renderer = DiagnosticRenderer(color=sys.stderr.isatty())
    for diag in result.diagnostics:
        click.echo(renderer.render(diag), err=True)

    if not result.ok or result.output is None:
        raise SystemExit(1)

    if output is None:
        click.echo(result.output, nl=False)
    else:
        Path(output).write_text(result.output)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def view(file: str) -> None:
    """View the decoded AST of a JSON AST file."""
    from puffsgen.loader import Loader

    loader = Loader()
    try:
        _, decoded = loader.load_file(Path(file).read_text(), file)
    except CompileError as e:
        renderer = DiagnosticRenderer(color=sys.stderr.isatty())
        for diag in e.diagnostics:
            click.echo(renderer.render(diag), err=True)
        raise SystemExit(1)

    _dump_ast(decoded, 0, loader)


def _dump_ast(node: object, depth: int, loader) -> None:
    """Print a readable AST dump, with identifiers resolved."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name == "span":
                continue
            value = getattr(node, field_name)
            if isinstance(value, tuple):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ast(item, depth + 2, loader)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2, loader)
            elif field_name in ("name", "field", "receiver", "label") and value:
                click.echo(f"{indent}  {field_name}: {loader.ids.name(value)}")
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
