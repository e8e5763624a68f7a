"""bashtyped command line interface."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from bashtyped import __version__
from bashtyped.checker import Checker
from bashtyped.config import BashtypedConfig, load_nearest_config
from bashtyped.errors import DiagnosticRenderer, Severity
from bashtyped.source import SourceFile
from bashtyped.types import type_name


def _load_config(start: Path) -> BashtypedConfig:
    try:
        return load_nearest_config(start)
    except ValueError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


def _collect_scripts(paths: tuple[str, ...], extensions: list[str]) -> list[Path]:
    """Expand directories into the scripts they contain. Files pass through."""
    scripts: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            scripts.extend(sorted(
                p for p in path.rglob("*") if p.is_file() and p.suffix in extensions
            ))
        else:
            scripts.append(path)
    return scripts


def _check_file(path: Path, renderer: DiagnosticRenderer) -> tuple[Checker, SourceFile, bool]:
    """Check one script and echo its diagnostics. Returns (checker, source, had_errors)."""
    source = SourceFile.from_path(path)
    checker = Checker(source.name)
    checker.check(source.content)

    had_errors = False
    for diag in checker.diagnostics:
        click.echo(renderer.render(diag, source), err=True)
        if diag.severity == Severity.ERROR:
            had_errors = True
    return checker, source, had_errors


@click.group()
@click.version_option(__version__, prog_name="bashtyped")
@click.option("-v", "--verbose", is_flag=True, help="Log checker decisions to stderr.")
def main(verbose: bool) -> None:
    """Type-check shell scripts against their comment annotations."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("--color/--no-color", default=True, help="Colorize diagnostics.")
def check(paths: tuple[str, ...], color: bool) -> None:
    """Check shell scripts, or every script under the given directories."""
    targets = paths or (".",)
    config = _load_config(Path(targets[0]))
    scripts = _collect_scripts(targets, config.check.extensions)
    if not scripts:
        click.echo("warning: no shell scripts found", err=True)
        return

    renderer = DiagnosticRenderer(color=color, colors=config.colors)
    failed = 0
    for script in scripts:
        _, _, had_errors = _check_file(script, renderer)
        if had_errors:
            failed += 1

    if failed:
        click.echo(f"{failed} of {len(scripts)} file(s) had errors", err=True)
        raise SystemExit(1)
    click.echo(f"checked {len(scripts)} file(s), no errors")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--color/--no-color", default=True, help="Colorize diagnostics.")
def types(file: str, color: bool) -> None:
    """Show the type bound to each variable in a script."""
    path = Path(file)
    config = _load_config(path)
    renderer = DiagnosticRenderer(color=color, colors=config.colors)
    checker, source, had_errors = _check_file(path, renderer)

    for name, decl in checker.variables.as_dict().items():
        line, col = source.location(decl.span.start)
        click.echo(
            f"{name}: {type_name(decl.bash_type)} "
            f"({decl.method.value} at {source.name}:{line}:{col})"
        )

    if had_errors:
        raise SystemExit(1)


@main.command()
def lsp() -> None:
    """Start the bashtyped language server."""
    from bashtyped.lsp import main as lsp_main

    lsp_main()
