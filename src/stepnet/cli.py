"""Command-line interface for the stepnet compiler."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from .config import (
    DEFAULT_SYNTAX_RULES,
    DEFAULT_VALIDATION_RULES,
    CrossReferenceMode,
    dump_rules,
    load_syntax_rules,
    load_validation_rules,
)
from .generate.netlist import GenerationError
from .generate.uid import IdScheme
from .parse.normalize import SourceKind, normalize_text
from .parse.validator import snapshot_registry
from .pipeline import ParseResult, compile_text, parse, summarize

logger = logging.getLogger(__name__)

_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


_RULE_OPTIONS = (
    click.option("--source", type=click.Choice([s.value for s in SourceKind]),
                 default=SourceKind.DIRECT_ENTRY.value, show_default=True,
                 help="Where the text came from; document-import enables extra cleanup"),
    click.option("--syntax-rules", "syntax_path", type=_FILE, help="Syntax rules JSON file"),
    click.option("--validation-rules", "validation_path", type=_FILE, help="Validation rules JSON file"),
    click.option("--strict-xrefs", is_flag=True, help="Unresolved cross-references are errors"),
    click.option("--verbose", "-v", is_flag=True, help="Verbose output"),
)


def _rule_options(func):
    """Options shared by every command that parses a program."""
    for option in reversed(_RULE_OPTIONS):
        func = option(func)
    return func


def _load_rules(syntax_path: Path | None, validation_path: Path | None, strict_xrefs: bool):
    try:
        syntax = load_syntax_rules(syntax_path) if syntax_path else DEFAULT_SYNTAX_RULES
        validation = load_validation_rules(validation_path) if validation_path else DEFAULT_VALIDATION_RULES
    except ValidationError as e:
        raise click.ClickException(f"invalid rules file: {e}") from e
    if strict_xrefs:
        xrefs = validation.cross_references.model_copy(update={"mode": CrossReferenceMode.STRICT})
        validation = validation.model_copy(update={"cross_references": xrefs})
    return syntax, validation


def _echo_diagnostics(label: str, result: ParseResult) -> None:
    for diag in result.errors:
        click.echo(f"{label}: error: {diag}", err=True)
    for diag in result.warnings:
        click.echo(f"{label}: warning: {diag}", err=True)


@click.group()
@click.version_option(package_name="stepnet")
def cli():
    """Compile REST/STEP step programs to TIA Portal FBD networks."""


@cli.command()
@click.argument("files", nargs=-1, required=True, type=_FILE)
@_rule_options
def check(files, source, syntax_path, validation_path, strict_xrefs, verbose):
    """Parse and validate FILES, reporting every diagnostic."""
    _setup_logging(verbose)
    syntax, validation = _load_rules(syntax_path, validation_path, strict_xrefs)

    texts = {path: _read(path) for path in files}
    # First pass collects every program so references between the files resolve.
    first = [parse(text, source, {"name": path.stem}, syntax_rules=syntax) for path, text in texts.items()]
    registry = snapshot_registry(r.program for r in first)

    results = []
    for path, text in texts.items():
        result = parse(
            text, source, {"name": path.stem},
            syntax_rules=syntax, validation_rules=validation, registry=registry,
        )
        _echo_diagnostics(str(path), result)
        stats = result.statistics
        click.echo(
            f"{path}: {result.program.name or '?'}: {stats.total_steps} steps, "
            f"{stats.total_conditions} conditions, {stats.total_variables} variables, "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        results.append(result)

    if len(results) > 1:
        summary = summarize(results)
        click.echo(
            f"total: {summary.programs} programs, {summary.total_steps} steps, "
            f"{summary.errors} errors, {summary.warnings} warnings"
        )
    if any(r.errors for r in results):
        sys.exit(1)


@cli.command(name="compile")
@click.argument("file", type=_FILE)
@click.option("--output", "-o", "output_file", type=click.Path(dir_okay=False, path_type=Path),
              help="Write XML here instead of stdout")
@click.option("--legacy-ids", is_flag=True, help="Use fixed per-network identifier bands")
@click.option("--instance-db", is_flag=True, help="Also emit the instance data block")
@click.option("--compact", is_flag=True, help="No indentation or newlines in the XML")
@click.option("--allow-errors", is_flag=True, help="Generate even when the program has errors")
@_rule_options
def compile_command(file, output_file, legacy_ids, instance_db, compact, allow_errors,
                    source, syntax_path, validation_path, strict_xrefs, verbose):
    """Compile FILE to Openness XML."""
    _setup_logging(verbose)
    syntax, validation = _load_rules(syntax_path, validation_path, strict_xrefs)
    try:
        result, xml = compile_text(
            _read(file), source, {"name": file.stem},
            syntax_rules=syntax,
            validation_rules=validation,
            pretty=not compact,
            id_scheme=IdScheme.LEGACY_BANDS if legacy_ids else IdScheme.MONOTONIC,
            include_instance_db=instance_db,
            allow_errors=allow_errors,
        )
    except GenerationError as e:
        click.echo(f"{file}: {e}", err=True)
        sys.exit(1)

    _echo_diagnostics(str(file), result)
    if output_file is None:
        click.echo(xml)
    else:
        output_file.write_text(xml, encoding="utf-8")
        click.echo(f"Wrote {output_file}", err=True)


@cli.command()
@click.argument("file", type=_FILE)
@click.option("--source", type=click.Choice([s.value for s in SourceKind]),
              default=SourceKind.DIRECT_ENTRY.value, show_default=True)
@click.option("--syntax-rules", "syntax_path", type=_FILE, help="Syntax rules JSON file")
def normalize(file, source, syntax_path):
    """Print FILE in canonical line layout."""
    syntax, _ = _load_rules(syntax_path, None, False)
    click.echo(normalize_text(_read(file), source, syntax))


@cli.command()
@click.option("--syntax", "which", flag_value="syntax", default=True, help="Default syntax rules")
@click.option("--validation", "which", flag_value="validation", help="Default validation rules")
def rules(which):
    """Print the default rule set as JSON."""
    click.echo(dump_rules(DEFAULT_SYNTAX_RULES if which == "syntax" else DEFAULT_VALIDATION_RULES))


def main():
    cli()


if __name__ == "__main__":
    main()
