"""
Lists the test cases defined in a Markdown test document.
Prints one entry per test case, or the full parse result as JSON.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path

import click

from . import __version__
from .config import ConfigError, DocumentConfig, build_config
from .filesystem import enforce_file_size, get_max_file_size, resolve_document_path
from .models import TestCase
from .parser import ParseFileError, parse_file

__all__ = ["cli"]


def _json_default(value: object) -> object:
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def render_json(config: DocumentConfig, testcases: list[TestCase]) -> str:
    """Serialize a parse result, durations in seconds and paths as strings."""
    document = {
        "config": dataclasses.asdict(config),
        "testcases": [dataclasses.asdict(testcase) for testcase in testcases],
    }
    return json.dumps(document, indent=2, default=_json_default)


def render_listing(filepath: Path, testcases: list[TestCase]) -> list[str]:
    """Render one location line per test case followed by its command."""
    lines = []
    for testcase in testcases:
        title = " ".join(testcase.title.splitlines()) or "(untitled)"
        lines.append(f"{filepath.name}:{testcase.line_number}: {title}\n")
        for position, command in enumerate(testcase.shell_expression.split("\n")):
            marker = "$" if position == 0 else ">"
            lines.append(f"    {marker} {command}\n")
    return lines


@click.command()
@click.version_option(version=__version__)
@click.option(
    "-l",
    "--language",
    "languages",
    multiple=True,
    help="Code block language that marks a test (repeatable)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the parse result as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def cli(
    filepath: str,
    languages: tuple[str, ...] = (),
    as_json: bool = False,
    verbose: bool = False,
):
    """
    Entry point for listing the test cases of a Markdown document.

    Args:
        filepath: Path to the Markdown document to parse.
        languages: Override for the code block languages that mark a test.
        as_json: Print the document configuration and test cases as JSON.
        verbose: Log parser progress to stderr.

    Returns:
        None.

    Raises:
        click.BadParameter: If the path or the configuration is invalid.
        click.ClickException: If the document is too large or fails to parse.

    Examples:
        scrut-markdown tests/smoke.md --language scrut --json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    base_dir = Path.cwd().resolve()
    try:
        document_path = resolve_document_path(filepath, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error

    try:
        config = build_config(document_path.parent, languages=list(languages) or None)
        base_config = config.base_testcase_config()
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
        enforce_file_size(document_path, max_file_size)
    except (ValueError, IOError) as error:
        raise click.ClickException(str(error)) from error

    try:
        document_config, testcases = parse_file(document_path, config.languages, base_config)
    except ParseFileError as error:
        raise click.ClickException(str(error)) from error

    if as_json:
        click.echo(render_json(document_config, testcases))
    else:
        click.echo("".join(render_listing(document_path, testcases)), nl=False)


if __name__ == "__main__":
    cli()
