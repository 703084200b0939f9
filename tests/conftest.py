import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Click runner for invoking the scrut-markdown command."""
    return CliRunner()


@pytest.fixture()
def write_document(tmp_path: Path):
    """Write a dedented Markdown document into the temporary directory."""

    def _write(content: str, filename: str = "sample.md") -> Path:
        path = tmp_path / filename
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write
