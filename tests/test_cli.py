from __future__ import annotations

import json
import textwrap
from pathlib import Path

from scrut_markdown import __version__
from scrut_markdown.cli import cli


def _write(tmp_path: Path, filename: str, content: str) -> Path:
    path = tmp_path / filename
    path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
    return path


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


SMOKE_DOCUMENT = """
    # Smoke tests

    ```scrut
    $ echo hello
    hello
    ```

    Multi-line command

    ```scrut {timeout: 5s}
    $ printf '%s\\n' \\
    >   one two
    one
    two
    [0]
    ```
    """


def test_cli_lists_testcases(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "smoke.md", SMOKE_DOCUMENT)

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    assert result.output == (
        "smoke.md:4: Smoke tests\n"
        "    $ echo hello\n"
        "smoke.md:11: Multi-line command\n"
        "    $ printf '%s\\n' \\\n"
        "    >   one two\n"
    )


def test_cli_prints_json(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(
        tmp_path,
        "smoke.md",
        """
        ---
        shell: /bin/bash
        total_timeout: 1m
        ---

        # Smoke tests

        ```scrut {timeout: 5s}
        $ echo hello
        hello (glob)
        ```
        """,
    )

    result = cli_runner.invoke(cli, ["--json", str(target)])

    assert result.exit_code == 0
    document = json.loads(result.output)
    assert document["config"]["shell"] == "/bin/bash"
    assert document["config"]["total_timeout"] == 60.0
    (testcase,) = document["testcases"]
    assert testcase["title"] == "Smoke tests"
    assert testcase["shell_expression"] == "echo hello"
    assert testcase["line_number"] == 9
    assert testcase["config"]["timeout"] == 5.0
    assert testcase["config"]["output_stream"] == "stdout"
    assert testcase["expectations"] == [
        {"kind": "glob", "expression": "hello", "optional": False, "multiline": False}
    ]


def test_cli_prints_nothing_without_testcases(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "prose.md", "# Only prose\n\nNothing to run here.\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    assert result.output == ""


def test_cli_labels_untitled_testcases(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "bare.md", "```scrut\n$ true\n```\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    assert result.output.startswith("bare.md:2: (untitled)\n")


def test_cli_language_option_overrides_languages(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(
        tmp_path,
        "languages.md",
        """
        Scrut block

        ```scrut
        $ echo scrut
        ```

        Testcase block

        ```testcase
        $ echo testcase
        ```
        """,
    )

    result = cli_runner.invoke(cli, ["--language", "testcase", str(target)])

    assert result.exit_code == 0
    assert "echo testcase" in result.output
    assert "echo scrut" not in result.output


def test_cli_reads_languages_from_pyproject(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.scrut-markdown]
        languages = ["scrut", "testcase"]

        [tool.scrut-markdown.defaults]
        timeout = "30s"
        """,
    )
    target = _write(
        tmp_path,
        "configured.md",
        """
        First

        ```scrut
        $ echo one
        ```

        Second

        ```testcase
        $ echo two
        ```
        """,
    )

    result = cli_runner.invoke(cli, ["--json", str(target)])

    assert result.exit_code == 0
    testcases = json.loads(result.output)["testcases"]
    assert [testcase["shell_expression"] for testcase in testcases] == ["echo one", "echo two"]
    assert all(testcase["config"]["timeout"] == 30.0 for testcase in testcases)


def test_cli_reports_invalid_tool_config(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.scrut-markdown]
        languages = []
        """,
    )
    target = _write(tmp_path, "doc.md", "# Title\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "`languages` must be a non-empty list" in result.output


def test_cli_reports_missing_language_specifier(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(
        tmp_path,
        "missing.md",
        """
        Title

        ```
        $ echo hello
        ```
        """,
    )

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 1
    assert "without language specifier at line 3" in result.output


def test_cli_reports_invalid_inline_config(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "broken.md", "```scrut {timeout: whenever}\n$ true\n```\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 1
    assert "line 1" in result.output


def test_cli_rejects_non_markdown_files(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "notes.txt", "# Heading\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "not a Markdown file" in result.output


def test_cli_rejects_files_outside_working_directory(cli_runner, tmp_path, monkeypatch):
    workdir = tmp_path / "workdir"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    target = _write(tmp_path, "outside.md", "# Heading\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "outside of the working directory" in result.output


def test_cli_rejects_symlinks(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "real.md", "# Heading\n")
    link = tmp_path / "link.md"
    link.symlink_to(target)

    result = cli_runner.invoke(cli, [str(link)])

    assert result.exit_code != 0
    assert "Symlinks are not supported" in result.output


def test_cli_enforces_size_limit_from_environment(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SCRUT_MARKDOWN_MAX_FILE_SIZE", "16")
    target = _write(tmp_path, "large.md", SMOKE_DOCUMENT)

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 1
    assert "exceeds the maximum allowed size of 16 bytes" in result.output


def test_cli_enforces_size_limit_from_pyproject(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SCRUT_MARKDOWN_MAX_FILE_SIZE", raising=False)
    _write_pyproject(
        tmp_path,
        """
        [tool.scrut-markdown]
        max_file_size = 8
        """,
    )
    target = _write(tmp_path, "large.md", SMOKE_DOCUMENT)

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 1
    assert "exceeds the maximum allowed size of 8 bytes" in result.output


def test_cli_rejects_invalid_size_environment(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SCRUT_MARKDOWN_MAX_FILE_SIZE", "lots")
    target = _write(tmp_path, "doc.md", "# Heading\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 1
    assert "Invalid value for SCRUT_MARKDOWN_MAX_FILE_SIZE" in result.output


def test_cli_version(cli_runner):
    result = cli_runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
