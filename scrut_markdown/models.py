"""Data models for scrut-markdown."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import NamedTuple, Union

from .config import TestCaseConfig


class NumberedLine(NamedTuple):
    """A document line together with its zero-based position."""

    index: int
    text: str


def join_lines(lines: list[NumberedLine]) -> str:
    """Join the text of numbered lines with newlines."""
    return "\n".join(line.text for line in lines)


@dataclass(frozen=True)
class PlainLine:
    """Any line outside of front matter and code blocks."""

    index: int
    text: str


@dataclass(frozen=True)
class FrontMatter:
    """Raw configuration lines found between the two front-matter delimiters."""

    lines: list[NumberedLine]


@dataclass(frozen=True)
class VerbatimBlock:
    """A code block that is not a test.

    Attributes:
        start_index: Zero-based index of the opening fence line.
        language: Language tag of the block, possibly empty.
        lines: All lines of the block, including both fence lines.
    """

    start_index: int
    language: str
    lines: list[str]


@dataclass(frozen=True)
class TestBlock:
    """A code block written in one of the recognized test languages.

    Attributes:
        start_index: Zero-based index of the opening fence line.
        language: Language tag that marked the block as a test.
        config_lines: Inline configuration from the opening fence, braces stripped.
        comment_lines: Leading comment lines preceding the command.
        code_lines: Remaining body lines up to the closing fence.
    """

    __test__ = False

    start_index: int
    language: str
    config_lines: list[NumberedLine]
    comment_lines: list[NumberedLine]
    code_lines: list[NumberedLine]


Token = Union[PlainLine, FrontMatter, VerbatimBlock, TestBlock]


@dataclass(frozen=True)
class Expectation:
    """A rule matching one or more lines of command output.

    Attributes:
        kind: One of ``equal``, ``no-eol``, ``escaped``, ``glob`` or ``regex``.
        expression: Text the rule is built from, without its kind suffix.
        optional: Whether the rule may match zero lines.
        multiline: Whether the rule may match more than one line.
    """

    kind: str
    expression: str
    optional: bool = False
    multiline: bool = False

    def matches(self, line: str) -> bool:
        """Check a single output line (without its line ending) against the rule.

        Examples:
            Expectation("glob", "hello *").matches("hello world")  # True
        """
        if self.kind in ("equal", "no-eol"):
            return line == self.expression
        if self.kind == "escaped":
            return line == decode_escaped(self.expression)
        if self.kind == "glob":
            return fnmatchcase(line, self.expression)
        if self.kind == "regex":
            return re.fullmatch(self.expression, line) is not None
        raise ValueError(f"Unknown expectation kind: {self.kind}")


def decode_escaped(expression: str) -> str:
    """Resolve backslash escape sequences such as ``\\t`` or ``\\x1b``."""
    return expression.encode("latin-1", "backslashreplace").decode("unicode_escape")


@dataclass(frozen=True)
class TestCase:
    """A single test extracted from a document.

    Attributes:
        title: Human-readable title derived from surrounding headings and text.
        shell_expression: Command to run, continuation lines joined by newlines.
        expectations: Rules for the expected output, in order.
        exit_code: Expected exit code, or None when unspecified.
        line_number: One-based line of the command in the document.
        config: Fully merged configuration for the test.
    """

    __test__ = False

    title: str
    shell_expression: str
    expectations: list[Expectation] = field(default_factory=list)
    exit_code: int | None = None
    line_number: int = 0
    config: TestCaseConfig = field(default_factory=TestCaseConfig)
