"""Line classification and tokenization of Markdown test documents."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .constants import (
    CODE_FENCE,
    CODE_FENCE_CHAR,
    FRONT_MATTER_DELIMITER,
    HEADER_LINE_PATTERN,
    PARAGRAPH_START_PATTERN,
)
from .lines import is_comment
from .models import FrontMatter, NumberedLine, PlainLine, TestBlock, Token, VerbatimBlock

logger = logging.getLogger(__name__)


def iter_numbered_lines(content: str) -> Iterator[NumberedLine]:
    """Yield the lines of a document with their zero-based index.

    Lines are split on ``\\n`` with a trailing ``\\r`` removed. A final line
    ending does not produce an additional empty line.

    Examples:
        list(iter_numbered_lines("a\\r\\nb\\n"))  # [(0, "a"), (1, "b")]
    """
    if not content:
        return
    lines = content.split("\n")
    if content.endswith("\n"):
        lines.pop()
    for index, line in enumerate(lines):
        if line.endswith("\r"):
            line = line[:-1]
        yield NumberedLine(index, line)


def extract_code_block_start(line: str) -> tuple[str, str, str] | None:
    """Detect the opening line of a fenced code block.

    The fence is the leading run of backticks. What follows is the language
    tag, optionally followed by an inline configuration starting at ``{``.
    The first non-backtick character must sit at index 2 or later, so a run
    of two backticks is already accepted as a fence here.

    Args:
        line: A single document line, without line ending.

    Returns:
        tuple[str, str, str] | None: The fence marker, the language tag and
            the inline configuration text (braces included), or None when the
            line does not open a block.

    Examples:
        extract_code_block_start("```scrut")  # ("```", "scrut", "")
        extract_code_block_start("```scrut {timeout: 3s}")  # ("```", "scrut", "{timeout: 3s}")
        extract_code_block_start("```")  # ("```", "", "")
        extract_code_block_start("`x")  # None
    """
    if line == CODE_FENCE:
        return line, "", ""

    language_start = None
    for index, character in enumerate(line):
        if language_start is not None:
            if character == "{":
                return (
                    line[:language_start],
                    line[language_start:index].rstrip(),
                    line[index:],
                )
        elif character != CODE_FENCE_CHAR:
            if index < 2:
                return None
            language_start = index

    if language_start is None:
        return None
    return line[:language_start], line[language_start:], ""


def extract_title(line: str) -> tuple[str, str, int] | None:
    """Classify a line as a heading, paragraph text, or neither.

    Args:
        line: A document line; surrounding whitespace is ignored.

    Returns:
        tuple[str, str, int] | None: The heading prefix, the title text and
            the heading level (number of ``#``, or 0 for paragraph text), or
            None when the line cannot contribute to a title.

    Examples:
        extract_title("## Setup")  # ("## ", "Setup", 2)
        extract_title("Some text")  # ("", "Some text", 0)
        extract_title("- item")  # None
    """
    line = line.strip()
    header_match = HEADER_LINE_PATTERN.match(line)
    if header_match:
        prefix = header_match.group(1)
        return prefix, header_match.group(2), prefix.count("#")
    if PARAGRAPH_START_PATTERN.match(line):
        return "", line, 0
    return None


class _EndOfInput(Exception):
    """Signals that the document ended inside a multi-line token."""


class MarkdownTokenizer:
    """Iterate over the tokens of a Markdown test document.

    Produces `FrontMatter`, `PlainLine`, `VerbatimBlock` and `TestBlock`
    tokens lazily. Front matter is only recognized before any other content.
    A block opened with a fence is closed by the first line starting with the
    same fence, which lets a longer fence enclose shorter ones. When the
    document ends inside front matter or a code block, the incomplete token
    is dropped and iteration stops.

    Args:
        languages: Code block languages that mark a block as a test.
        lines: Numbered document lines, consumed once.

    Examples:
        tokens = list(MarkdownTokenizer(["scrut"], iter_numbered_lines(text)))
    """

    def __init__(self, languages: Iterable[str], lines: Iterable[NumberedLine]):
        self.languages = frozenset(languages)
        self._lines = iter(lines)
        self._content_start = False
        self._exhausted = False

    def __iter__(self) -> MarkdownTokenizer:
        return self

    def __next__(self) -> Token:
        if self._exhausted:
            raise StopIteration
        try:
            line = next(self._lines)
        except StopIteration:
            self._exhausted = True
            raise

        try:
            return self._read_token(line)
        except _EndOfInput:
            self._exhausted = True
            logger.debug("document ended inside block opened at line %d", line.index + 1)
            raise StopIteration from None

    def _next_line(self) -> NumberedLine:
        try:
            return next(self._lines)
        except StopIteration:
            raise _EndOfInput from None

    def _read_token(self, line: NumberedLine) -> Token:
        if not self._content_start and line.text == FRONT_MATTER_DELIMITER:
            return self._read_front_matter()

        code_block_start = extract_code_block_start(line.text)
        if code_block_start is not None:
            self._content_start = True
            fence, language, config = code_block_start
            if language not in self.languages:
                return self._read_verbatim_block(line, fence, language)
            return self._read_test_block(line, fence, language, config)

        if line.text.strip():
            self._content_start = True
        return PlainLine(line.index, line.text)

    def _read_front_matter(self) -> FrontMatter:
        config_lines: list[NumberedLine] = []
        line = self._next_line()
        while line.text != FRONT_MATTER_DELIMITER:
            config_lines.append(line)
            line = self._next_line()
        return FrontMatter(config_lines)

    def _read_verbatim_block(self, start: NumberedLine, fence: str, language: str) -> VerbatimBlock:
        lines = [start.text]
        line = self._next_line()
        while not line.text.startswith(fence):
            lines.append(line.text)
            line = self._next_line()
        lines.append(line.text)
        return VerbatimBlock(start.index, language, lines)

    def _read_test_block(
        self, start: NumberedLine, fence: str, language: str, config: str
    ) -> TestBlock:
        config_lines: list[NumberedLine] = []
        if config.startswith("{") and config.endswith("}") and len(config) > 2:
            config_lines.append(NumberedLine(start.index, config[1:-1]))

        line = self._next_line()
        comment_lines: list[NumberedLine] = []
        while is_comment(line.text):
            comment_lines.append(line)
            line = self._next_line()

        code_lines: list[NumberedLine] = []
        while not line.text.startswith(fence):
            code_lines.append(line)
            line = self._next_line()

        return TestBlock(start.index, language, config_lines, comment_lines, code_lines)
