"""Extraction of test cases from Markdown documents."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from .config import DocumentConfig, TestCaseConfig
from .constants import DEFAULT_MARKDOWN_LANGUAGES
from .exceptions import MissingLanguageSpecifierError, ParseError
from .filesystem import safe_read
from .headings import HeadingStack
from .lines import LineParser
from .models import FrontMatter, PlainLine, TestBlock, TestCase, VerbatimBlock, join_lines
from .tokenizer import MarkdownTokenizer, extract_title, iter_numbered_lines

logger = logging.getLogger(__name__)


def parse_markdown(
    content: str,
    languages: Iterable[str] = DEFAULT_MARKDOWN_LANGUAGES,
    base_config: TestCaseConfig | None = None,
) -> tuple[DocumentConfig, list[TestCase]]:
    """Parse a Markdown document into its configuration and test cases.

    Code blocks tagged with one of `languages` become test cases; blocks with
    any other language tag are skipped. The title of each test comes from the
    headings and paragraph text above it. Per-test configuration is merged
    over the document defaults from the front matter, which are merged over
    `base_config`.

    Args:
        content: The markdown content to parse.
        languages: Code block languages that mark a block as a test.
        base_config: Lowest tier of the per-test configuration cascade.
            Defaults to `TestCaseConfig.default_markdown()`.

    Returns:
        tuple[DocumentConfig, list[TestCase]]: The document configuration and
            the test cases in document order.

    Raises:
        MissingLanguageSpecifierError: If a code block has no language tag.
        ConfigParseError: If the front matter or an inline configuration is invalid.
        BodyStructureError: If the body of a test block is invalid.

    Examples:
        config, testcases = parse_markdown("Title\\n\\n```scrut\\n$ echo hi\\nhi\\n```\\n")
    """
    languages = tuple(languages)
    if base_config is None:
        base_config = TestCaseConfig.default_markdown()
    logger.debug(
        "parsing markdown document, looking for code blocks with language `%s`",
        "` or `".join(languages),
    )

    tokenizer = MarkdownTokenizer(languages, iter_numbered_lines(content))
    line_parser = LineParser()
    heading_stack = HeadingStack()
    config = DocumentConfig.default_markdown()
    has_title_since_break = False

    for token in tokenizer:
        if isinstance(token, FrontMatter):
            first_line = token.lines[0].index + 1 if token.lines else 1
            parsed = DocumentConfig.from_yaml(join_lines(token.lines), first_line)
            config = config.with_overrides_from(parsed)

        elif isinstance(token, PlainLine):
            title = extract_title(token.text)
            if title is not None:
                _, text, level = title
                if level > 0:
                    heading_stack.set_heading(level, text)
                else:
                    heading_stack.add_paragraph(text)
                has_title_since_break = True
                line_parser.set_testcase_title(
                    heading_stack.build_title(
                        config.use_composite_test_names(),
                        config.get_composite_test_name_separator(),
                    )
                )
            elif has_title_since_break:
                # The title already handed to the line parser stays in effect.
                heading_stack.clear_paragraph()
                has_title_since_break = False

        elif isinstance(token, VerbatimBlock):
            if not token.language:
                raise MissingLanguageSpecifierError(token.start_index + 1)

        elif isinstance(token, TestBlock):
            if token.config_lines:
                parsed_config = TestCaseConfig.from_yaml(
                    "{" + join_lines(token.config_lines) + "}",
                    token.config_lines[0].index + 1,
                )
            else:
                parsed_config = TestCaseConfig.empty()
            line_parser.set_testcase_config(
                parsed_config.with_defaults_from(config.defaults).with_defaults_from(base_config)
            )
            for index, line in token.code_lines:
                line_parser.add_testcase_body(line, index)
            last_index = token.code_lines[-1].index if token.code_lines else token.start_index
            line_parser.end_testcase(last_index)
            heading_stack.clear_after_test()
            has_title_since_break = False

    logger.debug("found %d testcases in markdown document", len(line_parser.testcases))
    return config, line_parser.testcases


class ParseFileError(Exception):
    """Raised when parsing a Markdown file fails."""


def parse_file(
    filepath: Path,
    languages: Iterable[str] | None = None,
    base_config: TestCaseConfig | None = None,
) -> tuple[DocumentConfig, list[TestCase]]:
    """Parse a Markdown file into its configuration and test cases.

    Args:
        filepath: Path to the markdown file to parse.
        languages: Code block languages that mark a block as a test; defaults
            to the toolkit's single test language.
        base_config: Lowest tier of the per-test configuration cascade.

    Returns:
        tuple[DocumentConfig, list[TestCase]]: The document configuration and
            the test cases in document order.

    Raises:
        ParseFileError: If the file cannot be read or decoded, or its content
            fails to parse.

    Examples:
        config, testcases = parse_file(Path("tests/smoke.md"))
    """
    try:
        with safe_read(filepath) as file:
            content = file.read()
    except UnicodeDecodeError as error:
        error_message = f"Invalid UTF-8 sequence in {filepath}: {error}"
        raise ParseFileError(error_message) from error
    except IOError as error:
        raise ParseFileError(str(error)) from error

    try:
        return parse_markdown(
            content,
            languages=DEFAULT_MARKDOWN_LANGUAGES if languages is None else languages,
            base_config=base_config,
        )
    except MissingLanguageSpecifierError as error:
        error_message = (
            f"{filepath} contains a code block without language specifier "
            f"at line {error.line_number}."
        )
        raise ParseFileError(error_message) from error
    except ParseError as error:
        error_message = f"{filepath}: {error}"
        raise ParseFileError(error_message) from error
