"""
scrut-markdown: test case extraction from Markdown test documents.

Documents describe shell sessions in fenced code blocks; the surrounding
headings and paragraphs name the tests.

CLI Usage:
    scrut-markdown tests/smoke.md

Library Usage:
    from pathlib import Path
    from scrut_markdown import parse_markdown

    content = Path("tests/smoke.md").read_text()
    config, testcases = parse_markdown(content)
    for testcase in testcases:
        print(testcase.line_number, testcase.title, testcase.shell_expression)
"""

__version__ = "0.1.0"

from .config import DocumentConfig, TestCaseConfig, TestCaseWait
from .exceptions import (
    BodyStructureError,
    ConfigParseError,
    MissingLanguageSpecifierError,
    ParseError,
)
from .headings import HeadingStack
from .models import Expectation, TestCase
from .parser import ParseFileError, parse_file, parse_markdown
from .tokenizer import MarkdownTokenizer, extract_code_block_start, extract_title

__all__ = [
    # Core functionality
    "parse_markdown",
    "parse_file",
    "MarkdownTokenizer",
    "extract_code_block_start",
    "extract_title",
    "HeadingStack",
    # Data models
    "DocumentConfig",
    "TestCaseConfig",
    "TestCaseWait",
    "Expectation",
    "TestCase",
    # Exceptions
    "BodyStructureError",
    "ConfigParseError",
    "MissingLanguageSpecifierError",
    "ParseError",
    "ParseFileError",
    # Version
    "__version__",
]
