"""Constants used across the scrut-markdown package."""

from __future__ import annotations

import re

# Markdown patterns
HEADER_LINE_PATTERN = re.compile(r"^(#+\s+)(.+)$")
PARAGRAPH_START_PATTERN = re.compile(r"^[^\W\d_]+")

CODE_FENCE_CHAR = "`"
CODE_FENCE = CODE_FENCE_CHAR * 3
FRONT_MATTER_DELIMITER = "---"

# Test body markers
COMMAND_PREFIX = "$ "
CONTINUATION_PREFIX = "> "
COMMENT_PREFIX = "#"
EXIT_CODE_PATTERN = re.compile(r"^\[(\d+)\]$")

# Heading stack
MAX_HEADING_LEVEL = 6
DEFAULT_COMPOSITE_TEST_NAME_SEPARATOR = " > "

DEFAULT_MARKDOWN_LANGUAGES = ("scrut",)
MARKDOWN_EXTENSIONS = (".md", ".markdown")
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024

# Expected-output rules
EXPECTATION_SUFFIX_PATTERN = re.compile(
    r"^(?P<expression>.*) \((?P<kind>[a-z-]*)(?P<quantifier>[?*+]?)\)$"
)
EXPECTATION_KINDS = {
    "equal": "equal",
    "eq": "equal",
    "no-eol": "no-eol",
    "escaped": "escaped",
    "esc": "escaped",
    "glob": "glob",
    "gl": "glob",
    "regex": "regex",
    "re": "regex",
}
