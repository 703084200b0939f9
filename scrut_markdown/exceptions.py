"""Package-specific exception types."""

from __future__ import annotations


class ParseError(ValueError):
    """Base class for parsing-related errors.

    Represents errors encountered while turning a Markdown document into test
    cases. Every subclass aborts the parse of the whole document.
    """


class MissingLanguageSpecifierError(ParseError):
    """Raised when a non-test code block has no language tag.

    Args:
        line_number: One-based index of the opening fence line.
    """

    def __init__(self, line_number: int):
        self.line_number = line_number
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return (
            f"Code block starting at line {self.line_number} is missing language specifier. "
            "Use ```scrut to make this block a test, or any other language to skip this block."
        )


class ConfigParseError(ParseError):
    """Raised when a front-matter or inline configuration fragment is invalid.

    Args:
        line_number: One-based index of the first line of the fragment.
        fragment: Raw text of the fragment.
        reason: Description of what went wrong.
    """

    def __init__(self, line_number: int, fragment: str, reason: str):
        self.line_number = line_number
        self.fragment = fragment
        self.reason = reason
        super().__init__(f"Invalid configuration at line {line_number}: {reason}\n{fragment}")


class BodyStructureError(ParseError):
    """Raised when the body of a test block is structurally invalid.

    Args:
        line_number: One-based index of the offending line.
        reason: Description of what went wrong.
    """

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Line {line_number}: {reason}")
