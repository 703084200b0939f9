"""Accumulation of test block bodies into test cases."""

from __future__ import annotations

from .config import TestCaseConfig
from .constants import COMMAND_PREFIX, COMMENT_PREFIX, CONTINUATION_PREFIX, EXIT_CODE_PATTERN
from .exceptions import BodyStructureError
from .expectations import make_expectation
from .models import Expectation, TestCase


def is_comment(line: str) -> bool:
    """Return True for comment lines that may precede the command of a test."""
    return line.startswith(COMMENT_PREFIX)


def _strip_marker(line: str, prefix: str) -> str | None:
    # Accepts both "$ cmd" and a bare "$".
    if line.startswith(prefix):
        return line[len(prefix) :]
    if line == prefix.rstrip():
        return ""
    return None


class LineParser:
    """Collect the body lines of test blocks and turn them into test cases.

    A body starts with a command line (``$ cmd``), optionally followed by
    continuation lines (``> more``). Everything after that is expected output,
    except a final ``[N]`` line that sets the expected exit code.

    The title set with `set_testcase_title` stays in effect for every
    following test case until it is replaced. The configuration set with
    `set_testcase_config` applies to the next finished test case only.

    Attributes:
        testcases: Finished test cases, in document order.
    """

    def __init__(self) -> None:
        self.testcases: list[TestCase] = []
        self._title = ""
        self._config = TestCaseConfig.empty()
        self._reset_body()

    def _reset_body(self) -> None:
        self._command_lines: list[str] = []
        self._command_index: int | None = None
        self._accepts_continuation = False
        self._expectations: list[Expectation] = []
        self._exit_code: int | None = None

    def set_testcase_title(self, title: str) -> None:
        self._title = title

    def set_testcase_config(self, config: TestCaseConfig) -> None:
        self._config = config

    def add_testcase_body(self, line: str, index: int) -> None:
        """Add one body line of the current test block.

        Args:
            line: Raw line text.
            index: Zero-based document index of the line.

        Raises:
            BodyStructureError: If output precedes the command, a line follows
                the exit code, or an expectation is invalid.
        """
        if self._exit_code is not None:
            raise BodyStructureError(index + 1, "no lines may follow the exit code")

        if self._command_index is None:
            command = _strip_marker(line, COMMAND_PREFIX)
            if command is None:
                raise BodyStructureError(
                    index + 1, f"expected a command starting with `{COMMAND_PREFIX}` before any output"
                )
            self._command_index = index
            self._command_lines.append(command)
            self._accepts_continuation = True
            return

        if self._accepts_continuation:
            continuation = _strip_marker(line, CONTINUATION_PREFIX)
            if continuation is not None:
                self._command_lines.append(continuation)
                return
            self._accepts_continuation = False

        exit_code_match = EXIT_CODE_PATTERN.match(line)
        if exit_code_match:
            self._exit_code = int(exit_code_match.group(1))
            return

        self._expectations.append(make_expectation(line, index))

    def end_testcase(self, index: int) -> TestCase:
        """Finish the current test case.

        Args:
            index: Zero-based document index of the last line of the block.

        Returns:
            TestCase: The finished test case, also appended to `testcases`.

        Raises:
            BodyStructureError: If no command was added since the last test case.
        """
        if self._command_index is None:
            self._reset_body()
            raise BodyStructureError(index + 1, "test block does not contain a command")

        testcase = TestCase(
            title=self._title,
            shell_expression="\n".join(self._command_lines),
            expectations=self._expectations,
            exit_code=self._exit_code,
            line_number=self._command_index + 1,
            config=self._config,
        )
        self.testcases.append(testcase)
        self._config = TestCaseConfig.empty()
        self._reset_body()
        return testcase
