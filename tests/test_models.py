import pytest

from scrut_markdown.config import TestCaseConfig
from scrut_markdown.models import (
    Expectation,
    NumberedLine,
    TestBlock,
    TestCase,
    decode_escaped,
    join_lines,
)


def test_numbered_line_unpacks_as_tuple():
    index, text = NumberedLine(3, "hello")

    assert index == 3
    assert text == "hello"


def test_join_lines():
    assert join_lines([NumberedLine(0, "a"), NumberedLine(4, "b")]) == "a\nb"
    assert join_lines([]) == ""


def test_testcase_defaults():
    testcase = TestCase(title="Title", shell_expression="true")

    assert testcase.expectations == []
    assert testcase.exit_code is None
    assert testcase.line_number == 0
    assert testcase.config == TestCaseConfig.empty()


def test_test_block_is_immutable():
    block = TestBlock(0, "scrut", [], [], [NumberedLine(1, "$ true")])

    with pytest.raises(AttributeError):
        block.language = "bash"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("plain", "plain"),
        ("a\\tb", "a\tb"),
        ("\\x1b[1m", "\x1b[1m"),
        ("café\\n", "café\n"),
    ],
)
def test_decode_escaped(expression: str, expected: str):
    assert decode_escaped(expression) == expected


def test_expectation_with_unknown_kind():
    with pytest.raises(ValueError):
        Expectation("fuzzy", "text").matches("text")


def test_testcase_is_immutable():
    testcase = TestCase(title="Title", shell_expression="true")

    with pytest.raises(AttributeError):
        testcase.title = "Other"  # type: ignore[misc]
