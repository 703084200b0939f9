"""Translation of expected-output lines into expectation rules."""

from __future__ import annotations

import re

from .constants import EXPECTATION_KINDS, EXPECTATION_SUFFIX_PATTERN
from .exceptions import BodyStructureError
from .models import Expectation, decode_escaped


def make_expectation(line: str, index: int) -> Expectation:
    """Build the expectation described by one expected-output line.

    A trailing ``(kind)`` suffix selects how the line is matched; a ``?``,
    ``*`` or ``+`` after the kind (or alone in the parentheses) makes the rule
    optional, optional and multiline, or multiline. Lines without a known
    suffix must be matched exactly.

    Args:
        line: The expected-output line from the test body.
        index: Zero-based document index of the line, used for errors.

    Returns:
        Expectation: The rule for the line.

    Raises:
        BodyStructureError: If a regular expression does not compile or an
            escaped expression holds an invalid escape sequence.

    Examples:
        make_expectation("hello", 4)  # Expectation("equal", "hello")
        make_expectation("ab+c (re)", 4)  # Expectation("regex", "ab+c")
        make_expectation("log line (glob*)", 4)  # optional multiline glob
    """
    suffix_match = EXPECTATION_SUFFIX_PATTERN.match(line)
    if suffix_match is None:
        return Expectation("equal", line)

    kind_name = suffix_match.group("kind")
    quantifier = suffix_match.group("quantifier")
    if kind_name:
        kind = EXPECTATION_KINDS.get(kind_name)
    else:
        kind = "equal" if quantifier else None
    if kind is None:
        return Expectation("equal", line)

    expression = suffix_match.group("expression")
    try:
        if kind == "regex":
            re.compile(expression)
        elif kind == "escaped":
            decode_escaped(expression)
    except (re.error, OverflowError, RecursionError, UnicodeDecodeError) as error:
        raise BodyStructureError(index + 1, f"invalid {kind} expression {expression!r}: {error}") from error

    return Expectation(
        kind,
        expression,
        optional=quantifier in ("?", "*"),
        multiline=quantifier in ("*", "+"),
    )
