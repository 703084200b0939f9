from __future__ import annotations

import os

import pytest

from scrut_markdown.exceptions import ParseError
from scrut_markdown.parser import parse_markdown
from scrut_markdown.tokenizer import extract_code_block_start, extract_title

atheris = pytest.importorskip("atheris")

FRAGMENTS = ["```scrut", "```", "````scrut", "---", "# Title", "$ echo hi", "> more", "[1]", "", "text"]


def test_line_classifiers_with_fuzzed_input():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    checked = 0

    for _ in range(128):
        if provider.remaining_bytes() == 0:
            break
        line = provider.ConsumeUnicodeNoSurrogates(64)
        fence = extract_code_block_start(line)
        if fence is not None:
            assert line.startswith(fence[0])
        title = extract_title(line)
        if title is not None:
            assert title[2] >= 0
        checked += 1

    assert checked  # ensure we exercised the loop


def test_parse_markdown_with_fuzzed_documents():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    lines: list[str] = []

    while provider.remaining_bytes() > 0 and len(lines) < 64:
        if provider.ConsumeBool():
            lines.append(FRAGMENTS[provider.ConsumeIntInRange(0, len(FRAGMENTS) - 1)])
        else:
            lines.append(provider.ConsumeUnicodeNoSurrogates(32))

    try:
        _, testcases = parse_markdown("\n".join(lines))
    except ParseError:
        return
    assert all(testcase.line_number >= 1 for testcase in testcases)
