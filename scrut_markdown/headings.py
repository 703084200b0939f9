"""Heading hierarchy tracking used to derive test titles."""

from __future__ import annotations

from .constants import MAX_HEADING_LEVEL


class HeadingStack:
    """Track the headings and paragraph text preceding a test.

    Stores one optional heading per level (index 0 is ``#``, index 5 is
    ``######``) and the lines of the paragraph that follows the innermost
    heading. All mutation goes through the methods below so that deeper
    levels and the paragraph are invalidated consistently.

    Examples:
        stack = HeadingStack()
        stack.set_heading(1, "Feature")
        stack.set_heading(2, "Scenario")
        stack.build_title(True, " > ")  # "Feature > Scenario"
    """

    def __init__(self) -> None:
        self.headings: list[str | None] = [None] * MAX_HEADING_LEVEL
        self.paragraph: list[str] = []

    def set_heading(self, level: int, title: str) -> None:
        """Store the heading at `level` (1-6) and clear all deeper levels.

        Levels outside 1-6 are ignored. The paragraph is cleared as well.
        """
        if level < 1 or level > MAX_HEADING_LEVEL:
            return
        index = level - 1
        self.headings[index] = title
        for deeper in range(index + 1, MAX_HEADING_LEVEL):
            self.headings[deeper] = None
        self.paragraph.clear()

    def add_paragraph(self, text: str) -> None:
        self.paragraph.append(text)

    def clear_paragraph(self) -> None:
        """Forget the paragraph; stored headings stay untouched."""
        self.paragraph.clear()

    def clear_after_test(self) -> None:
        """Forget the paragraph consumed by the test that was just parsed."""
        self.paragraph.clear()

    def build_title(self, composite: bool, separator: str) -> str:
        """Derive the current test title.

        Args:
            composite: Join every stored heading (and the paragraph) when True;
                otherwise return only the innermost title.
            separator: Separator placed between the parts of a composite title.

        Returns:
            str: The title, or an empty string when nothing is stored.

        Examples:
            stack.build_title(False, " > ")  # paragraph, else deepest heading
        """
        paragraph = "\n".join(self.paragraph)

        if composite:
            parts = [heading for heading in self.headings if heading is not None]
            if self.paragraph:
                parts.append(paragraph)
            return separator.join(parts)

        if self.paragraph:
            return paragraph
        for heading in reversed(self.headings):
            if heading is not None:
                return heading
        return ""
