from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple


@dataclass(frozen=True)
class TextEdit:
    """Replace text[start:end] with `replacement` (character offsets)."""

    start: int
    end: int
    replacement: str

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid edit range: {self.start}..{self.end}")


def apply_edits(text: str, edits: Sequence[TextEdit]) -> str:
    """
    Apply non-overlapping edits from the end of the text towards the start,
    so offsets of edits not yet applied stay valid.
    """
    for edit in edits:
        if edit.end > len(text):
            raise ValueError(
                f"Edit range {edit.start}..{edit.end} exceeds text length {len(text)}"
            )
    ordered = sorted(edits, key=lambda e: (e.start, e.end), reverse=True)
    limit = len(text)
    for edit in ordered:
        if edit.end > limit:
            raise ValueError(f"Overlapping edit at {edit.start}..{edit.end}")
        text = text[: edit.start] + edit.replacement + text[edit.end :]
        limit = edit.start
    return text


def find_all(
    text: str,
    query: str,
    *,
    case_sensitive: bool = True,
    regex: bool = False,
) -> List[Tuple[int, int]]:
    if not query:
        return []
    flags = 0 if case_sensitive else re.IGNORECASE
    pattern = re.compile(query if regex else re.escape(query), flags)
    spans: List[Tuple[int, int]] = []
    for m in pattern.finditer(text):
        # Skip empty regex matches; they would replace between every character.
        if m.end() > m.start():
            spans.append(m.span())
    return spans


def replace_all(
    text: str,
    query: str,
    replacement: str,
    *,
    case_sensitive: bool = True,
    regex: bool = False,
) -> Tuple[str, int]:
    spans = find_all(text, query, case_sensitive=case_sensitive, regex=regex)
    edits = [TextEdit(start, end, replacement) for start, end in spans]
    return apply_edits(text, edits), len(edits)
