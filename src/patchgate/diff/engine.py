"""
Line-level diffing based on the longest common subsequence of two texts.

Hunk order is fixed: inside a changed block all deletions come before all
additions, so the same pair of texts always produces the same hunk list.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .models import (
    AdditionHunk,
    CollapseHunk,
    ContextHunk,
    DeletionHunk,
    DiffHunk,
    DiffResult,
    DiffStats,
)

LineSequence = Tuple[str, ...]


def split_lines(text: str) -> LineSequence:
    # "" is zero lines; otherwise a trailing newline yields a trailing "" line.
    if text == "":
        return ()
    return tuple(text.split("\n"))


def join_lines(lines: Iterable[str]) -> str:
    return "\n".join(lines)


def find_lcs(a: Sequence[str], b: Sequence[str]) -> List[Tuple[int, int]]:
    """Return the LCS alignment of a and b as ordered (a_index, b_index) pairs."""
    m, n = len(a), len(b)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        row, prev = dp[i], dp[i - 1]
        ai = a[i - 1]
        for j in range(1, n + 1):
            if ai == b[j - 1]:
                row[j] = prev[j - 1] + 1
            else:
                row[j] = prev[j] if prev[j] >= row[j - 1] else row[j - 1]

    pairs: List[Tuple[int, int]] = []
    i, j = m, n
    while i > 0 and j > 0:
        if a[i - 1] == b[j - 1]:
            pairs.append((i - 1, j - 1))
            i -= 1
            j -= 1
        elif dp[i - 1][j] > dp[i][j - 1]:
            i -= 1
        else:
            j -= 1
    pairs.reverse()
    return pairs


def build_hunks(
    old_lines: Sequence[str],
    new_lines: Sequence[str],
    lcs: Sequence[Tuple[int, int]],
) -> List[DiffHunk]:
    hunks: List[DiffHunk] = []
    old_idx = new_idx = lcs_idx = 0
    old_len, new_len = len(old_lines), len(new_lines)

    while old_idx < old_len or new_idx < new_len:
        anchor = lcs[lcs_idx] if lcs_idx < len(lcs) else None
        if anchor is not None and anchor == (old_idx, new_idx):
            hunks.append(
                ContextHunk(
                    content=old_lines[old_idx],
                    old_line=old_idx + 1,
                    new_line=new_idx + 1,
                )
            )
            old_idx += 1
            new_idx += 1
            lcs_idx += 1
            continue

        old_stop = anchor[0] if anchor is not None else old_len
        new_stop = anchor[1] if anchor is not None else new_len
        while old_idx < old_stop:
            hunks.append(DeletionHunk(content=old_lines[old_idx], old_line=old_idx + 1))
            old_idx += 1
        while new_idx < new_stop:
            hunks.append(AdditionHunk(content=new_lines[new_idx], new_line=new_idx + 1))
            new_idx += 1

    return hunks


def compute_stats(hunks: Iterable[DiffHunk]) -> DiffStats:
    additions = deletions = unchanged = 0
    for hunk in hunks:
        if isinstance(hunk, AdditionHunk):
            additions += 1
        elif isinstance(hunk, DeletionHunk):
            deletions += 1
        elif isinstance(hunk, ContextHunk):
            unchanged += 1
        elif isinstance(hunk, CollapseHunk):
            continue

    total = additions + deletions + unchanged
    changed = additions + deletions
    # Half-up rounding; round() would round 12.5 to 12.
    percentage = (200 * changed + total) // (2 * total) if total else 0
    return DiffStats(
        additions=additions,
        deletions=deletions,
        unchanged=unchanged,
        total=total,
        change_percentage=percentage,
    )


def compute_diff(old_text: str, new_text: str) -> DiffResult:
    old_lines = split_lines(old_text)
    new_lines = split_lines(new_text)
    hunks = build_hunks(old_lines, new_lines, find_lcs(old_lines, new_lines))
    return DiffResult(hunks=hunks, stats=compute_stats(hunks))


def has_local_changes(original: str, current: str) -> bool:
    return original != current
