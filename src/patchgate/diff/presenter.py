from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from rich import console as rich_console
from rich import text as rich_text

from .models import (
    AdditionHunk,
    CollapseHunk,
    ContextHunk,
    DeletionHunk,
    DiffHunk,
    DiffResult,
)

ADDITION_STYLE = "green"
DELETION_STYLE = "red"
COLLAPSE_STYLE = "dim italic"
LINE_NUMBER_STYLE = "dim"
LINE_NUMBER_WIDTH = 4


@dataclass
class DiffRenderOptions:
    show_line_numbers: bool = True
    context_lines: int = 3
    collapse_unchanged: bool = True
    max_lines: int = 100


def _is_change(hunk: DiffHunk) -> bool:
    return isinstance(hunk, (AdditionHunk, DeletionHunk))


def collapse_context(
    hunks: Sequence[DiffHunk],
    context_lines: int,
    collapse: bool = True,
) -> List[DiffHunk]:
    """
    Replace long runs of unchanged lines with a single CollapseHunk.

    A run keeps up to `context_lines` visible lines next to a preceding change
    and up to `context_lines` next to a following change. A run that touches no
    change is hidden completely. For display only.
    """
    if context_lines < 0:
        raise ValueError("context_lines must not be negative")
    if not collapse:
        return list(hunks)

    result: List[DiffHunk] = []
    i = 0
    n = len(hunks)
    while i < n:
        if not isinstance(hunks[i], ContextHunk):
            result.append(hunks[i])
            i += 1
            continue

        j = i
        while j < n and isinstance(hunks[j], ContextHunk):
            j += 1
        run = hunks[i:j]
        head = context_lines if i > 0 and _is_change(hunks[i - 1]) else 0
        tail = context_lines if j < n and _is_change(hunks[j]) else 0

        if head + tail >= len(run):
            result.extend(run)
        else:
            result.extend(run[:head])
            result.append(CollapseHunk(count=len(run) - head - tail))
            result.extend(run[len(run) - tail :])
        i = j

    return result


@dataclass
class _Row:
    kind: str
    line_no: Optional[int]
    prefix: str
    content: str


def _display_rows(diff: DiffResult, options: DiffRenderOptions) -> List[_Row]:
    shown = collapse_context(
        diff.hunks, options.context_lines, options.collapse_unchanged
    )
    rows: List[_Row] = []
    for index, hunk in enumerate(shown):
        if index >= options.max_lines:
            rows.append(
                _Row("truncated", None, "", f"... {len(shown) - index} more lines")
            )
            break
        if isinstance(hunk, CollapseHunk):
            rows.append(_Row("collapse", None, "", f"... {hunk.count} unchanged lines"))
        elif isinstance(hunk, AdditionHunk):
            rows.append(_Row("addition", hunk.new_line, "+", hunk.content))
        elif isinstance(hunk, DeletionHunk):
            rows.append(_Row("deletion", hunk.old_line, "-", hunk.content))
        else:
            rows.append(_Row("context", hunk.new_line, " ", hunk.content))
    return rows


def _stats_line(diff: DiffResult) -> str:
    stats = diff.stats
    return f"+{stats.additions} -{stats.deletions} {stats.unchanged} unchanged"


def _gutter(row: _Row, options: DiffRenderOptions) -> str:
    if not options.show_line_numbers:
        return ""
    label = str(row.line_no) if row.line_no is not None else ""
    return label.rjust(LINE_NUMBER_WIDTH) + " "


def format_diff(diff: DiffResult, options: Optional[DiffRenderOptions] = None) -> str:
    options = options or DiffRenderOptions()
    lines = [_stats_line(diff)]
    for row in _display_rows(diff, options):
        if row.kind == "truncated":
            lines.append(row.content)
            continue
        lines.append(f"{_gutter(row, options)}{row.prefix or ' '} {row.content}")
    return "\n".join(lines)


def render_diff(
    diff: DiffResult, options: Optional[DiffRenderOptions] = None
) -> rich_console.Group:
    options = options or DiffRenderOptions()

    header = rich_text.Text(no_wrap=True)
    header.append(f"+{diff.stats.additions}", style=ADDITION_STYLE)
    header.append(" ")
    header.append(f"-{diff.stats.deletions}", style=DELETION_STYLE)
    header.append(" ")
    header.append(f"{diff.stats.unchanged} unchanged", style=LINE_NUMBER_STYLE)

    body: List[rich_text.Text] = []
    for row in _display_rows(diff, options):
        line = rich_text.Text(no_wrap=True)
        if row.kind == "truncated":
            line.append(row.content, style=COLLAPSE_STYLE)
            body.append(line)
            continue
        line.append(_gutter(row, options), style=LINE_NUMBER_STYLE)
        if row.kind == "collapse":
            line.append("  " + row.content, style=COLLAPSE_STYLE)
        elif row.kind == "addition":
            line.append(f"+ {row.content}", style=ADDITION_STYLE)
        elif row.kind == "deletion":
            line.append(f"- {row.content}", style=DELETION_STYLE)
        else:
            line.append(f"  {row.content}")
        body.append(line)

    return rich_console.Group(header, *body)
