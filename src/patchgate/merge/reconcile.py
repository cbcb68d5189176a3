"""
Reconcile an AI proposal with the live document.

`reconcile` takes the text the AI saw (base), the text it proposes (theirs)
and the text currently in the editor (ours). Cheap equality checks come
first; only a diverged document goes through the line-based three-way merge.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from patchgate.diff.engine import compute_diff, join_lines, split_lines
from patchgate.diff.models import AdditionHunk, ContextHunk, DeletionHunk, DiffResult
from .models import AlreadyApplied, CleanApply, ConflictLabels, MergeConflict, Merged


@dataclass
class _SideChanges:
    # base line (1-based) -> replacement lines; [] means the line was deleted
    replaced: Dict[int, List[str]] = field(default_factory=dict)
    # anchor (1-based base line the lines go before; len(base)+1 is end of file)
    inserted: Dict[int, List[str]] = field(default_factory=dict)


def _flush_block(
    changes: _SideChanges,
    deleted: List[Tuple[int, str]],
    added: List[str],
    anchor: int,
) -> None:
    if deleted:
        for k, (line_no, _) in enumerate(deleted):
            changes.replaced[line_no] = [added[k]] if k < len(added) else []
        if len(added) > len(deleted):
            changes.replaced[deleted[-1][0]].extend(added[len(deleted) :])
    elif added:
        changes.inserted.setdefault(anchor, []).extend(added)


def _collect_changes(diff: DiffResult) -> _SideChanges:
    """
    Index a diff by base line. Deleted lines of a block are paired in order
    with its added lines; blocks without deletions become anchored insertions.
    """
    changes = _SideChanges()
    deleted: List[Tuple[int, str]] = []
    added: List[str] = []
    next_base = 1

    for hunk in diff.hunks:
        if isinstance(hunk, ContextHunk):
            _flush_block(changes, deleted, added, next_base)
            deleted, added = [], []
            next_base = hunk.old_line + 1
        elif isinstance(hunk, DeletionHunk):
            deleted.append((hunk.old_line, hunk.content))
        elif isinstance(hunk, AdditionHunk):
            added.append(hunk.content)
    _flush_block(changes, deleted, added, next_base)
    return changes


def _merge_slot(
    theirs: Optional[List[str]],
    ours: Optional[List[str]],
    *,
    line_no: int,
    base: str,
    labels: ConflictLabels,
    out: List[str],
    conflicts: List[MergeConflict],
) -> bool:
    """Merge one base slot. Returns False when the slot was untouched on both sides."""
    if theirs is None and ours is None:
        return False
    if ours is None or theirs == ours:
        out.extend(theirs or [])
    elif theirs is None:
        out.extend(ours)
    else:
        conflicts.append(
            MergeConflict(
                line=line_no,
                base=base,
                theirs=join_lines(theirs),
                ours=join_lines(ours),
            )
        )
        out.append(labels.start)
        out.extend(theirs)
        out.append(labels.separator)
        out.extend(ours)
        out.append(labels.end)
    return True


def three_way_merge(
    base: str,
    theirs: str,
    ours: str,
    labels: Optional[ConflictLabels] = None,
) -> Merged:
    """
    Line merge of two edits of `base`, keyed by base line number.

    Alignment comes from the LCS diff, so within runs of identical lines an
    edit may be attributed to an earlier duplicate. Edits to different
    duplicates can then conflict even though no text is lost.
    """
    labels = labels or ConflictLabels()
    base_lines: Sequence[str] = split_lines(base)
    their_changes = _collect_changes(compute_diff(base, theirs))
    our_changes = _collect_changes(compute_diff(base, ours))

    out: List[str] = []
    conflicts: List[MergeConflict] = []

    for line_no in range(1, len(base_lines) + 2):
        base_line = base_lines[line_no - 1] if line_no <= len(base_lines) else ""
        _merge_slot(
            their_changes.inserted.get(line_no),
            our_changes.inserted.get(line_no),
            line_no=line_no,
            base=base_line,
            labels=labels,
            out=out,
            conflicts=conflicts,
        )
        if line_no > len(base_lines):
            break
        touched = _merge_slot(
            their_changes.replaced.get(line_no),
            our_changes.replaced.get(line_no),
            line_no=line_no,
            base=base_line,
            labels=labels,
            out=out,
            conflicts=conflicts,
        )
        if not touched:
            out.append(base_line)

    return Merged(text=join_lines(out), conflicts=conflicts)


def reconcile(
    original: str,
    proposed: str,
    current: str,
    labels: Optional[ConflictLabels] = None,
) -> Union[CleanApply, AlreadyApplied, Merged]:
    if current == original:
        return CleanApply(text=proposed)
    if current == proposed:
        return AlreadyApplied(text=proposed)
    return three_way_merge(original, proposed, current, labels=labels)
