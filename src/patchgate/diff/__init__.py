from .models import (  # noqa: F401
    AdditionHunk,
    CollapseHunk,
    ContextHunk,
    DeletionHunk,
    DiffHunk,
    DiffResult,
    DiffStats,
)
from .engine import (  # noqa: F401
    LineSequence,
    build_hunks,
    compute_diff,
    compute_stats,
    find_lcs,
    has_local_changes,
    join_lines,
    split_lines,
)
from .presenter import (  # noqa: F401
    DiffRenderOptions,
    collapse_context,
    format_diff,
    render_diff,
)
from .edits import TextEdit, apply_edits, find_all, replace_all  # noqa: F401
