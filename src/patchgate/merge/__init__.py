from .models import (  # noqa: F401
    AlreadyApplied,
    CleanApply,
    ConflictLabels,
    MergeConflict,
    Merged,
    ReconcileOutcome,
)
from .reconcile import reconcile, three_way_merge  # noqa: F401
