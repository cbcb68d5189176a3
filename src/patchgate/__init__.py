__version__ = "0.1.0"

from .diff import compute_diff, collapse_context, render_diff  # noqa: F401,E402
from .merge import reconcile, three_way_merge  # noqa: F401,E402
from .history import ChangeHistory, ChangeRecord, ChangeSource  # noqa: F401,E402
from .actions import (  # noqa: F401,E402
    ActionApprovalPipeline,
    ActionKind,
    ActionStatus,
    ParsedAction,
    parse_response,
)
