from .models import (  # noqa: F401
    ActionHandlers,
    ActionKind,
    ActionPreview,
    ActionStatus,
    ApplyResult,
    ParsedAction,
    PendingAction,
    PlanTask,
)
from .plan import parse_plan_tasks, render_plan_markdown  # noqa: F401
from .parser import (  # noqa: F401
    ParseError,
    ParseErrorCode,
    ParseFailure,
    ParseOk,
    ParseResult,
    parse_response,
    summarize_action,
)
from .appliers import (  # noqa: F401
    ApplyContext,
    BaseApplier,
    get_all_appliers,
    get_applier,
    register_applier,
)
from .pipeline import ActionApprovalPipeline  # noqa: F401
