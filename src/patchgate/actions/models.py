from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel, Field

from patchgate.collab.base import TerminalResult
from patchgate.diff.models import DiffHunk, DiffResult
from patchgate.merge.models import MergeConflict, ReconcileOutcome


class ActionKind(str, Enum):
    edit = "edit"
    create = "create"
    delete = "delete"
    terminal = "terminal"
    plan = "plan"


class ActionStatus(str, Enum):
    proposed = "proposed"
    applying = "applying"
    applied = "applied"
    rejected = "rejected"
    failed = "failed"


FINAL_STATUSES = frozenset(
    {ActionStatus.applied, ActionStatus.rejected, ActionStatus.failed}
)


class PlanTask(BaseModel):
    description: str
    completed: bool = False
    phase: Optional[str] = Field(
        default=None,
        description="Phase or step header the task was listed under, if any.",
    )


class ParsedAction(BaseModel):
    kind: ActionKind
    target: str = Field(
        default="",
        description="Filename for file actions, command line for terminal actions.",
    )
    content: str = Field(
        default="",
        description="Proposed full file content, or the plan source text.",
    )
    tasks: List[PlanTask] = Field(default_factory=list)
    description: Optional[str] = None


class PendingAction(ParsedAction):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: ActionStatus = ActionStatus.proposed
    snapshot: Optional[str] = Field(
        default=None,
        description="File content captured at proposal time; None when the file did not exist.",
    )
    created_at: float = Field(default_factory=time.time)
    message: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.status in FINAL_STATUSES


class ApplyResult(BaseModel):
    action_id: str
    kind: ActionKind
    target: str
    status: ActionStatus
    message: str = ""
    outcome: Optional[ReconcileOutcome] = None
    terminal: Optional[TerminalResult] = None

    @property
    def conflicts(self) -> List[MergeConflict]:
        if self.outcome is None:
            return []
        return list(self.outcome.conflicts)

    @property
    def ok(self) -> bool:
        return self.status == ActionStatus.applied


class ActionPreview(BaseModel):
    action_id: str
    kind: ActionKind
    title: str
    summary: str
    # edit
    diff: Optional[DiffResult] = None
    hunks: List[DiffHunk] = Field(
        default_factory=list,
        description="Display hunks with unchanged runs collapsed.",
    )
    conflict_warning: bool = Field(
        default=False,
        description="True when the live file diverged from the proposal snapshot.",
    )
    # create / delete / plan
    content: Optional[str] = None
    line_count: int = 0
    char_count: int = 0
    hidden_lines: int = 0
    overwrite_required: bool = False
    # terminal
    command: Optional[str] = None


@dataclass(frozen=True)
class ActionHandlers:
    """Apply and reject callbacks bound to a single action."""

    action_id: str
    on_apply: Callable[..., Awaitable[ApplyResult]]
    on_reject: Callable[[], ApplyResult]
