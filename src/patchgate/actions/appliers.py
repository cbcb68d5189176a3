from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Type

from patchgate.collab.base import FileStore, TerminalExecutor
from patchgate.errors import FileNotFound, TerminalUnavailable
from patchgate.history import ChangeHistory, ChangeSource
from patchgate.merge import AlreadyApplied, ConflictLabels, reconcile
from patchgate.settings.models import Settings
from .models import ActionKind, ActionStatus, ApplyResult, PendingAction
from .plan import render_plan_markdown


@dataclass
class ApplyContext:
    """Collaborators an applier may touch while applying one action."""

    files: FileStore
    history: ChangeHistory
    settings: Settings
    labels: ConflictLabels
    terminal: Optional[TerminalExecutor]
    # Refreshes the editor when `filename` is the file currently displayed.
    refresh_editor: Callable[[str, str], None]
    # Nested approval for replacing an existing file; resolves to True to overwrite.
    confirm_overwrite: Callable[[PendingAction], Awaitable[bool]]


# Global registry of action kind -> applier class
_registry: Dict[ActionKind, Type["BaseApplier"]] = {}


def register_applier(kind: ActionKind):
    """Class decorator registering an applier for an action kind."""

    def decorator(cls: Type["BaseApplier"]) -> Type["BaseApplier"]:
        if kind in _registry:
            raise ValueError(f"Applier for '{kind.value}' already registered.")
        _registry[kind] = cls
        return cls

    return decorator


def get_applier(kind: ActionKind) -> Type["BaseApplier"]:
    try:
        return _registry[kind]
    except KeyError:
        raise ValueError(f"No applier registered for action kind '{kind}'") from None


def get_all_appliers() -> Dict[ActionKind, Type["BaseApplier"]]:
    return dict(_registry)


class BaseApplier(ABC):
    kind: ActionKind

    def __init__(self, ctx: ApplyContext) -> None:
        self.ctx = ctx

    @abstractmethod
    async def apply(
        self, action: PendingAction, *, overwrite: Optional[bool] = None
    ) -> ApplyResult:
        """
        Perform the side effect of an approved action.

        Raise on failure; the pipeline turns exceptions into a failed result.
        Return a result with status `rejected` when a nested confirmation was
        declined.
        """

    def _result(
        self,
        action: PendingAction,
        message: str,
        status: ActionStatus = ActionStatus.applied,
        **kwargs,
    ) -> ApplyResult:
        return ApplyResult(
            action_id=action.id,
            kind=action.kind,
            target=action.target,
            status=status,
            message=message,
            **kwargs,
        )


@register_applier(ActionKind.edit)
class EditApplier(BaseApplier):
    kind = ActionKind.edit

    async def apply(self, action, *, overwrite=None):
        files = self.ctx.files
        current = files.find_file(action.target)
        if current is None:
            raise FileNotFound(action.target)

        # Without a snapshot the live content is the merge base.
        base = action.snapshot if action.snapshot is not None else current
        outcome = reconcile(base, action.content, current, labels=self.ctx.labels)

        if isinstance(outcome, AlreadyApplied):
            message = f"{action.target} already contains these changes"
        else:
            files.write_file(action.target, outcome.text)
            self.ctx.history.record(
                action.target, current, outcome.text, ChangeSource.ai
            )
            self.ctx.refresh_editor(action.target, outcome.text)
            if outcome.conflicts:
                lines = ", ".join(str(c.line) for c in outcome.conflicts)
                message = (
                    f"Applied changes to {action.target} with "
                    f"{len(outcome.conflicts)} conflict(s) at line(s) {lines}"
                )
            else:
                message = f"Applied changes to {action.target}"

        # Later proposals for this file diff against what the AI last wrote.
        action.snapshot = outcome.text
        return self._result(action, message, outcome=outcome)


@register_applier(ActionKind.create)
class CreateApplier(BaseApplier):
    kind = ActionKind.create

    async def apply(self, action, *, overwrite=None):
        files = self.ctx.files
        existing = files.find_file(action.target)
        if existing is None:
            files.create_file(action.target, action.content)
            message = f"Created {action.target}"
        else:
            if overwrite is None:
                overwrite = await self.ctx.confirm_overwrite(action)
            if not overwrite:
                return self._result(
                    action,
                    f"Kept existing {action.target}",
                    status=ActionStatus.rejected,
                )
            files.write_file(action.target, action.content)
            message = f"Overwrote {action.target}"

        self.ctx.history.record(
            action.target, existing or "", action.content, ChangeSource.ai
        )
        self.ctx.refresh_editor(action.target, action.content)
        return self._result(action, message)


@register_applier(ActionKind.delete)
class DeleteApplier(BaseApplier):
    kind = ActionKind.delete

    async def apply(self, action, *, overwrite=None):
        if self.ctx.files.find_file(action.target) is None:
            raise FileNotFound(action.target)
        self.ctx.files.delete_file(action.target)
        return self._result(action, f"Deleted {action.target}")


@register_applier(ActionKind.terminal)
class TerminalApplier(BaseApplier):
    kind = ActionKind.terminal

    async def apply(self, action, *, overwrite=None):
        if self.ctx.terminal is None:
            raise TerminalUnavailable()

        result = await self.ctx.terminal.run(action.target)
        if result.timed_out:
            header = f"Command timed out: {action.target}"
        elif result.failed:
            header = f"Command failed: {action.target} (exit code {result.exit_code})"
        elif result.error.strip():
            header = f"Ran with stderr output: {action.target}"
        else:
            header = f"Ran: {action.target}"

        # Output and error go to the user as-is, below the summary line.
        parts = [header]
        for text in (result.output, result.error):
            if text.strip():
                parts.append(text.rstrip("\n"))
        return self._result(action, "\n".join(parts), terminal=result)


@register_applier(ActionKind.plan)
class PlanApplier(BaseApplier):
    kind = ActionKind.plan

    async def apply(self, action, *, overwrite=None):
        plan_settings = self.ctx.settings.plan
        filename = action.target or plan_settings.filename
        markdown = render_plan_markdown(
            action.content, action.tasks, title=plan_settings.title
        )

        files = self.ctx.files
        existing = files.find_file(filename)
        if existing is None:
            files.create_file(filename, markdown)
            message = f"Created {filename}"
        else:
            files.write_file(filename, markdown)
            message = f"Updated {filename}"

        self.ctx.history.record(filename, existing or "", markdown, ChangeSource.ai)
        self.ctx.refresh_editor(filename, markdown)
        return self._result(action, message)
