from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional

from patchgate.collab.base import (
    EditorView,
    FileStore,
    Notifier,
    NotifyLevel,
    TerminalExecutor,
)
from patchgate.collab.notify import LoggingNotifier
from patchgate.diff.engine import compute_diff, has_local_changes, join_lines, split_lines
from patchgate.diff.presenter import DiffRenderOptions, collapse_context, format_diff
from patchgate.errors import FileNotFound, InvalidTransition, UnknownAction
from patchgate.history import ChangeHistory, ChangeSource
from patchgate.logger import logger
from patchgate.merge import ConflictLabels
from patchgate.settings.models import Settings
from .appliers import ApplyContext, get_applier
from .models import (
    ActionHandlers,
    ActionKind,
    ActionPreview,
    ActionStatus,
    ApplyResult,
    ParsedAction,
    PendingAction,
)
from .parser import summarize_action
from .plan import render_plan_markdown

CREATE_PREVIEW_LINES = 15

_REJECT_MESSAGES = {
    ActionKind.edit: "Changes to {target} discarded",
    ActionKind.create: "Creation of {target} cancelled",
    ActionKind.delete: "Deletion of {target} cancelled",
    ActionKind.terminal: "Command cancelled",
    ActionKind.plan: "Plan discarded",
}


class ActionApprovalPipeline:
    """
    Holds proposed AI actions until the user approves or rejects each one.

    Every action moves `proposed -> applying -> applied | failed` or
    `proposed -> rejected`, and only through `apply` / `reject`. Applies run
    one at a time on the current event loop.
    """

    def __init__(
        self,
        files: FileStore,
        *,
        terminal: Optional[TerminalExecutor] = None,
        editor: Optional[EditorView] = None,
        notifier: Optional[Notifier] = None,
        history: Optional[ChangeHistory] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.files = files
        self.terminal = terminal
        self.editor = editor
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.history = history or ChangeHistory(self.settings.history.capacity)
        self.labels = ConflictLabels(
            theirs=self.settings.merge.ai_label,
            ours=self.settings.merge.user_label,
        )

        # Insertion ordered; this is the queue order.
        self._actions: Dict[str, PendingAction] = {}
        self._decisions: Dict[str, "asyncio.Future[ActionStatus]"] = {}
        self._overwrite_prompts: Dict[str, "asyncio.Future[bool]"] = {}

    # Queue
    def propose(self, parsed_actions: Iterable[ParsedAction]) -> List[PendingAction]:
        """
        Queue parsed actions in order and return them.

        Edits and deletes snapshot the target file here. An action whose
        snapshot cannot be taken is still queued, already `failed`, so the
        rest of the batch is unaffected.
        """
        created: List[PendingAction] = []
        for parsed in parsed_actions:
            data = parsed.model_dump()
            if parsed.kind == ActionKind.plan and not parsed.target:
                data["target"] = self.settings.plan.filename
            error: Optional[Exception] = None
            if parsed.kind in (ActionKind.edit, ActionKind.delete):
                try:
                    data["snapshot"] = self.files.find_file(parsed.target)
                except Exception as exc:
                    error = exc
            action = PendingAction.model_validate(data)
            self._actions[action.id] = action
            created.append(action)

            if error is not None:
                action.status = ActionStatus.failed
                action.message = str(error)
                logger.error(
                    "Action rejected at proposal",
                    action_id=action.id,
                    target=action.target,
                    err=str(error),
                )
                self.notifier.notify(action.message, NotifyLevel.error)
                continue
            logger.debug(
                "Action proposed",
                action_id=action.id,
                kind=action.kind.value,
                target=action.target,
            )
        return created

    @property
    def pending(self) -> List[PendingAction]:
        return [a for a in self._actions.values() if a.status == ActionStatus.proposed]

    @property
    def actions(self) -> List[PendingAction]:
        return list(self._actions.values())

    def get(self, action_id: str) -> PendingAction:
        action = self._actions.get(action_id)
        if action is None:
            raise UnknownAction(action_id)
        return action

    def _require_proposed(self, action_id: str, requested: str) -> PendingAction:
        action = self.get(action_id)
        if action.status != ActionStatus.proposed:
            raise InvalidTransition(action_id, action.status.value, requested)
        return action

    # Previews
    def diff_options(self, *, preview: bool = True) -> DiffRenderOptions:
        diff_settings = self.settings.diff
        return DiffRenderOptions(
            show_line_numbers=diff_settings.show_line_numbers,
            context_lines=diff_settings.context_lines,
            collapse_unchanged=diff_settings.collapse_unchanged,
            max_lines=diff_settings.preview_max_lines if preview else diff_settings.max_lines,
        )

    def preview(self, action_id: str) -> ActionPreview:
        action = self.get(action_id)
        preview = ActionPreview(
            action_id=action.id,
            kind=action.kind,
            title=summarize_action(action),
            summary=action.description or "",
        )

        if action.kind == ActionKind.edit:
            current = self.files.find_file(action.target)
            if current is None:
                raise FileNotFound(action.target)
            diff = compute_diff(current, action.content)
            preview.diff = diff
            preview.hunks = collapse_context(
                diff.hunks,
                self.settings.diff.context_lines,
                self.settings.diff.collapse_unchanged,
            )
            preview.conflict_warning = action.snapshot is not None and has_local_changes(
                action.snapshot, current
            )
            preview.summary = preview.summary or (
                f"+{diff.stats.additions} -{diff.stats.deletions} lines"
            )
        elif action.kind == ActionKind.create:
            lines = split_lines(action.content)
            preview.content = join_lines(lines[:CREATE_PREVIEW_LINES])
            preview.line_count = len(lines)
            preview.char_count = len(action.content)
            preview.hidden_lines = max(0, len(lines) - CREATE_PREVIEW_LINES)
            preview.overwrite_required = self.files.find_file(action.target) is not None
            preview.summary = preview.summary or (
                f"{preview.line_count} lines, {preview.char_count} characters"
            )
        elif action.kind == ActionKind.delete:
            current = self.files.find_file(action.target)
            if current is None:
                raise FileNotFound(action.target)
            preview.content = current
            preview.line_count = len(split_lines(current))
            preview.char_count = len(current)
        elif action.kind == ActionKind.terminal:
            preview.command = action.target
        elif action.kind == ActionKind.plan:
            preview.content = render_plan_markdown(
                action.content, action.tasks, title=self.settings.plan.title
            )
            preview.summary = preview.summary or f"{len(action.tasks)} tasks"
        return preview

    def format_preview(self, action_id: str) -> str:
        """Plain-text rendering of `preview`, for logs and terminal frontends."""
        preview = self.preview(action_id)
        parts = [preview.title]
        if preview.summary:
            parts.append(preview.summary)
        if preview.diff is not None:
            if preview.conflict_warning:
                parts.append("Warning: the file changed since this edit was proposed")
            parts.append(format_diff(preview.diff, self.diff_options(preview=True)))
        elif preview.command is not None:
            parts.append(f"$ {preview.command}")
        elif preview.content is not None:
            parts.append(preview.content)
            if preview.hidden_lines:
                parts.append(f"... {preview.hidden_lines} more lines")
        if preview.overwrite_required:
            parts.append(f"{self.get(action_id).target} already exists")
        return "\n".join(parts)

    # Handlers
    def build_handlers(self, action_id: str) -> ActionHandlers:
        self.get(action_id)

        async def on_apply(overwrite: Optional[bool] = None) -> ApplyResult:
            return await self.apply(action_id, overwrite=overwrite)

        def on_reject() -> ApplyResult:
            return self.reject(action_id)

        return ActionHandlers(action_id=action_id, on_apply=on_apply, on_reject=on_reject)

    # Decisions
    def _future(
        self, store: Dict[str, "asyncio.Future"], action_id: str
    ) -> "asyncio.Future":
        fut = store.get(action_id)
        if fut is None:
            fut = asyncio.get_running_loop().create_future()
            store[action_id] = fut
        return fut

    async def wait_for_decision(self, action_id: str) -> ActionStatus:
        action = self.get(action_id)
        if action.is_final:
            return action.status
        return await self._future(self._decisions, action_id)

    async def confirm_overwrite(self, action_id: str, approved: bool) -> None:
        action = self.get(action_id)
        if action.kind != ActionKind.create or action.is_final:
            raise InvalidTransition(action_id, action.status.value, "confirm overwrite for")
        fut = self._future(self._overwrite_prompts, action_id)
        if not fut.done():
            fut.set_result(bool(approved))

    async def _ask_overwrite(self, action: PendingAction) -> bool:
        fut = self._future(self._overwrite_prompts, action.id)
        if not fut.done():
            self.notifier.notify(
                f"{action.target} already exists. Overwrite?", NotifyLevel.warning
            )
        try:
            return await fut
        finally:
            self._overwrite_prompts.pop(action.id, None)

    def _refresh_editor(self, filename: str, text: str) -> None:
        if self.editor is not None and self.files.current_file() == filename:
            self.editor.set_displayed_content(text)

    def _context(self) -> ApplyContext:
        return ApplyContext(
            files=self.files,
            history=self.history,
            settings=self.settings,
            labels=self.labels,
            terminal=self.terminal,
            refresh_editor=self._refresh_editor,
            confirm_overwrite=self._ask_overwrite,
        )

    def _finish(self, action: PendingAction, result: ApplyResult) -> None:
        action.status = result.status
        action.message = result.message

        if result.status == ActionStatus.failed:
            level = NotifyLevel.error
        elif result.status == ActionStatus.rejected:
            level = NotifyLevel.info
        elif result.conflicts or (
            result.terminal is not None
            and (result.terminal.failed or result.terminal.error.strip())
        ):
            level = NotifyLevel.warning
        else:
            level = NotifyLevel.success
        self.notifier.notify(result.message, level)

        fut = self._decisions.pop(action.id, None)
        if fut is not None and not fut.done():
            fut.set_result(action.status)

    # Transitions
    async def apply(
        self, action_id: str, *, overwrite: Optional[bool] = None
    ) -> ApplyResult:
        action = self._require_proposed(action_id, "apply")
        action.status = ActionStatus.applying
        log = logger.bind(action_id=action.id, kind=action.kind.value, target=action.target)
        log.debug("Applying action")

        applier = get_applier(action.kind)(self._context())
        try:
            result = await applier.apply(action, overwrite=overwrite)
        except Exception as exc:
            log.error("Action failed", err=str(exc))
            result = ApplyResult(
                action_id=action.id,
                kind=action.kind,
                target=action.target,
                status=ActionStatus.failed,
                message=str(exc),
            )
        except BaseException:
            # Cancelled mid-apply; the action can be applied or rejected again.
            action.status = ActionStatus.proposed
            log.warning("Apply interrupted")
            raise
        else:
            log.info("Action finished", status=result.status.value)

        self._finish(action, result)
        return result

    def reject(self, action_id: str) -> ApplyResult:
        action = self._require_proposed(action_id, "reject")
        result = ApplyResult(
            action_id=action.id,
            kind=action.kind,
            target=action.target,
            status=ActionStatus.rejected,
            message=_REJECT_MESSAGES[action.kind].format(target=action.target),
        )
        logger.debug("Action rejected", action_id=action.id, kind=action.kind.value)
        self._finish(action, result)
        return result

    async def apply_all(self, *, overwrite: Optional[bool] = None) -> List[ApplyResult]:
        """
        Apply every proposed action in queue order, one after another.

        A failed action does not stop the rest. `overwrite` is forwarded to
        create actions; leaving it None waits for `confirm_overwrite`.
        """
        results: List[ApplyResult] = []
        for action in self.pending:
            results.append(await self.apply(action.id, overwrite=overwrite))
        return results

    def reject_all(self) -> List[ApplyResult]:
        return [self.reject(action.id) for action in self.pending]

    # History
    def undo_last(self, filename: str) -> Optional[str]:
        restored = self.history.undo_last(filename)
        if restored is None:
            self.notifier.notify(f"Nothing to undo for {filename}", NotifyLevel.info)
            return None

        if self.files.find_file(filename) is None:
            self.files.create_file(filename, restored)
        else:
            self.files.write_file(filename, restored)
        self._refresh_editor(filename, restored)
        self.notifier.notify(f"Undid last AI change to {filename}", NotifyLevel.success)
        return restored

    def record_user_edit(self, filename: str, old_content: str, new_content: str) -> None:
        self.history.record(filename, old_content, new_content, ChangeSource.user)
