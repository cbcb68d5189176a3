from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class NotifyLevel(str, Enum):
    success = "success"
    info = "info"
    warning = "warning"
    error = "error"


class TerminalResult(BaseModel):
    output: str = ""
    error: str = ""
    exit_code: Optional[int] = Field(
        default=None,
        description="Process exit code; None when the command timed out or never started.",
    )
    timed_out: bool = False

    @property
    def failed(self) -> bool:
        return self.timed_out or self.exit_code not in (0, None)


@runtime_checkable
class FileStore(Protocol):
    """Project file storage. Content is always full-file text."""

    def find_file(self, name: str) -> Optional[str]: ...
    def write_file(self, name: str, content: str) -> None: ...
    def create_file(self, name: str, content: str) -> None: ...
    def delete_file(self, name: str) -> None: ...
    def current_file(self) -> Optional[str]: ...


@runtime_checkable
class EditorView(Protocol):
    def set_displayed_content(self, text: str) -> None: ...


@runtime_checkable
class TerminalExecutor(Protocol):
    async def run(self, command: str) -> TerminalResult: ...


@runtime_checkable
class Notifier(Protocol):
    def notify(self, message: str, level: NotifyLevel) -> None: ...
