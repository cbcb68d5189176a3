from __future__ import annotations

from typing import Optional


class PatchgateError(Exception):
    """Base class for all patchgate errors."""


class SettingsError(PatchgateError):
    """Raised when a configuration file cannot be loaded or validated."""


class ActionError(PatchgateError):
    """Raised by appliers; converted to a failed ApplyResult at the action boundary."""


class FileNotFound(ActionError):
    def __init__(self, filename: str, message: Optional[str] = None) -> None:
        self.filename = filename
        super().__init__(message or f"File not found: {filename}")


class TerminalUnavailable(ActionError):
    def __init__(self) -> None:
        super().__init__("Terminal not available")


class UnknownAction(ActionError):
    def __init__(self, action_id: str) -> None:
        self.action_id = action_id
        super().__init__(f"Unknown action: {action_id}")


class InvalidTransition(ActionError):
    def __init__(self, action_id: str, status: str, requested: str) -> None:
        self.action_id = action_id
        self.status = status
        super().__init__(
            f"Cannot {requested} action {action_id}: status is '{status}'"
        )
