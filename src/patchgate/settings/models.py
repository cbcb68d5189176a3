from enum import Enum
from pathlib import Path
from typing import Final, Literal, Optional
import re

from pydantic import BaseModel, Field, field_validator

# Variable replacement pattern.
# Supports:
#   - ${NAME}
#   - ${env:NAME}
# Ignores '$${NAME}' so it can be used to escape a literal '${NAME}'.
VAR_PATTERN = re.compile(
    r"(?<!\$)\$\{([A-Za-z_][A-Za-z0-9_]*(?::[A-Za-z_][A-Za-z0-9_]*)?)\}"
)

HISTORY_CAPACITY_DEFAULT: Final[int] = 50

# Default maximum characters kept per stream (stdout and stderr are truncated separately).
TERMINAL_MAX_OUTPUT_CHARS_DEFAULT: Final[int] = 10 * 1024

PLAN_FILENAME_DEFAULT: Final[str] = "PROJECT_PLAN.md"


class LogLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"
    critical = "critical"


class HistorySettings(BaseModel):
    # Maximum number of change records kept for undo; oldest are dropped first.
    capacity: int = HISTORY_CAPACITY_DEFAULT

    @field_validator("capacity")
    @classmethod
    def _validate_capacity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("history capacity must be at least 1")
        return v


class DiffSettings(BaseModel):
    context_lines: int = 3
    collapse_unchanged: bool = True
    show_line_numbers: bool = True
    max_lines: int = 100
    # Edit previews in action cards are shorter than full diff views.
    preview_max_lines: int = 50

    @field_validator("context_lines", "max_lines", "preview_max_lines")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must not be negative")
        return v


class MergeSettings(BaseModel):
    ai_label: str = "AI Change"
    user_label: str = "Your Change"


class PlanSettings(BaseModel):
    filename: str = PLAN_FILENAME_DEFAULT
    title: str = "Project Plan"


class TerminalSettings(BaseModel):
    # Backend key in the process backend registry.
    backend: Literal["local"] = "local"
    timeout_s: Optional[float] = 60.0
    max_output_chars: int = TERMINAL_MAX_OUTPUT_CHARS_DEFAULT
    cwd: Optional[Path] = None


class LogSettings(BaseModel):
    level: LogLevel = LogLevel.info
    file: Optional[Path] = None
    # When set, records are also captured in memory (see logger.init_log_manager).
    max_entries: Optional[int] = None


class Settings(BaseModel):
    history: HistorySettings = Field(default_factory=HistorySettings)
    diff: DiffSettings = Field(default_factory=DiffSettings)
    merge: MergeSettings = Field(default_factory=MergeSettings)
    plan: PlanSettings = Field(default_factory=PlanSettings)
    terminal: TerminalSettings = Field(default_factory=TerminalSettings)
    logging: LogSettings = Field(default_factory=LogSettings)
