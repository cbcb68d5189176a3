from .models import (  # noqa: F401
    VAR_PATTERN,
    HISTORY_CAPACITY_DEFAULT,
    TERMINAL_MAX_OUTPUT_CHARS_DEFAULT,
    PLAN_FILENAME_DEFAULT,
    LogLevel,
    HistorySettings,
    DiffSettings,
    MergeSettings,
    PlanSettings,
    TerminalSettings,
    LogSettings,
    Settings,
)
