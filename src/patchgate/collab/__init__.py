from .base import (  # noqa: F401
    EditorView,
    FileStore,
    Notifier,
    NotifyLevel,
    TerminalExecutor,
    TerminalResult,
)
from .files import FileSystemFileStore, MemoryFileStore  # noqa: F401
from .notify import LoggingNotifier  # noqa: F401
