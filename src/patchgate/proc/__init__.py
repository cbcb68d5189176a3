from .base import (  # noqa: F401
    EnvPolicy,
    ProcessBackend,
    ProcessHandle,
    SpawnOptions,
    get_backend,
    register_backend,
)
from .local import LocalSubprocessBackend
from .terminal import ShellTerminal  # noqa: F401

register_backend("local", lambda: LocalSubprocessBackend())
