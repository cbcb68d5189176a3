from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, Optional, Protocol, runtime_checkable


@dataclass
class EnvPolicy:
    inherit_parent: bool = True
    allowlist: Optional[list[str]] = None
    denylist: Optional[list[str]] = None
    defaults: Dict[str, str] = field(default_factory=dict)


@dataclass
class SpawnOptions:
    command: str
    cwd: Optional[Path] = None
    env_overlay: Optional[Dict[str, str]] = None
    # Run the command in its own process group so terminate()/kill() reach
    # every child the shell started.
    use_process_group: bool = True


@runtime_checkable
class ProcessHandle(Protocol):
    id: str

    @property
    def pid(self) -> Optional[int]: ...
    @property
    def returncode(self) -> Optional[int]: ...
    def alive(self) -> bool: ...

    async def iter_stdout(self) -> AsyncIterator[str]: ...
    async def iter_stderr(self) -> AsyncIterator[str]: ...
    async def terminate(self, grace_s: float = 5.0) -> None: ...
    async def kill(self) -> None: ...
    async def wait(self) -> int: ...


class ProcessBackend(Protocol):
    env_policy: EnvPolicy

    async def spawn(self, opts: SpawnOptions) -> ProcessHandle: ...


_BACKENDS: dict[str, Callable[[], ProcessBackend]] = {}


def register_backend(name: str, factory: Callable[[], ProcessBackend]) -> None:
    _BACKENDS[name] = factory


def get_backend(name: str) -> ProcessBackend:
    if name not in _BACKENDS:
        raise ValueError(f"Unknown process backend: {name!r}")
    return _BACKENDS[name]()
