from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

from patchgate.collab.base import TerminalResult
from patchgate.logger import logger
from patchgate.settings.models import TerminalSettings
from .base import EnvPolicy, ProcessBackend, ProcessHandle, SpawnOptions, get_backend


def _truncate(text: str, limit: int) -> str:
    if limit > 0 and len(text) > limit:
        return text[:limit]
    return text


class ShellTerminal:
    """
    TerminalExecutor backed by a process backend (local subprocesses by default).

    Each `run` spawns one shell command, collects stdout and stderr separately,
    enforces the configured timeout and truncates both streams to
    `max_output_chars`.
    """

    def __init__(
        self,
        settings: Optional[TerminalSettings] = None,
        *,
        env_policy: Optional[EnvPolicy] = None,
    ) -> None:
        self.settings = settings or TerminalSettings()
        backend = get_backend(self.settings.backend)
        backend.env_policy = env_policy or EnvPolicy()
        self._backend: ProcessBackend = backend
        self._cwd: Path = self.settings.cwd or Path.cwd()
        self._running: Dict[str, ProcessHandle] = {}

    @property
    def running(self) -> List[ProcessHandle]:
        return list(self._running.values())

    async def run(self, command: str) -> TerminalResult:
        if not command or not command.strip():
            raise ValueError("Terminal command must be a non-empty string")

        handle = await self._backend.spawn(SpawnOptions(command=command, cwd=self._cwd))
        self._running[handle.id] = handle
        log = logger.bind(command=command, pid=handle.pid)
        log.debug("Spawned terminal command")

        stdout_parts: List[str] = []
        stderr_parts: List[str] = []

        async def _read_stdout() -> None:
            async for chunk in handle.iter_stdout():
                stdout_parts.append(chunk)

        async def _read_stderr() -> None:
            async for chunk in handle.iter_stderr():
                stderr_parts.append(chunk)

        readers = [
            asyncio.create_task(_read_stdout()),
            asyncio.create_task(_read_stderr()),
        ]

        timeout_s = self.settings.timeout_s
        timed_out = False
        rc: Optional[int] = None
        try:
            if timeout_s is not None and timeout_s > 0:
                rc = await asyncio.wait_for(handle.wait(), timeout=timeout_s)
            else:
                rc = await handle.wait()
        except asyncio.TimeoutError:
            timed_out = True
            log.warning("Terminal command timed out", timeout_s=timeout_s)
            await handle.terminate(grace_s=1.0)
        finally:
            await asyncio.gather(*readers, return_exceptions=True)
            self._running.pop(handle.id, None)

        limit = self.settings.max_output_chars
        error = _truncate("".join(stderr_parts), limit)
        if timed_out:
            note = f"Command timed out after {timeout_s}s"
            error = f"{error}\n{note}" if error else note
        result = TerminalResult(
            output=_truncate("".join(stdout_parts), limit),
            error=error,
            exit_code=rc,
            timed_out=timed_out,
        )
        log.debug("Terminal command finished", exit_code=rc, timed_out=timed_out)
        return result

    async def shutdown(self, *, grace_s: float = 5.0) -> None:
        tasks = [h.terminate(grace_s=grace_s) for h in list(self._running.values())]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._running.clear()
