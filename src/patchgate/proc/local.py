from __future__ import annotations

import asyncio
import os
import signal
import uuid
from typing import AsyncIterator, Dict, Optional

from .base import EnvPolicy, ProcessBackend, ProcessHandle, SpawnOptions


def _build_env(policy: EnvPolicy, overlay: Optional[Dict[str, str]]) -> Dict[str, str]:
    env: Dict[str, str] = {}
    if policy.inherit_parent:
        env = dict(os.environ)
        if policy.allowlist is not None:
            allow = set(policy.allowlist)
            env = {k: v for k, v in env.items() if k in allow}
        if policy.denylist is not None:
            for k in policy.denylist:
                env.pop(k, None)
    env.update(policy.defaults or {})
    if overlay:
        env.update(overlay)
    return env


async def _iter_lines(stream: Optional[asyncio.StreamReader]) -> AsyncIterator[str]:
    if stream is None:
        return
    while True:
        line = await stream.readline()
        if not line:
            break
        yield line.decode("utf-8", errors="replace")


class LocalProcessHandle(ProcessHandle):
    def __init__(
        self,
        proc: asyncio.subprocess.Process,
        *,
        use_process_group: bool = True,
    ) -> None:
        self._proc = proc
        self.id = str(uuid.uuid4())
        self._use_pg = bool(use_process_group and os.name == "posix")

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode

    def alive(self) -> bool:
        return self._proc.returncode is None

    def iter_stdout(self) -> AsyncIterator[str]:
        return _iter_lines(self._proc.stdout)

    def iter_stderr(self) -> AsyncIterator[str]:
        return _iter_lines(self._proc.stderr)

    def _signal(self, sig: int) -> None:
        try:
            if self._use_pg and self._proc.pid is not None:
                os.killpg(self._proc.pid, sig)
            elif sig == signal.SIGTERM:
                self._proc.terminate()
            else:
                self._proc.kill()
        except ProcessLookupError:
            pass

    async def terminate(self, grace_s: float = 5.0) -> None:
        if self._proc.returncode is not None:
            return
        self._signal(signal.SIGTERM)
        try:
            # Output readers drain the pipes, so a plain wait() cannot block on them.
            await asyncio.wait_for(self._proc.wait(), timeout=grace_s)
        except asyncio.TimeoutError:
            await self.kill()

    async def kill(self) -> None:
        if self._proc.returncode is None:
            self._signal(signal.SIGKILL)
        # Reap the child to release transport resources.
        await self._proc.wait()

    async def wait(self) -> int:
        return await self._proc.wait()


class LocalSubprocessBackend(ProcessBackend):
    """Runs shell command strings with asyncio subprocesses on this machine."""

    def __init__(self, env_policy: Optional[EnvPolicy] = None) -> None:
        self.env_policy: EnvPolicy = env_policy or EnvPolicy()

    async def spawn(self, opts: SpawnOptions) -> ProcessHandle:
        env = _build_env(self.env_policy, opts.env_overlay)
        proc = await asyncio.create_subprocess_shell(
            opts.command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(opts.cwd) if opts.cwd is not None else None,
            env=env,
            start_new_session=bool(opts.use_process_group and os.name == "posix"),
        )
        return LocalProcessHandle(proc, use_process_group=opts.use_process_group)
