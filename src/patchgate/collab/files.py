from __future__ import annotations

import pathlib
from typing import Dict, Optional

from patchgate.errors import ActionError, FileNotFound


class MemoryFileStore:
    """Dict-backed file store. `open_file` marks the file shown in the editor."""

    def __init__(
        self,
        files: Optional[Dict[str, str]] = None,
        current: Optional[str] = None,
    ) -> None:
        self.files: Dict[str, str] = dict(files or {})
        self._current = current

    def open_file(self, name: str) -> None:
        if name not in self.files:
            raise FileNotFound(name)
        self._current = name

    def find_file(self, name: str) -> Optional[str]:
        return self.files.get(name)

    def write_file(self, name: str, content: str) -> None:
        if name not in self.files:
            raise FileNotFound(name)
        self.files[name] = content

    def create_file(self, name: str, content: str) -> None:
        self.files[name] = content

    def delete_file(self, name: str) -> None:
        if self.files.pop(name, None) is None:
            raise FileNotFound(name)
        if self._current == name:
            self._current = None

    def current_file(self) -> Optional[str]:
        return self._current


class FileSystemFileStore:
    """
    File store rooted at `base_path`. Names are relative paths; absolute paths
    and paths escaping the root are rejected. Files are read and written as UTF-8.
    """

    def __init__(self, base_path: pathlib.Path) -> None:
        self._base_path = pathlib.Path(base_path)
        self._current: Optional[str] = None

    def _resolve_safe_path(self, rel: str) -> pathlib.Path:
        if rel.startswith("/") or rel.startswith("~"):
            raise ActionError(f"Absolute paths are not allowed: {rel}")
        abs_path = (self._base_path / rel).resolve()
        base_resolved = self._base_path.resolve()
        if abs_path == base_resolved or base_resolved in abs_path.parents:
            return abs_path
        raise ActionError(f"Path escapes project root: {rel}")

    def open_file(self, name: str) -> None:
        if not self._resolve_safe_path(name).is_file():
            raise FileNotFound(name)
        self._current = name

    def find_file(self, name: str) -> Optional[str]:
        path = self._resolve_safe_path(name)
        if not path.is_file():
            return None
        with path.open("rt", encoding="utf-8") as fh:
            return fh.read()

    def write_file(self, name: str, content: str) -> None:
        path = self._resolve_safe_path(name)
        if not path.is_file():
            raise FileNotFound(name)
        with path.open("wt", encoding="utf-8") as fh:
            fh.write(content)

    def create_file(self, name: str, content: str) -> None:
        path = self._resolve_safe_path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wt", encoding="utf-8") as fh:
            fh.write(content)

    def delete_file(self, name: str) -> None:
        path = self._resolve_safe_path(name)
        if not path.is_file():
            raise FileNotFound(name)
        path.unlink()
        if self._current == name:
            self._current = None

    def current_file(self) -> Optional[str]:
        return self._current
