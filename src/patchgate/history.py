from __future__ import annotations

import time
from collections import deque
from enum import Enum
from typing import Deque, List, Optional

from pydantic import BaseModel, Field

from patchgate.logger import logger
from patchgate.settings.models import HISTORY_CAPACITY_DEFAULT


class ChangeSource(str, Enum):
    ai = "ai"
    user = "user"


class ChangeRecord(BaseModel):
    filename: str
    old_content: str
    new_content: str
    source: ChangeSource = Field(default=ChangeSource.ai)
    timestamp: float = Field(
        default_factory=time.time,
        description="Epoch seconds at which the change was recorded.",
    )


class ChangeHistory:
    """
    Bounded, append-only log of file content changes for one editing session.

    Only AI-originated records can be undone; user edits are kept so that an
    undo never reverts work the user typed.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY_DEFAULT) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be >= 1")
        self.capacity = capacity
        self._records: Deque[ChangeRecord] = deque(maxlen=capacity)

    def record(
        self,
        filename: str,
        old_content: str,
        new_content: str,
        source: ChangeSource = ChangeSource.ai,
    ) -> ChangeRecord:
        entry = ChangeRecord(
            filename=filename,
            old_content=old_content,
            new_content=new_content,
            source=source,
        )
        self._records.append(entry)
        return entry

    def last_change(self, filename: str) -> Optional[ChangeRecord]:
        for entry in reversed(self._records):
            if entry.filename == filename:
                return entry
        return None

    def undo_last(self, filename: str) -> Optional[str]:
        entry = self.last_change(filename)
        if entry is None:
            return None
        if entry.source != ChangeSource.ai:
            logger.info("Refusing to undo user edit", filename=filename)
            return None
        self._records.remove(entry)
        return entry.old_content

    def records(self) -> List[ChangeRecord]:
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
