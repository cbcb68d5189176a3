from __future__ import annotations

from typing import Annotated, List, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class _Hunk(BaseModel):
    model_config = ConfigDict(frozen=True)


class ContextHunk(_Hunk):
    type: Literal["context"] = "context"
    content: str
    old_line: int = Field(..., description="1-based line number in the old text")
    new_line: int = Field(..., description="1-based line number in the new text")


class DeletionHunk(_Hunk):
    type: Literal["deletion"] = "deletion"
    content: str
    old_line: int


class AdditionHunk(_Hunk):
    type: Literal["addition"] = "addition"
    content: str
    new_line: int


class CollapseHunk(_Hunk):
    """Display-only marker standing in for `count` hidden context lines."""

    type: Literal["collapse"] = "collapse"
    count: int


DiffHunk = Annotated[
    Union[ContextHunk, DeletionHunk, AdditionHunk, CollapseHunk],
    Field(discriminator="type"),
]


class DiffStats(BaseModel):
    additions: int = 0
    deletions: int = 0
    unchanged: int = 0
    total: int = 0
    change_percentage: int = 0


class DiffResult(BaseModel):
    hunks: List[DiffHunk] = Field(default_factory=list)
    stats: DiffStats = Field(default_factory=DiffStats)

    @property
    def has_changes(self) -> bool:
        return self.stats.additions > 0 or self.stats.deletions > 0

    def old_lines(self) -> Tuple[str, ...]:
        return tuple(
            h.content for h in self.hunks if isinstance(h, (ContextHunk, DeletionHunk))
        )

    def new_lines(self) -> Tuple[str, ...]:
        return tuple(
            h.content for h in self.hunks if isinstance(h, (ContextHunk, AdditionHunk))
        )
