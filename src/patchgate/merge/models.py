from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field


class MergeConflict(BaseModel):
    line: int = Field(..., description="1-based line number in the base text")
    base: str
    theirs: str = Field(..., description="Proposed (AI) content; '' when deleted")
    ours: str = Field(..., description="Current (user) content; '' when deleted")


@dataclass(frozen=True)
class ConflictLabels:
    theirs: str = "AI Change"
    ours: str = "Your Change"

    @property
    def start(self) -> str:
        return f"<<<<<<< {self.theirs}"

    @property
    def separator(self) -> str:
        return "======="

    @property
    def end(self) -> str:
        return f">>>>>>> {self.ours}"


class CleanApply(BaseModel):
    """The document was untouched since the proposal; the proposal applies verbatim."""

    kind: Literal["clean_apply"] = "clean_apply"
    text: str

    @property
    def conflicts(self) -> List[MergeConflict]:
        return []

    @property
    def success(self) -> bool:
        return True


class AlreadyApplied(BaseModel):
    """The document already equals the proposal; applying again is a no-op."""

    kind: Literal["already_applied"] = "already_applied"
    text: str

    @property
    def conflicts(self) -> List[MergeConflict]:
        return []

    @property
    def success(self) -> bool:
        return True


class Merged(BaseModel):
    kind: Literal["merged"] = "merged"
    text: str
    conflicts: List[MergeConflict] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.conflicts


ReconcileOutcome = Annotated[
    Union[CleanApply, AlreadyApplied, Merged],
    Field(discriminator="kind"),
]
