"""
Pydantic models for pipeline reports.

Run reports, validator issues, auto-fix reports and frame pool summaries.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class IssueKind(str, Enum):
    """Categories of validator findings."""
    MISSING_CONTROLLER = "missing_controller"
    MISSING_CLIP = "missing_clip"
    EMPTY_CLIP = "empty_clip"
    UNREADABLE_ARTIFACT = "unreadable_artifact"
    MISSING_MOTION = "missing_motion"
    DANGLING_MOTION = "dangling_motion"
    ANIM_ID_COLLISION = "anim_id_collision"
    CLIP_PATH_COLLISION = "clip_path_collision"


class Issue(BaseModel):
    """A single validator finding. Never raised, only reported."""
    model_config = ConfigDict(frozen=True)

    kind: IssueKind = Field(..., description="Category of the finding")
    character: str = Field(..., description="Character the finding belongs to")
    name: Optional[str] = Field(default=None, description="Animation or state name, if any")
    location: str = Field(..., description="Artifact path that was checked")
    reason: str = Field(..., description="Human-readable description")

    def __str__(self) -> str:
        subject = f"'{self.character}'" if self.name is None else f"'{self.character}/{self.name}'"
        return f"[{self.kind.value}] {subject}: {self.reason} => {self.location}"


class FixReport(BaseModel):
    """Outcome of PipelineValidator.auto_fix()."""
    controllers_scanned: int = Field(default=0, ge=0)
    controllers_fixed: int = Field(default=0, ge=0)
    states_fixed: int = Field(default=0, ge=0)
    fixed: List[str] = Field(default_factory=list, description="'<character>/<state> -> <clip>' lines")
    remaining_issues: List[Issue] = Field(default_factory=list)

    @property
    def remaining_issue_count(self) -> int:
        return len(self.remaining_issues)

    def summary(self) -> str:
        lines = [
            f"Controllers scanned: {self.controllers_scanned}, "
            f"fixed: {self.controllers_fixed}, states fixed: {self.states_fixed}",
        ]
        lines.extend(f"- {line}" for line in self.fixed)
        lines.append(f"Remaining issues: {self.remaining_issue_count}")
        lines.extend(f"- {issue}" for issue in self.remaining_issues)
        return "\n".join(lines)


class FailureRecord(BaseModel):
    """A clip or controller the build could not produce."""
    character: str
    animation: Optional[str] = None
    error_code: str
    message: str

    def __str__(self) -> str:
        subject = self.character if self.animation is None else f"{self.character}/{self.animation}"
        return f"{subject}: {self.error_code} - {self.message}"


class RunReport(BaseModel):
    """Summary of one build run."""
    frames_scanned: int = 0
    clips_touched: int = 0
    controllers_touched: int = 0
    lines: List[str] = Field(default_factory=list, description="Per-character result lines")
    failures: List[FailureRecord] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        """Totals, per-character lines and every failure with its reason."""
        out = [
            f"Done. Frames scanned: {self.frames_scanned}, "
            f"Clips created/updated: {self.clips_touched}, "
            f"Controllers created/updated: {self.controllers_touched}, "
            f"Failures: {len(self.failures)}",
        ]
        out.extend(self.lines)
        if self.failures:
            out.append("Failures:")
            out.extend(f"- {failure}" for failure in self.failures)
        return "\n".join(out)


class AnimationSummary(BaseModel):
    animation: str
    frame_count: int = Field(..., ge=0)
    frames: List[str] = Field(default_factory=list)


class CharacterSummary(BaseModel):
    """Frame pool summary for one detected character."""
    character: str
    frame_count: int = Field(..., ge=0)
    animations: List[AnimationSummary] = Field(default_factory=list)
