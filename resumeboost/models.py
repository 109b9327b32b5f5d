"""Data models for auto-apply jobs and resume items."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass(frozen=True)
class ApplyResult:
    success: bool
    message: str = ""
    screenshot_url: str | None = None
    redirect_url: str | None = None
    confirmation_text: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApplyResult":
        return cls(
            success=bool(data.get("success", False)),
            message=str(data.get("message") or ""),
            screenshot_url=data.get("screenshotUrl") or data.get("screenshot_url"),
            redirect_url=data.get("redirectUrl") or data.get("redirect_url"),
            confirmation_text=(
                data.get("applicationConfirmationText") or data.get("confirmation_text")
            ),
        )


@dataclass(frozen=True)
class StatusReport:
    """One reply from the status endpoint."""

    status: JobStatus
    progress: int = 0
    current_step: str = ""
    result: ApplyResult | None = None
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatusReport":
        status = JobStatus(str(data.get("status", "")).lower())
        try:
            progress = int(data.get("progress") or 0)
        except (TypeError, ValueError):
            progress = 0
        raw_result = data.get("result")
        return cls(
            status=status,
            progress=max(0, min(progress, 100)),
            current_step=str(data.get("currentStep") or data.get("current_step") or ""),
            result=ApplyResult.from_dict(raw_result) if isinstance(raw_result, dict) else None,
            error=data.get("error"),
        )


@dataclass(frozen=True)
class JobSubmission:
    id: str
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    current_step: str = "Initializing..."
    result: ApplyResult | None = None
    error: str | None = None
    # Set when the status channel itself broke; the remote job state is then unknown
    tracking_error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def cancelled(self) -> bool:
        return self.status is JobStatus.FAILED and self.error == CANCELLED_MESSAGE


CANCELLED_MESSAGE = "Cancelled by user"


@dataclass(frozen=True)
class CandidateItem:
    title: str
    bullets: tuple[str, ...] = ()
    source_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CandidateItem":
        bullets = data.get("bullets") or data.get("bulletPoints") or []
        return cls(
            title=str(data.get("title") or "").strip(),
            bullets=tuple(str(b).strip() for b in bullets if str(b).strip()),
            source_url=data.get("githubUrl") or data.get("source_url") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"title": self.title, "bullets": list(self.bullets)}
        if self.source_url:
            out["githubUrl"] = self.source_url
        return out


@dataclass(frozen=True)
class ItemAnalysis:
    title: str
    suitable: bool
    score: int | None = None
    reason: str | None = None
    replacement: CandidateItem | None = None


@dataclass(frozen=True)
class ProjectAnalysis:
    items: tuple[ItemAnalysis, ...]
    suggestions: tuple[CandidateItem, ...] = ()
    fallback: bool = False

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def suitable_count(self) -> int:
        return sum(1 for a in self.items if a.suitable)

    @property
    def unsuitable_count(self) -> int:
        return self.total - self.suitable_count


@dataclass(frozen=True)
class ReconciliationResult:
    final_items: tuple[CandidateItem, ...]
    kept_count: int
    removed_count: int
    added_count: int
    dropped_count: int = 0
    unanalyzed_titles: tuple[str, ...] = field(default_factory=tuple)

    @property
    def cap_blocked(self) -> bool:
        """Selections were made but none fit; callers surface this as a no-op."""
        return self.added_count == 0 and self.dropped_count > 0


def str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v).strip() for v in value if str(v).strip())


def _clamped_score(value: Any) -> int:
    try:
        return max(0, min(int(round(float(value))), 100))
    except (TypeError, ValueError):
        raise ValueError(f"score must be a number, got {value!r}") from None


@dataclass(frozen=True)
class MatchScore:
    """Quick resume-vs-job match."""

    score: int
    analysis: str = ""
    key_strengths: tuple[str, ...] = ()
    improvement_areas: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MatchScore":
        return cls(
            score=_clamped_score(data.get("score")),
            analysis=str(data.get("analysis") or ""),
            key_strengths=str_tuple(data.get("keyStrengths")),
            improvement_areas=str_tuple(data.get("improvementAreas")),
        )


@dataclass(frozen=True)
class ComprehensiveScore:
    overall: int
    match_band: str
    interview_probability: str
    confidence: str
    weighting_mode: str = "GENERAL"
    job_title: str | None = None
    missing_keywords: tuple[str, ...] = ()
    actions: tuple[str, ...] = ()
    analysis: str = ""
    key_strengths: tuple[str, ...] = ()
    improvement_areas: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    breakdown: tuple[dict[str, Any], ...] = field(default=(), compare=False)
    cached: bool = False
    cache_expires_at: float | None = None
    fallback: bool = False
