"""Score a resume against a job description with role-aware ATS rubrics."""
from __future__ import annotations

import hashlib
import json
import threading
import time
from dataclasses import replace
from typing import Any, Callable, Mapping

from resumeboost.errors import LLMServiceError, MalformedResponseError, TransientServiceError
from resumeboost.llm import LLMClient, parse_json_reply
from resumeboost.log import get_logger
from resumeboost.models import ComprehensiveScore, MatchScore, str_tuple

log = get_logger(__name__)

CACHE_TTL_SECONDS = 24 * 60 * 60
SCORE_FLOOR = 90
FLOOR_ORIGINS: tuple[str, ...] = ("guided", "jd_optimized")
REQUIRED_SECTIONS: tuple[str, ...] = ("education", "workExperience", "projects", "skills")

# (lower bound, band, interview probability)
MATCH_BANDS: tuple[tuple[int, str, str], ...] = (
    (90, "Excellent Match", "95-100%"),
    (80, "Very Good Match", "85-94%"),
    (70, "Good Match", "70-84%"),
    (60, "Fair Match", "50-69%"),
    (50, "Below Average", "30-49%"),
    (40, "Poor Match", "15-29%"),
    (30, "Very Poor", "5-14%"),
    (20, "Inadequate", "1-4%"),
    (10, "Minimal Match", "0.1-1%"),
    (0, "No Match", "0%"),
)

RUBRIC: tuple[tuple[str, int], ...] = (
    ("keywords_match", 25),
    ("skills_alignment", 20),
    ("experience_relevance", 15),
    ("technical_skills", 12),
    ("education_match", 10),
    ("quantified_achievements", 8),
    ("employment_history", 8),
    ("industry_experience", 7),
    ("job_title_match", 6),
    ("career_progression", 6),
    ("certifications", 5),
    ("formatting_quality", 5),
    ("content_quality", 4),
    ("grammar_spelling", 3),
    ("resume_length", 2),
    ("filename_format", 2),
)


def match_band(score: int) -> tuple[str, str]:
    """Return (band, interview probability range) for a 0-100 score."""
    for lower, band, probability in MATCH_BANDS:
        if score >= lower:
            return band, probability
    return MATCH_BANDS[-1][1], MATCH_BANDS[-1][2]


def confidence_for(score: int) -> str:
    if score >= 80:
        return "High"
    if score >= 60:
        return "Medium"
    return "Low"


def _has_section(resume: Mapping[str, Any], key: str) -> bool:
    value = resume.get(key)
    return bool(value) if not isinstance(value, str) else bool(value.strip())


def apply_score_floor(score: int, resume: Mapping[str, Any]) -> int:
    """Raise the score to SCORE_FLOOR for resumes built through the guided flows.

    A resume with every required section filled in counts as guided too.
    """
    if resume.get("origin") in FLOOR_ORIGINS or all(_has_section(resume, s) for s in REQUIRED_SECTIONS):
        return max(score, SCORE_FLOOR)
    return score


def cache_key(resume_text: str, job_description: str | None = None, job_title: str | None = None) -> str:
    parts = (resume_text, job_description or "", job_title or "")
    return "_".join(hashlib.sha256(p.encode("utf-8")).hexdigest() for p in parts)


def reconstruct_resume_text(resume: Mapping[str, Any]) -> str:
    """Flatten structured resume data into the plain text the scorers read."""
    lines = [f"Name: {resume.get('name', '')}"]
    for key, label in (("phone", "Phone"), ("email", "Email"), ("linkedin", "LinkedIn"), ("github", "GitHub")):
        if resume.get(key):
            lines.append(f"{label}: {resume[key]}")
    if resume.get("summary"):
        lines.append(f"\nPROFESSIONAL SUMMARY:\n{resume['summary']}")

    if resume.get("workExperience"):
        lines.append("\nWORK EXPERIENCE:")
        for job in resume["workExperience"]:
            lines.append(f"{job.get('role', '')} at {job.get('company', '')} ({job.get('year', '')})")
            lines.extend(f"• {b}" for b in job.get("bullets") or [])

    if resume.get("education"):
        lines.append("\nEDUCATION:")
        for edu in resume["education"]:
            lines.append(f"{edu.get('degree', '')} from {edu.get('school', '')} ({edu.get('year', '')})")

    if resume.get("projects"):
        lines.append("\nPROJECTS:")
        for project in resume["projects"]:
            lines.append(str(project.get("title", "")))
            lines.extend(f"• {b}" for b in project.get("bullets") or [])

    if resume.get("skills"):
        lines.append("\nSKILLS:")
        for group in resume["skills"]:
            lines.append(f"{group.get('category', '')}: {', '.join(group.get('list') or [])}")

    if resume.get("certifications"):
        lines.append("\nCERTIFICATIONS:")
        lines.extend(f"• {c}" for c in resume["certifications"])

    return "\n".join(lines)


def fallback_score(job_description: str | None = None, job_title: str | None = None) -> ComprehensiveScore:
    """Zero score returned when the model cannot produce one."""
    band, probability = match_band(0)
    return ComprehensiveScore(
        overall=0,
        match_band=band,
        interview_probability=probability,
        confidence="Low",
        weighting_mode="JD" if job_description else "GENERAL",
        job_title=job_title or None,
        actions=("Failed to get score. Please try again later.",),
        analysis="Could not generate a comprehensive score. Please ensure your input is valid and try again.",
        notes=("AI response could not be parsed or the API call failed repeatedly.",),
        recommendations=(
            "Please try analyzing your resume again.",
            "If the issue persists, contact support.",
        ),
        fallback=True,
    )


def _match_prompt(resume_text: str, job_description: str) -> str:
    return f"""You are an expert ATS (Applicant Tracking System) and HR professional. Analyze the match between the provided resume and job description.

RESUME CONTENT:
{resume_text}

JOB DESCRIPTION:
{job_description}

Calculate a match score from 0-100 weighting skills alignment 40%, experience
relevance 30%, education and qualifications 15% and keyword presence 15%.
Identify key strengths that align with the job and specific areas for improvement.

Respond ONLY with valid JSON in this exact structure:
{{
  "score": 0,
  "analysis": "2-3 sentence summary of overall match quality",
  "keyStrengths": ["strength1", "strength2", "strength3"],
  "improvementAreas": ["area1", "area2", "area3"]
}}"""


def _comprehensive_prompt(
    resume_text: str,
    job_description: str | None,
    job_title: str | None,
    filename: str | None,
) -> str:
    total = sum(weight for _, weight in RUBRIC)
    rubric = "\n".join(f"{n}. {key} ({weight} points)" for n, (key, weight) in enumerate(RUBRIC, 1))
    context = ""
    if job_description:
        context += f"JOB DESCRIPTION:\n{job_description}\n\n"
    if job_title:
        context += f"JOB TITLE: {job_title}\n\n"
    if filename:
        context += f"RESUME FILENAME: {filename}\n\n"
    keywords = (
        "- Return 3-8 missing_keywords with suggested placement\n" if job_description else ""
    )
    return f"""You are an expert ATS and resume evaluation specialist. Score this resume with the rubric below.

RESUME CONTENT:
{resume_text}

{context}SCORING RUBRIC ({len(RUBRIC)} metrics, {total} points, normalized to 0-100):
{rubric}

REQUIREMENTS:
{keywords}- Include 5-7 actionable fixes
- Summarize the assessment in 2-3 sentences

Respond ONLY with valid JSON in this exact structure:
{{
  "overall": 0,
  "breakdown": [{{"key": "keywords_match", "score": 0, "max_score": 25, "details": "..."}}],
  "missing_keywords": [],
  "actions": ["action1", "action2"],
  "notes": ["note1"],
  "analysis": "summary",
  "keyStrengths": ["strength1"],
  "improvementAreas": ["area1"],
  "recommendations": ["rec1"]
}}"""


def parse_comprehensive_score(
    data: Any,
    job_description: str | None = None,
    job_title: str | None = None,
) -> ComprehensiveScore:
    """Build a ComprehensiveScore; band and confidence always follow ``overall``."""
    if not isinstance(data, dict) or "overall" not in data:
        raise MalformedResponseError("Score reply has no 'overall' field", raw=json.dumps(data)[:500])
    try:
        overall = max(0, min(int(round(float(data["overall"]))), 100))
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError("Score reply has a non-numeric 'overall'", raw=str(data["overall"])) from exc

    band, probability = match_band(overall)
    breakdown = data.get("breakdown")
    return ComprehensiveScore(
        overall=overall,
        match_band=band,
        interview_probability=probability,
        confidence=confidence_for(overall),
        weighting_mode="JD" if job_description else "GENERAL",
        job_title=job_title or None,
        missing_keywords=str_tuple(data.get("missing_keywords")),
        actions=str_tuple(data.get("actions")),
        analysis=str(data.get("analysis") or ""),
        key_strengths=str_tuple(data.get("keyStrengths")),
        improvement_areas=str_tuple(data.get("improvementAreas")),
        recommendations=str_tuple(data.get("recommendations")),
        notes=str_tuple(data.get("notes")),
        breakdown=tuple(b for b in breakdown if isinstance(b, dict)) if isinstance(breakdown, list) else (),
    )


class ResumeScorer:
    """Match and comprehensive scoring, with comprehensive results cached in memory."""

    def __init__(
        self,
        llm: LLMClient,
        *,
        cache_ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.llm = llm
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._cache: dict[str, tuple[ComprehensiveScore, float]] = {}
        self._lock = threading.Lock()

    def match_score(self, resume_text: str, job_description: str) -> MatchScore:
        """Quick 0-100 match. Errors propagate; an unusable reply is MalformedResponseError."""
        if not resume_text.strip() or not job_description.strip():
            raise ValueError("resume_text and job_description are required")
        data = parse_json_reply(self.llm.complete(_match_prompt(resume_text, job_description)))
        if not isinstance(data, dict):
            raise MalformedResponseError("Match score reply is not an object", raw=json.dumps(data)[:500])
        try:
            score = MatchScore.from_dict(data)
        except ValueError as exc:
            raise MalformedResponseError(str(exc), raw=json.dumps(data)[:500]) from exc
        log.info("Match score: %d", score.score)
        return score

    def comprehensive_score(
        self,
        resume_text: str,
        job_description: str | None = None,
        job_title: str | None = None,
        *,
        filename: str | None = None,
    ) -> ComprehensiveScore:
        """Full rubric score. Never raises except on bad credentials.

        Failed attempts return :func:`fallback_score` and are not cached.
        """
        if not resume_text.strip():
            raise ValueError("resume_text is required")

        key = cache_key(resume_text, job_description, job_title)
        now = self._clock()
        with self._lock:
            hit = self._cache.get(key)
            if hit is not None and now - hit[1] >= self.cache_ttl:
                del self._cache[key]
                hit = None
        if hit is not None:
            log.info("Returning cached score result")
            score, stored_at = hit
            return replace(score, cached=True, cache_expires_at=stored_at + self.cache_ttl)

        prompt = _comprehensive_prompt(resume_text, job_description, job_title, filename)
        try:
            score = parse_comprehensive_score(
                parse_json_reply(self.llm.complete(prompt)), job_description, job_title
            )
        except MalformedResponseError as exc:
            log.warning("Score reply unusable (%s); returning fallback score", exc)
            return fallback_score(job_description, job_title)
        except (TransientServiceError, LLMServiceError) as exc:
            log.error("Scoring failed (%s); returning fallback score", exc)
            return fallback_score(job_description, job_title)

        with self._lock:
            self._cache[key] = (score, now)
        log.info("Resume score: %d (%s, %s confidence)", score.overall, score.match_band, score.confidence)
        return score
