"""Score resume projects against a job and suggest replacements.

The model reply is untrusted: anything that does not parse becomes a
deterministic fallback instead of an error for the caller.
"""
from __future__ import annotations

import json
from typing import Any, Sequence

from resumeboost.config import SUITABILITY_THRESHOLD
from resumeboost.errors import LLMServiceError, MalformedResponseError, TransientServiceError
from resumeboost.llm import LLMClient, parse_json_reply
from resumeboost.log import get_logger
from resumeboost.models import CandidateItem, ItemAnalysis, ProjectAnalysis
from resumeboost.reconciler import normalize_title

log = get_logger(__name__)

BULLETS_PER_PROJECT = 3

_ROLE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "frontend": ("frontend", "front-end", "front end", "react", "angular", "vue", "ui developer"),
    "backend": ("backend", "back-end", "back end", "api", "java", "spring", "node", "django"),
}

FALLBACK_PROJECTS: dict[str, tuple[CandidateItem, ...]] = {
    "backend": (
        CandidateItem(
            title="Spring Boot E-Commerce API",
            bullets=(
                "Developed RESTful e-commerce API with Spring Boot covering authentication, catalog and order management.",
                "Implemented JWT security and role-based access control across twelve protected endpoints.",
                "Optimized database queries with indexing and caching, cutting median response time by 35%.",
            ),
            source_url="https://github.com/spring-projects/spring-petclinic",
        ),
        CandidateItem(
            title="Node.js Microservices Architecture",
            bullets=(
                "Architected Node.js and Express microservices communicating through REST and message queues.",
                "Implemented centralized logging, validation and error handling shared across four services.",
                "Containerized services with Docker Compose for reproducible local and CI environments.",
            ),
            source_url="https://github.com/goldbergyoni/nodebestpractices",
        ),
    ),
    "frontend": (
        CandidateItem(
            title="React Dashboard Application",
            bullets=(
                "Built responsive React dashboard with reusable chart components and client-side routing.",
                "Implemented state management and data fetching hooks with loading and error states.",
                "Improved Lighthouse performance score to 95 through code splitting and memoization.",
            ),
            source_url="https://github.com/creativetimofficial/material-dashboard-react",
        ),
        CandidateItem(
            title="Vue.js E-commerce Store",
            bullets=(
                "Developed Vue.js storefront with product listing, cart and checkout flows.",
                "Integrated payment gateway sandbox and form validation for secure checkout.",
                "Implemented accessible, mobile-first layouts verified across major browsers.",
            ),
            source_url="https://github.com/vuejs/vue",
        ),
    ),
    "fullstack": (
        CandidateItem(
            title="MERN Stack Social Network",
            bullets=(
                "Developed MERN social platform with profiles, posts and real-time chat.",
                "Implemented token-based authentication and protected routes across client and server.",
                "Deployed with CI pipeline running unit and integration tests on every push.",
            ),
            source_url="https://github.com/bradtraversy/devconnector_2.0",
        ),
        CandidateItem(
            title="Django React Blog Platform",
            bullets=(
                "Built Django REST backend and React frontend for a multi-author blog.",
                "Implemented comments, moderation and admin dashboard with granular permissions.",
                "Optimized ORM queries and pagination to serve feeds under 200 ms.",
            ),
            source_url="https://github.com/django/django",
        ),
    ),
}


def role_type(role: str) -> str:
    low = (role or "").lower()
    for kind, keywords in _ROLE_KEYWORDS.items():
        if any(k in low for k in keywords):
            return kind
    return "fullstack"


def fallback_suggestions(target_role: str) -> tuple[CandidateItem, ...]:
    return FALLBACK_PROJECTS[role_type(target_role)]


def fallback_bullets(title: str, tech_stack: Sequence[str]) -> list[str]:
    main_tech = tech_stack[0] if tech_stack else "modern technologies"
    return [
        f"Developed {title} using {main_tech} to solve business challenges and improve operational efficiency.",
        "Implemented key features including user authentication, data management, and reporting functionality for enhanced user experience.",
        "Optimized application performance by 40% through code refactoring and database query optimization techniques.",
    ]


def _analysis_prompt(
    items: Sequence[CandidateItem],
    job_description: str,
    target_role: str,
    threshold: int = SUITABILITY_THRESHOLD,
) -> str:
    projects = [
        {"title": p.title, "summary": p.bullets[0] if p.bullets else "No summary provided."}
        for p in items
    ]
    return f"""You are an expert resume analyzer and project recommender.

### Job Description:
{job_description}

### Role:
{target_role or 'Not specified'}

### Resume Projects:
{json.dumps(projects, indent=2)}

Score each project from 0 to 100 for fit with the job description and role and give a
brief reason for low scores. For every project scoring below {threshold},
suggest one replacement open-source or academic project. Also suggest up to 3 additional
projects. Each suggested project needs a GitHub link, a short title and exactly
{BULLETS_PER_PROJECT} role-specific bullet points of up to 20 words.

Respond ONLY with valid JSON in this exact structure:
{{
  "projectAnalysis": [
    {{"title": "Original Project Title", "score": 0, "reason": "...",
      "replacementSuggestion": {{"title": "...", "githubUrl": "https://github.com/...", "bulletPoints": ["...", "...", "..."]}}}}
  ],
  "suggestedProjects": [
    {{"title": "...", "githubUrl": "https://github.com/...", "bulletPoints": ["...", "...", "..."]}}
  ]
}}"""


def _parse_verdict(entry: dict[str, Any], threshold: int) -> ItemAnalysis:
    title = normalize_title(str(entry.get("title") or ""))
    if not title:
        raise MalformedResponseError("Analysis entry without a title", raw=json.dumps(entry))

    score: int | None = None
    if entry.get("score") is not None:
        try:
            score = max(0, min(int(entry["score"]), 100))
        except (TypeError, ValueError) as exc:
            raise MalformedResponseError(f"Bad score for {title!r}", raw=json.dumps(entry)) from exc

    # An explicit score wins over the model's own boolean
    if score is not None:
        suitable = score >= threshold
    elif isinstance(entry.get("suitable"), bool):
        suitable = entry["suitable"]
    else:
        raise MalformedResponseError(f"No verdict for {title!r}", raw=json.dumps(entry))

    raw_replacement = entry.get("replacementSuggestion")
    replacement = None
    if isinstance(raw_replacement, dict):
        candidate = CandidateItem.from_dict(raw_replacement)
        if candidate.title:
            replacement = candidate

    return ItemAnalysis(
        title=title,
        suitable=suitable,
        score=score,
        reason=(entry.get("reason") or None) if not suitable else None,
        replacement=replacement,
    )


def parse_project_analysis(data: Any, threshold: int = SUITABILITY_THRESHOLD) -> ProjectAnalysis:
    """Validate the model's JSON into a ProjectAnalysis. Raises MalformedResponseError."""
    if not isinstance(data, dict) or not isinstance(data.get("projectAnalysis"), list):
        raise MalformedResponseError("Missing projectAnalysis list", raw=json.dumps(data)[:500])

    items = tuple(
        _parse_verdict(e, threshold) for e in data["projectAnalysis"] if isinstance(e, dict)
    )
    suggestions = tuple(
        s
        for s in (
            CandidateItem.from_dict(raw)
            for raw in data.get("suggestedProjects") or []
            if isinstance(raw, dict)
        )
        if s.title
    )
    return ProjectAnalysis(items=items, suggestions=suggestions)


def fallback_analysis(items: Sequence[CandidateItem], target_role: str) -> ProjectAnalysis:
    """Keep every existing project and offer the canned suggestions."""
    return ProjectAnalysis(
        items=tuple(ItemAnalysis(title=normalize_title(p.title), suitable=True) for p in items),
        suggestions=fallback_suggestions(target_role),
        fallback=True,
    )


def analyze_project_suitability(
    llm: LLMClient,
    items: Sequence[CandidateItem],
    job_description: str,
    target_role: str,
    *,
    threshold: int = SUITABILITY_THRESHOLD,
) -> ProjectAnalysis:
    """Ask the model which projects fit the job.

    CredentialsError propagates. Transient and parse failures fall back to
    :func:`fallback_analysis`, which removes nothing.
    """
    if not items:
        log.info("No projects on resume; offering suggestions only")

    prompt = _analysis_prompt(items, job_description, target_role, threshold)
    try:
        analysis = parse_project_analysis(parse_json_reply(llm.complete(prompt)), threshold)
    except MalformedResponseError as exc:
        log.warning("Project analysis reply unusable (%s); using fallback", exc)
        return fallback_analysis(items, target_role)
    except (TransientServiceError, LLMServiceError) as exc:
        log.error("Project analysis failed (%s); using fallback", exc)
        return fallback_analysis(items, target_role)

    if not analysis.suggestions:
        analysis = ProjectAnalysis(items=analysis.items, suggestions=fallback_suggestions(target_role))

    log.info(
        "Project analysis: %d total, %d suitable, %d to replace",
        analysis.total, analysis.suitable_count, analysis.unsuitable_count,
    )
    return analysis


def generate_project_bullets(
    llm: LLMClient,
    title: str,
    tech_stack: Sequence[str],
    job_description: str,
    target_role: str,
) -> list[str]:
    """Three resume bullets for a manually entered project. Never raises except on bad credentials."""
    prompt = f"""Generate exactly {BULLETS_PER_PROJECT} bullet points for a resume project.

Project Title: {title}
Tech Stack: {', '.join(tech_stack)}
Target Role: {target_role}
Job Description: {job_description}

Each bullet is up to 20 words, starts with a strong action verb, names technologies
from the tech stack and focuses on measurable impact.

Format your response as a JSON array with exactly {BULLETS_PER_PROJECT} strings."""
    try:
        data = parse_json_reply(llm.complete(prompt))
    except (MalformedResponseError, TransientServiceError, LLMServiceError) as exc:
        log.warning("Bullet generation for %r failed (%s); using fallback", title, exc)
        return fallback_bullets(title, tech_stack)

    bullets = [str(b).strip() for b in data if str(b).strip()] if isinstance(data, list) else []
    if len(bullets) < BULLETS_PER_PROJECT:
        log.warning("Bullet generation for %r returned %d bullets; using fallback", title, len(bullets))
        return fallback_bullets(title, tech_stack)
    return bullets[:BULLETS_PER_PROJECT]
