"""Merge a resume's existing projects with selected AI suggestions under a size cap.

The merge is a pure function: same inputs, same output, inputs never mutated.

    kept      = originals whose analysis says suitable (original order)
    incoming  = replacements + additions (selection order)
    final     = kept + incoming[: cap - len(kept)]
"""
from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from resumeboost.config import RECONCILE_CAP
from resumeboost.log import get_logger
from resumeboost.models import (
    CandidateItem,
    ItemAnalysis,
    ProjectAnalysis,
    ReconciliationResult,
)

log = get_logger(__name__)


def normalize_title(title: str) -> str:
    """Matching key for titles: surrounding whitespace stripped, case kept."""
    return (title or "").strip()


def build_analysis_index(analyses: Iterable[ItemAnalysis]) -> dict[str, ItemAnalysis]:
    """Key analyses by normalized title. Later duplicates from the model are ignored."""
    index: dict[str, ItemAnalysis] = {}
    for a in analyses:
        key = normalize_title(a.title)
        if not key:
            continue
        if key in index:
            log.debug("Duplicate analysis entry for %r ignored", key)
            continue
        index[key] = a
    return index


def _check_unique_titles(items: Sequence[CandidateItem]) -> None:
    seen: set[str] = set()
    for item in items:
        key = normalize_title(item.title)
        if key in seen:
            raise ValueError(f"Duplicate item title {key!r}: titles must be unique to match analyses")
        seen.add(key)


def reconcile(
    original_items: Sequence[CandidateItem],
    analysis: Mapping[str, ItemAnalysis] | Iterable[ItemAnalysis],
    replacements: Sequence[CandidateItem] = (),
    additions: Sequence[CandidateItem] = (),
    *,
    cap: int = RECONCILE_CAP,
) -> ReconciliationResult:
    """Return the capped final item list plus kept/removed/added counts.

    Items without an analysis entry are treated as unsuitable and left out.
    Replacements fill free slots before additions; whatever does not fit
    is dropped and only counted.
    """
    if cap < 1:
        raise ValueError("cap must be at least 1")
    _check_unique_titles(original_items)

    if isinstance(analysis, Mapping):
        index = {normalize_title(k): v for k, v in analysis.items()}
    else:
        index = build_analysis_index(analysis)

    kept: list[CandidateItem] = []
    unanalyzed: list[str] = []
    for item in original_items:
        verdict = index.get(normalize_title(item.title))
        if verdict is None:
            unanalyzed.append(item.title)
            continue
        if verdict.suitable:
            kept.append(item)

    if unanalyzed:
        log.warning("No analysis for %d item(s), excluding: %s", len(unanalyzed), ", ".join(unanalyzed))

    incoming = list(replacements) + list(additions)
    final = list(kept)
    for item in incoming:
        if len(final) >= cap:
            break
        final.append(item)

    added = len(final) - len(kept)
    result = ReconciliationResult(
        final_items=tuple(final),
        kept_count=len(kept),
        removed_count=len(original_items) - len(kept),
        added_count=added,
        dropped_count=len(incoming) - added,
        unanalyzed_titles=tuple(unanalyzed),
    )
    log.info(
        "Project replacement: %d removed, %d added, %d kept. Total: %d/%d",
        result.removed_count, result.added_count, result.kept_count, len(final), cap,
    )
    return result


def select_from_analysis(
    analysis: ProjectAnalysis,
    replace_titles: Iterable[str] = (),
    add_titles: Iterable[str] = (),
) -> tuple[list[CandidateItem], list[CandidateItem]]:
    """Turn the user's checkbox selections into (replacements, additions).

    Only unsuitable items that carry a replacement can be replaced. Output
    follows the order of the selections, not the order of the analysis.
    """
    by_title = build_analysis_index(analysis.items)
    suggestions = {normalize_title(s.title): s for s in reversed(analysis.suggestions)}

    replacements: list[CandidateItem] = []
    for title in dict.fromkeys(normalize_title(t) for t in replace_titles):
        verdict = by_title.get(title)
        if verdict is None or verdict.suitable or verdict.replacement is None:
            log.debug("Ignoring replacement selection %r", title)
            continue
        replacements.append(verdict.replacement)

    additions: list[CandidateItem] = []
    for title in dict.fromkeys(normalize_title(t) for t in add_titles):
        suggestion = suggestions.get(title)
        if suggestion is None:
            log.debug("Ignoring unknown suggestion %r", title)
            continue
        additions.append(suggestion)

    return replacements, additions
