"""Project enhancement workflow: analyze, select, preview, save."""
from __future__ import annotations

from typing import Iterable

from resumeboost.config import Settings
from resumeboost.llm import LLMClient
from resumeboost.log import get_logger
from resumeboost.models import ProjectAnalysis, ReconciliationResult
from resumeboost.project_analysis import analyze_project_suitability
from resumeboost.reconciler import build_analysis_index, reconcile, select_from_analysis
from resumeboost.store import ResumeStore

log = get_logger(__name__)


class ProjectEnhancer:
    def __init__(
        self,
        settings: Settings,
        llm: LLMClient | None = None,
        store: ResumeStore | None = None,
    ) -> None:
        self.settings = settings
        self.llm = llm or LLMClient(settings)
        self.store = store or ResumeStore(settings.data_dir)

    def analyze(self, resume_id: str, job_description: str, target_role: str) -> ProjectAnalysis:
        items = self.store.read_items(resume_id)
        return analyze_project_suitability(
            self.llm,
            items,
            job_description,
            target_role,
            threshold=self.settings.suitability_threshold,
        )

    def preview(
        self,
        resume_id: str,
        analysis: ProjectAnalysis,
        replace_titles: Iterable[str] = (),
        add_titles: Iterable[str] = (),
    ) -> ReconciliationResult:
        """What the project list would become. Nothing is written."""
        replacements, additions = select_from_analysis(analysis, replace_titles, add_titles)
        result = reconcile(
            self.store.read_items(resume_id),
            build_analysis_index(analysis.items),
            replacements,
            additions,
            cap=self.settings.reconcile_cap,
        )
        if result.cap_blocked:
            log.info(
                "Resume %s already has %d suitable project(s); selections not added",
                resume_id, result.kept_count,
            )
        return result

    def apply(
        self,
        resume_id: str,
        analysis: ProjectAnalysis,
        replace_titles: Iterable[str] = (),
        add_titles: Iterable[str] = (),
    ) -> ReconciliationResult:
        result = self.preview(resume_id, analysis, replace_titles, add_titles)
        self.store.write_items(resume_id, result.final_items)
        return result
