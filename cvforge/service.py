"""
Request-level facade over the four contexts.

CVForgeService is what a web layer or CLI talks to: it validates raw request data,
applies the per-client throttle, and delegates to the contexts. It holds no
per-request state.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from loguru import logger

from cvforge.contexts.intake.job_data_structure import JobDescription
from cvforge.contexts.intake.keyword_extractor import KeywordAnalysis, KeywordExtractor
from cvforge.contexts.rendering.render_job import DocumentRenderer, RenderResult
from cvforge.contexts.targeting.content_tailor import (
    DEFAULT_TARGET_SCORE,
    ContentTailor,
    OptimizationResult,
    TailoringResult,
)
from cvforge.contexts.targeting.profile_data_structure import UserProfile
from cvforge.contexts.targeting.relevance import MatchAnalysis, profile_keywords, score_match
from cvforge.contexts.targeting.tailored_cv import TailoredCV
from cvforge.contexts.templating.defaults import sanitize_template_name
from cvforge.utils.batch import BatchOutcome
from cvforge.utils.llm import LLMProvider
from cvforge.utils.throttle import SlidingWindowThrottle


class CVForgeService:
    """
    Wires extraction, tailoring and rendering behind one throttled entry point.

    Args:
        provider: Generative-text provider (None: deterministic fallbacks only)
        renderer: Document renderer (default: DocumentRenderer with LatexCompiler)
        throttle: Per-client throttle (default: in-memory sliding window)
        max_workers: Thread pool size for concurrent steps
    """

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        renderer: Optional[DocumentRenderer] = None,
        throttle: Optional[SlidingWindowThrottle] = None,
        max_workers: int = 4,
    ):
        self.extractor = KeywordExtractor(provider, max_workers=max_workers)
        self.tailor = ContentTailor(provider, extractor=self.extractor, max_workers=max_workers)
        self.renderer = renderer or DocumentRenderer(max_workers=max_workers)
        self.throttle = throttle or SlidingWindowThrottle()

    def _admit(self, client_id: str, operation: str) -> None:
        decision = self.throttle.acquire(client_id)
        logger.debug(f"{operation} for client '{client_id}' ({decision.remaining} requests left)")

    # --- Intake ---

    def extract_keywords(self, client_id: str, text: str) -> KeywordAnalysis:
        """
        Raises:
            RateLimitExceeded: If the client is over budget
        """
        self._admit(client_id, "extract_keywords")
        return self.extractor.analyze(text)

    def extract_many(
        self, client_id: str, postings: Sequence[Mapping[str, Any]]
    ) -> BatchOutcome:
        self._admit(client_id, "extract_many")
        return self.extractor.extract_many(postings)

    # --- Targeting ---

    def tailor_cv(
        self,
        client_id: str,
        profile_data: Mapping[str, Any],
        job_data: Mapping[str, Any],
        template: str = "modern",
    ) -> TailoringResult:
        """
        Tailor a raw profile to a raw job posting.

        Raises:
            RateLimitExceeded: If the client is over budget
            ValidationError: If the profile or job data is invalid
        """
        self._admit(client_id, "tailor_cv")
        profile = UserProfile.from_dict(profile_data)
        job = JobDescription.from_dict(job_data)
        template = sanitize_template_name(template, self.renderer.registry.names())
        return self.tailor.tailor(profile, job, template=template)

    def score_profile(
        self, client_id: str, profile_data: Mapping[str, Any], job_keywords: Iterable[Any]
    ) -> MatchAnalysis:
        self._admit(client_id, "score_profile")
        return score_match(profile_keywords(UserProfile.from_dict(profile_data)), job_keywords)

    def optimize_cv(
        self,
        client_id: str,
        cv_data: Mapping[str, Any],
        job_keywords: Iterable[Any],
        target_score: int = DEFAULT_TARGET_SCORE,
    ) -> OptimizationResult:
        self._admit(client_id, "optimize_cv")
        return self.tailor.optimize(TailoredCV.from_dict(cv_data), job_keywords, target_score)

    # --- Rendering ---

    def templates(self) -> List[Dict[str, Any]]:
        """Template catalog (not throttled, performs no rendering)."""
        return [info.to_dict() for info in self.renderer.templates()]

    def render(self, client_id: str, request_data: Mapping[str, Any]) -> RenderResult:
        """
        Raises:
            RateLimitExceeded: If the client is over budget
            ValidationError: If the request is invalid
            CompilationError: If the document cannot be produced
        """
        self._admit(client_id, "render")
        return self.renderer.render(self.renderer.request_from_dict(request_data))

    def render_many(
        self, client_id: str, request_data: Mapping[str, Any], templates: Sequence[str]
    ) -> BatchOutcome:
        self._admit(client_id, "render_many")
        return self.renderer.render_many(self.renderer.request_from_dict(request_data), templates)
