"""
Render jobs: populated template -> compiled, checked artifact.

Each job runs in its own temporary workspace tagged with its job id. The workspace
is removed on every exit path, and the artifact leaves it only after every check
passes, so a job yields either a complete valid document or nothing.
"""

import os
import shutil
import tempfile
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from dotenv import load_dotenv

from cvforge.contexts.rendering.compiler import (
    LATEX_TIMEOUT_S,
    CompilationResult,
    Compiler,
    LatexCompiler,
)
from cvforge.contexts.rendering.logger import (
    _log_debug,
    _log_error,
    _log_info,
    log_compilation_result,
    log_compilation_start,
)
from cvforge.contexts.templating.defaults import (
    DEFAULT_TEMPLATE,
    sanitize_color_scheme,
    sanitize_font_size,
    sanitize_margins,
    sanitize_template_name,
)
from cvforge.contexts.templating.populator import TemplatePopulator
from cvforge.contexts.templating.template_registry import TemplateInfo, TemplateRegistry
from cvforge.exceptions import CompilationError, ValidationError
from cvforge.utils.batch import BatchOutcome, run_concurrently
from cvforge.utils.timestamp import now_exact

load_dotenv()
MAX_ARTIFACT_BYTES = int(os.getenv("MAX_ARTIFACT_BYTES", str(10 * 1024 * 1024)))
RENDER_WORK_ROOT = os.getenv("RENDER_WORK_ROOT") or None
RENDER_OUTPUT_PATH = Path(os.getenv("RENDER_OUTPUT_PATH", "outs/results"))

MAX_TEMPLATES_PER_REQUEST = 5
WORKSPACE_PREFIX = "cvforge-"


class RenderState(str, Enum):
    CREATED = "created"
    TEMPLATE_POPULATED = "template_populated"
    COMPILING = "compiling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CLEANED = "cleaned"


class FailureReason(str, Enum):
    TIMEOUT = "timeout"
    COMPILER_ERROR = "compiler_error"
    EMPTY_OUTPUT = "empty_output"
    OVERSIZED = "oversized"


@dataclass(frozen=True)
class RenderOptions:
    """
    Allow-listed rendering options. Invalid values silently become defaults.

    Attributes:
        font_size: 10pt | 11pt | 12pt
        margins: narrow | normal | wide
        color_scheme: blue | red | green | purple | orange | teal | black
    """

    font_size: str = "11pt"
    margins: str = "normal"
    color_scheme: str = "blue"

    def __post_init__(self):
        object.__setattr__(self, "font_size", sanitize_font_size(self.font_size))
        object.__setattr__(self, "margins", sanitize_margins(self.margins))
        object.__setattr__(self, "color_scheme", sanitize_color_scheme(self.color_scheme))

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "RenderOptions":
        """Build from request options (camelCase or snake_case keys)."""
        data = data if isinstance(data, Mapping) else {}
        return cls(
            font_size=data.get("fontSize", data.get("font_size")),
            margins=data.get("margins"),
            color_scheme=data.get("colorScheme", data.get("color_scheme")),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "fontSize": self.font_size,
            "margins": self.margins,
            "colorScheme": self.color_scheme,
        }


@dataclass(frozen=True)
class RenderRequest:
    """
    Validated render request.

    Attributes:
        cv_data: CV content (personal block with name and email required)
        template: Sanitized, allow-listed template identifier
        options: Sanitized rendering options
    """

    cv_data: Dict[str, Any]
    template: str = DEFAULT_TEMPLATE
    options: RenderOptions = field(default_factory=RenderOptions)

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], allowed_templates: Optional[Iterable[str]] = None
    ) -> "RenderRequest":
        """
        Validate a render request.

        Args:
            data: {cvData: {...}, template, options: {fontSize, margins, colorScheme}}
            allowed_templates: Template allow-list (default: packaged catalog)

        Raises:
            ValidationError: If cvData, personal.name or personal.email is missing
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Invalid render request", ["Expected an object"])

        cv_data = data.get("cvData", data.get("cv_data"))
        if not isinstance(cv_data, Mapping):
            raise ValidationError("Invalid render request", ["cvData is required"])

        personal = cv_data.get("personal")
        personal = personal if isinstance(personal, Mapping) else {}
        issues = [
            f"personal.{key} is required"
            for key in ("name", "email")
            if not str(personal.get(key) or "").strip()
        ]
        if issues:
            raise ValidationError("Invalid render request", issues)

        if allowed_templates is None:
            allowed_templates = TemplateRegistry().names()

        return cls(
            cv_data=dict(cv_data),
            template=sanitize_template_name(data.get("template"), allowed_templates),
            options=RenderOptions.from_dict(data.get("options")),
        )

    def with_template(self, template: Any, allowed_templates: Iterable[str]) -> "RenderRequest":
        return replace(self, template=sanitize_template_name(template, allowed_templates))


@dataclass
class RenderResult:
    """
    Delivered render artifact.

    Attributes:
        job_id: Render job identifier
        filename: Artifact file name
        size_bytes: Artifact size
        generated_at: ISO 8601 completion timestamp
        template_used: Template identifier
        artifact_path: Where the artifact was delivered
        page_count: Pages in the document (None if unreadable)
        warnings: Compiler warnings
        unresolved_markers: Template markers left unfilled (quality warning)
        history: State transitions of the job
    """

    job_id: str
    filename: str
    size_bytes: int
    generated_at: str
    template_used: str
    artifact_path: Path
    page_count: Optional[int] = None
    warnings: List[str] = field(default_factory=list)
    unresolved_markers: List[str] = field(default_factory=list)
    history: List[RenderState] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobId": self.job_id,
            "filename": self.filename,
            "sizeBytes": self.size_bytes,
            "generatedAt": self.generated_at,
            "templateUsed": self.template_used,
        }

    def discard(self) -> None:
        """Delete the delivered artifact (no-op if already gone)."""
        self.artifact_path.unlink(missing_ok=True)


class RenderJob:
    """
    One request -> one artifact, tracked through its states.

    created -> template_populated -> compiling -> succeeded | failed -> cleaned

    Args:
        request: Validated render request
        populator: Template populator
        compiler: Compiler capability
        output_dir: Where successful artifacts are delivered
        work_root: Parent for the job workspace (default: system temp dir)
        timeout_s: Compiler timeout
        max_artifact_bytes: Size ceiling for the artifact
    """

    def __init__(
        self,
        request: RenderRequest,
        populator: TemplatePopulator,
        compiler: Compiler,
        output_dir: Path = RENDER_OUTPUT_PATH,
        work_root: Optional[Union[str, Path]] = RENDER_WORK_ROOT,
        timeout_s: float = LATEX_TIMEOUT_S,
        max_artifact_bytes: int = MAX_ARTIFACT_BYTES,
    ):
        self.job_id = uuid.uuid4().hex
        self.request = request
        self.populator = populator
        self.compiler = compiler
        self.output_dir = Path(output_dir)
        self.work_root = work_root
        self.timeout_s = timeout_s
        self.max_artifact_bytes = max_artifact_bytes

        self.history: List[RenderState] = [RenderState.CREATED]
        self.workspace: Optional[Path] = None
        self.failure_reason: Optional[FailureReason] = None
        self.compilation: Optional[CompilationResult] = None

    @property
    def state(self) -> RenderState:
        return self.history[-1]

    @property
    def filename(self) -> str:
        return f"cv-{self.request.template}-{self.job_id}.pdf"

    def _transition(self, state: RenderState) -> None:
        _log_debug(f"Job {self.job_id}: {self.state.value} -> {state.value}")
        self.history.append(state)

    def _fail(self, reason: FailureReason, message: str, result: CompilationResult = None):
        self.failure_reason = reason
        self._transition(RenderState.FAILED)
        raise CompilationError(
            message,
            reason=reason.value,
            job_id=self.job_id,
            errors=result.errors if result else None,
            stdout=result.stdout if result else "",
            stderr=result.stderr if result else "",
        )

    def _deliver(self, pdf_path: Path) -> Path:
        """
        Publish the compiled document under its final name in the output directory.

        The copy goes to a hidden staging name in the same directory and is then
        renamed, so the final name only ever refers to a complete file.
        """
        artifact_path = self.output_dir / self.filename
        staging_path = self.output_dir / f".{self.filename}.part"
        try:
            shutil.copyfile(pdf_path, staging_path)
            os.replace(staging_path, artifact_path)
        except OSError:
            staging_path.unlink(missing_ok=True)
            raise
        return artifact_path

    def _check(self, result: CompilationResult) -> Path:
        """Return the artifact path if the compilation output passes every check."""
        if result.timed_out:
            self._fail(FailureReason.TIMEOUT, f"Compilation timed out after {self.timeout_s:g}s", result)
        if not result.success or result.pdf_path is None or not result.pdf_path.exists():
            self._fail(FailureReason.COMPILER_ERROR, "Compilation failed", result)

        size = result.pdf_path.stat().st_size
        if size == 0:
            self._fail(FailureReason.EMPTY_OUTPUT, "Compiler produced an empty document", result)
        if size > self.max_artifact_bytes:
            self._fail(
                FailureReason.OVERSIZED,
                f"Document is {size} bytes, over the {self.max_artifact_bytes} byte limit",
                result,
            )
        return result.pdf_path

    def run(self) -> RenderResult:
        """
        Execute the job.

        Returns:
            RenderResult for the delivered artifact

        Raises:
            CompilationError: On timeout, compiler error, empty or oversized output
        """
        if self.work_root is not None:
            Path(self.work_root).mkdir(parents=True, exist_ok=True)
        self.workspace = Path(
            tempfile.mkdtemp(prefix=f"{WORKSPACE_PREFIX}{self.job_id}-", dir=self.work_root)
        )
        try:
            document = self.populator.populate(
                self.request.template,
                self.request.cv_data,
                font_size=self.request.options.font_size,
                margins=self.request.options.margins,
                color_scheme=self.request.options.color_scheme,
            )
            source_path = self.workspace / f"cv-{self.job_id}.tex"
            source_path.write_text(document.source, encoding="utf-8")
            self._transition(RenderState.TEMPLATE_POPULATED)

            self._transition(RenderState.COMPILING)
            log_compilation_start(self.job_id, source_path, self.request.template, self.workspace)
            start_time = time.time()
            self.compilation = self.compiler.compile(source_path, self.workspace, self.timeout_s)
            log_compilation_result(self.job_id, self.compilation, time.time() - start_time)

            pdf_path = self._check(self.compilation)

            # Deliver only after every check has passed
            self.output_dir.mkdir(parents=True, exist_ok=True)
            artifact_path = self._deliver(pdf_path)
            self._transition(RenderState.SUCCEEDED)

            return RenderResult(
                job_id=self.job_id,
                filename=self.filename,
                size_bytes=artifact_path.stat().st_size,
                generated_at=now_exact(),
                template_used=self.request.template,
                artifact_path=artifact_path,
                page_count=self.compilation.page_count,
                warnings=list(self.compilation.warnings),
                unresolved_markers=list(document.unresolved_markers),
                history=self.history,
            )
        except Exception:
            if self.state is not RenderState.FAILED:
                self._transition(RenderState.FAILED)
            raise
        finally:
            shutil.rmtree(self.workspace, ignore_errors=True)
            self._transition(RenderState.CLEANED)


class DocumentRenderer:
    """
    Renders CV data into compiled documents.

    Args:
        compiler: Compiler capability (default: LatexCompiler)
        registry: Template registry (default: packaged templates)
        output_dir: Artifact delivery directory
        work_root: Parent directory for job workspaces (default: system temp dir)
        timeout_s: Compiler timeout per job
        max_artifact_bytes: Artifact size ceiling
        max_workers: Thread pool size for multi-template rendering
    """

    def __init__(
        self,
        compiler: Compiler = None,
        registry: TemplateRegistry = None,
        output_dir: Path = RENDER_OUTPUT_PATH,
        work_root: Optional[Union[str, Path]] = RENDER_WORK_ROOT,
        timeout_s: float = LATEX_TIMEOUT_S,
        max_artifact_bytes: int = MAX_ARTIFACT_BYTES,
        max_workers: int = 4,
    ):
        self.compiler = compiler or LatexCompiler()
        self.registry = registry or TemplateRegistry()
        self.populator = TemplatePopulator(self.registry)
        self.output_dir = Path(output_dir)
        self.work_root = work_root
        self.timeout_s = timeout_s
        self.max_artifact_bytes = max_artifact_bytes
        self.max_workers = max_workers

    def templates(self) -> List[TemplateInfo]:
        """Read-only template catalog. Performs no rendering."""
        return self.registry.catalog()

    def request_from_dict(self, data: Mapping[str, Any]) -> RenderRequest:
        """Validate a raw request against this renderer's template allow-list."""
        return RenderRequest.from_dict(data, allowed_templates=self.registry.names())

    def create_job(self, request: Union[RenderRequest, Mapping[str, Any]]) -> RenderJob:
        if not isinstance(request, RenderRequest):
            request = self.request_from_dict(request)
        return RenderJob(
            request,
            populator=self.populator,
            compiler=self.compiler,
            output_dir=self.output_dir,
            work_root=self.work_root,
            timeout_s=self.timeout_s,
            max_artifact_bytes=self.max_artifact_bytes,
        )

    def render(self, request: Union[RenderRequest, Mapping[str, Any]]) -> RenderResult:
        """
        Render one document.

        Raises:
            ValidationError: If a raw request fails validation
            CompilationError: If the document cannot be produced
        """
        job = self.create_job(request)
        _log_info(f"Rendering job {job.job_id} with template '{job.request.template}'")
        try:
            result = job.run()
        except CompilationError as e:
            _log_error(f"Job {job.job_id} failed: {e.reason}")
            raise
        _log_info(f"Job {job.job_id} delivered {result.filename} ({result.size_bytes} bytes)")
        return result

    def render_many(
        self, request: Union[RenderRequest, Mapping[str, Any]], templates: Sequence[str]
    ) -> BatchOutcome:
        """
        Render the same CV with several templates concurrently.

        Each template is an independent job; one failure never aborts the others.

        Raises:
            ValidationError: If no templates or more than MAX_TEMPLATES_PER_REQUEST are given
        """
        if not templates:
            raise ValidationError("Invalid multi-template request", ["templates must not be empty"])
        if len(templates) > MAX_TEMPLATES_PER_REQUEST:
            raise ValidationError(
                "Invalid multi-template request",
                [f"at most {MAX_TEMPLATES_PER_REQUEST} templates per request"],
            )
        if not isinstance(request, RenderRequest):
            request = self.request_from_dict(request)

        allowed = self.registry.names()
        return run_concurrently(
            list(templates),
            lambda template: self.render(request.with_template(template, allowed)),
            label="template",
            max_workers=self.max_workers,
        )
