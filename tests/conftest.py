"""Shared fixtures and in-test fakes for the generative-text service and the compiler."""

import threading
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from cvforge.contexts.rendering.compiler import CompilationResult, Compiler
from cvforge.utils.llm import LLMProvider, LLMResponse, RetryPolicy

NO_SLEEP_RETRY = RetryPolicy(sleep=lambda seconds: None)


class ApiError(Exception):
    """Stand-in for an SDK error carrying an HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FakeProvider(LLMProvider):
    """
    Scripted provider.

    Args:
        reply: Fixed response text, or a function (system_prompt, user_prompt) -> text.
               A function may raise to simulate failures.
        error: Exception raised on every call (takes precedence over reply)
    """

    _provider_prefix = "fake"

    def __init__(self, reply="", error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls: List[tuple] = []
        self._lock = threading.Lock()
        self.retry_policy = NO_SLEEP_RETRY
        self.update_model("test-model")

    def _call_api(self, system_prompt, user_prompt, max_tokens, temperature) -> LLMResponse:
        with self._lock:
            self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        content = self.reply(system_prompt, user_prompt) if callable(self.reply) else self.reply
        return LLMResponse(content=content, model=self.model)


class FakeCompiler(Compiler):
    """
    Compiler double writing a fake PDF into the job workspace.

    Args:
        outcome: "ok", "timeout", "error", "empty" or "large"
        size: Bytes written for "ok" and "large"
        on_compile: Optional hook called with (source_path, output_dir)
    """

    name = "fake"

    def __init__(self, outcome: str = "ok", size: int = 1024, on_compile: Callable = None):
        self.outcome = outcome
        self.size = size
        self.on_compile = on_compile
        self.sources: List[str] = []
        self.workspaces: List[Path] = []
        self._lock = threading.Lock()

    def compile(self, source_path: Path, output_dir: Path, timeout_s: float = 30) -> CompilationResult:
        with self._lock:
            self.sources.append(Path(source_path).read_text(encoding="utf-8"))
            self.workspaces.append(Path(output_dir))
        if self.on_compile:
            self.on_compile(source_path, output_dir)

        if self.outcome == "timeout":
            return CompilationResult(
                success=False, errors=["Compilation timed out after 30s"], timed_out=True
            )
        if self.outcome == "error":
            return CompilationResult(
                success=False, errors=["Undefined control sequence."], stdout="! Undefined"
            )

        pdf_path = Path(output_dir) / f"{Path(source_path).stem}.pdf"
        pdf_path.write_bytes(b"" if self.outcome == "empty" else b"%PDF" + b"0" * (self.size - 4))
        return CompilationResult(success=True, pdf_path=pdf_path, page_count=1)


@pytest.fixture
def profile_data():
    """Candidate profile in request form."""
    return {
        "personal": {
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": "555-0100",
            "linkedIn": "linkedin.com/in/ada",
            "location": "London",
        },
        "summary": "Engineer who likes analytical engines.",
        "work_experience": [
            {
                "company": "Analytical Engines Ltd",
                "role": "Python Developer",
                "start_date": "2021-01",
                "end_date": "",
                "bullets": [
                    "Built data pipelines in Python on AWS",
                    {"text": "Cut report latency by 40%", "metrics": "40%"},
                ],
            },
            {
                "company": "Difference Co",
                "role": "Office Manager",
                "start_date": "2018-03",
                "end_date": "2020-12",
                "bullets": ["Organized the office calendar"],
            },
        ],
        "skills": ["Python", {"name": "Leadership", "category": "soft"}, "SQL"],
        "projects": [
            {
                "name": "Note G",
                "description": "First published algorithm",
                "technologies": ["Python"],
            }
        ],
        "education": [
            {
                "degree": "BSc Mathematics",
                "institution": "University of London",
                "start_date": "2014",
                "end_date": "2018",
            }
        ],
    }


@pytest.fixture
def job_text():
    return (
        "We are hiring a Senior Python Developer to build services on AWS with Docker. "
        "You will work with SQL databases and show leadership across teams. "
        "Python experience is essential."
    )


@pytest.fixture
def cv_data():
    """Render-request cvData with every section populated."""
    return {
        "personal": {
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": "555-0100",
            "linkedIn": "linkedin.com/in/ada",
            "location": "London",
            "website": "ada.dev",
        },
        "summary": "Engineer & mathematician with 100% focus on results.",
        "skills": ["Python", "SQL", "C#"],
        "experience": [
            {
                "company": "Analytical Engines Ltd",
                "role": "Python Developer",
                "dates": "2021-01 - Present",
                "bullets": ["Built pipelines saving $5k/month", "Led R&D reviews"],
            }
        ],
        "projects": [
            {"name": "Note_G", "description": "First algorithm", "technologies": ["Python"]}
        ],
        "education": [
            {
                "degree": "BSc Mathematics",
                "institution": "University of London",
                "dates": "2014 - 2018",
                "gpa": "3.9",
            }
        ],
    }


@pytest.fixture
def make_provider():
    """Factory for scripted providers: make_provider(reply=..., error=...)."""
    return FakeProvider


@pytest.fixture
def make_compiler():
    """Factory for compiler doubles: make_compiler(outcome=..., size=...)."""
    return FakeCompiler


@pytest.fixture
def api_error():
    """Factory for SDK-style errors: api_error(message, status_code)."""
    return ApiError
