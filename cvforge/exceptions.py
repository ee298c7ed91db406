"""Exceptions shared across CVFORGE contexts."""

from typing import List, Optional


class CVForgeError(Exception):
    """Base class for all CVFORGE errors."""


class ValidationError(CVForgeError, ValueError):
    """
    Raised when input at a pipeline boundary is missing required fields or is malformed.

    Never retried. Callers should report the issues back verbatim.

    Attributes:
        message: Error description
        issues: Individual validation problems (one per offending field)
    """

    def __init__(self, message: str, issues: Optional[List[str]] = None):
        self.message = message
        self.issues = list(issues) if issues else []

        parts = [message]
        for issue in self.issues:
            parts.append(f"  - {issue}")

        super().__init__("\n".join(parts))


class ExternalServiceError(CVForgeError):
    """
    Raised when the generative-text service fails after the retry policy gives up.

    Inside the core this is always absorbed into a deterministic fallback.

    Attributes:
        message: Error description
        service: Provider name (e.g., 'anthropic/claude-sonnet-4-20250514')
        status_code: HTTP status of the last failure, if any
        attempts: Number of attempts made before giving up
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        attempts: int = 0,
    ):
        self.message = message
        self.service = service
        self.status_code = status_code
        self.attempts = attempts

        parts = [message]
        if service:
            parts.append(f"Service: {service}")
        if status_code is not None:
            parts.append(f"Status: {status_code}")

        super().__init__(" | ".join(parts))


class CompilationError(CVForgeError):
    """
    Raised when a render job fails to produce a valid document.

    Attributes:
        message: Error description
        reason: One of 'timeout', 'compiler_error', 'empty_output', 'oversized'
        job_id: Render job identifier
        errors: Parsed compiler diagnostics
        stdout: Tail of compiler stdout
        stderr: Tail of compiler stderr
    """

    def __init__(
        self,
        message: str,
        reason: str,
        job_id: Optional[str] = None,
        errors: Optional[List[str]] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        self.message = message
        self.reason = reason
        self.job_id = job_id
        self.errors = list(errors) if errors else []
        self.stdout = stdout
        self.stderr = stderr

        parts = [f"{message} ({reason})"]
        if job_id:
            parts.append(f"Job: {job_id}")
        for error in self.errors[:5]:
            parts.append(f"  {error}")

        super().__init__("\n".join(parts))


class RateLimitExceeded(CVForgeError):
    """
    Raised when a client exceeds its sliding-window request budget.

    Attributes:
        client_id: Throttled client
        retry_after_s: Seconds until the oldest request leaves the window
    """

    def __init__(self, client_id: str, retry_after_s: int):
        self.client_id = client_id
        self.retry_after_s = retry_after_s
        super().__init__(
            f"Too many requests for client '{client_id}', retry after {retry_after_s}s"
        )
