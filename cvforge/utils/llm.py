"""
LLM provider abstraction and response parsing utilities.

Provides a provider-agnostic interface for generative-text calls, a single reusable
retry policy (max attempts, base delay, retryable-error predicate), and tolerant
parsing of structured JSON responses.
"""

import json
import os
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from dotenv import load_dotenv
from loguru import logger

from cvforge.exceptions import ExternalServiceError

load_dotenv()

LLM_TIMEOUT_S = float(os.getenv("LLM_TIMEOUT_S", "30"))

T = TypeVar("T")


# --- Retry Policy ---


def status_code_of(error: Exception) -> Optional[int]:
    """HTTP status carried by an SDK error, or None for transport-level failures."""
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    return status if isinstance(status, int) else None


def is_retryable_error(error: Exception) -> bool:
    """
    Default retry predicate.

    Transport failures (no status), rate limiting (429) and server errors (5xx) are
    retried. Any other 4xx is a client error and fails immediately.
    """
    status = status_code_of(error)
    if status is None:
        return True
    return status == 429 or status >= 500


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff retry policy for generative-text calls.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay_s: Delay before the second attempt; doubles after each failure
        is_retryable: Predicate deciding whether an error is worth another attempt
        sleep: Sleep function (replaceable in tests)
    """

    max_attempts: int = 3
    base_delay_s: float = 1.0
    is_retryable: Callable[[Exception], bool] = is_retryable_error
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def delay_for(self, attempt: int) -> float:
        """Delay after the given 1-based failed attempt."""
        return self.base_delay_s * (2 ** (attempt - 1))

    def run(self, operation: Callable[[], T], service: str = "llm") -> T:
        """
        Execute operation, retrying retryable failures with exponential backoff.

        Raises:
            ExternalServiceError: On a non-retryable failure or once attempts are exhausted
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return operation()
            except Exception as e:
                status = status_code_of(e)
                if not self.is_retryable(e):
                    logger.warning(f"{service} request rejected (status {status}): {e}")
                    raise ExternalServiceError(
                        f"{service} rejected the request: {e}",
                        service=service,
                        status_code=status,
                        attempts=attempt,
                    ) from e
                if attempt == self.max_attempts:
                    logger.warning(f"{service} failed after {attempt} attempts: {e}")
                    raise ExternalServiceError(
                        f"{service} failed after {attempt} attempts: {e}",
                        service=service,
                        status_code=status,
                        attempts=attempt,
                    ) from e
                delay = self.delay_for(attempt)
                logger.debug(
                    f"{service} attempt {attempt}/{self.max_attempts} failed ({e}), "
                    f"retrying in {delay:.1f}s"
                )
                self.sleep(delay)


DEFAULT_RETRY_POLICY = RetryPolicy()


class EmptyResponseError(Exception):
    """Provider returned no text. Treated as a transport failure and retried."""


# --- LLM Provider Classes ---


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


class LLMProvider(ABC):
    """
    Abstract base for generative-text providers.

    Subclasses must:
    - Set _provider_prefix class attribute (e.g., "anthropic", "openai")
    - Implement _call_api() for a single API call (no retries)
    - Call update_model(model) in __init__ to set model and name
    """

    _provider_prefix: str
    retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY

    name: str
    model: str

    def update_model(self, model: str):
        """Update the model and refresh the provider name."""
        self.model = model
        self.name = f"{self._provider_prefix}/{model}"

    @abstractmethod
    def _call_api(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float
    ) -> LLMResponse:
        """Make a single API call (no retries). Implemented by subclasses."""

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Generate a response, retrying transient failures per retry_policy.

        Raises:
            ExternalServiceError: When the policy gives up
        """

        def attempt() -> LLMResponse:
            response = self._call_api(system_prompt, user_prompt, max_tokens, temperature)
            if not response.content or not response.content.strip():
                raise EmptyResponseError(f"Empty response from {self.name}")
            logger.debug(
                f"{self.name} responded ({response.input_tokens}+{response.output_tokens} tokens)"
            )
            return response

        return self.retry_policy.run(attempt, service=self.name)


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider."""

    _provider_prefix = "anthropic"

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        timeout_s: float = LLM_TIMEOUT_S,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ):
        # Lazy import - anthropic SDK is heavy, only load if this provider is used
        try:
            import anthropic
        except ImportError:
            raise ImportError("anthropic package required. Install with: pip install anthropic")

        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        # SDK retries disabled so retry_policy is the only retry layer
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout_s, max_retries=0)
        self.retry_policy = retry_policy
        self.update_model(model)

    def _call_api(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float
    ) -> LLMResponse:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return LLMResponse(
            content=response.content[0].text if response.content else "",
            model=self.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


class OpenAIProvider(LLMProvider):
    """OpenAI GPT provider."""

    _provider_prefix = "openai"

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        timeout_s: float = LLM_TIMEOUT_S,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ):
        # Lazy import - openai SDK is heavy, only load if this provider is used
        try:
            import openai
        except ImportError:
            raise ImportError("openai package required. Install with: pip install openai")

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY environment variable not set")

        self.client = openai.OpenAI(api_key=api_key, timeout=timeout_s, max_retries=0)
        self.retry_policy = retry_policy
        self.update_model(model)

    def _call_api(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float
    ) -> LLMResponse:
        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=self.model,
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
        )


# --- Provider Factory ---


def get_provider(provider_name: str = None, model: str = None) -> LLMProvider:
    """
    Get an LLM provider instance.

    Args:
        provider_name: "anthropic" or "openai" (default: from LLM_PROVIDER env var)
        model: Model name (default: from LLM_MODEL env var, then provider default)

    Returns:
        LLMProvider instance
    """
    if provider_name is None:
        provider_name = os.getenv("LLM_PROVIDER", "anthropic").lower()
    if model is None:
        model = os.getenv("LLM_MODEL") or None

    if provider_name == "anthropic":
        return AnthropicProvider(model=model) if model else AnthropicProvider()
    elif provider_name == "openai":
        return OpenAIProvider(model=model) if model else OpenAIProvider()
    else:
        raise ValueError(f"Unknown provider: {provider_name}. Use 'anthropic' or 'openai'")


def try_get_provider(provider_name: str = None, model: str = None) -> Optional[LLMProvider]:
    """
    Like get_provider(), but returns None when the provider cannot be configured.

    Missing SDKs or API keys mean every generative step takes its fallback path.
    """
    try:
        return get_provider(provider_name=provider_name, model=model)
    except (ImportError, ValueError) as e:
        logger.warning(f"Generative-text provider unavailable, using fallbacks only: {e}")
        return None


# --- Response Parsing Utilities ---


def _strip_code_fences(text: str) -> str:
    text = re.sub(r"^```(?:json)?\s*", "", text.strip())
    return re.sub(r"\s*```$", "", text)


def parse_json_array(text: str) -> Optional[list[Any]]:
    """
    Parse a JSON array from an LLM response.

    Handles markdown code fences and prose around the array.

    Returns:
        The parsed list, or None if no JSON array can be recovered
    """
    if not text:
        return None
    text = _strip_code_fences(text)

    try:
        result = json.loads(text)
        if isinstance(result, list):
            return result
    except json.JSONDecodeError:
        pass

    # Try to find JSON array in the text
    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end > start:
        try:
            result = json.loads(text[start : end + 1])
            if isinstance(result, list):
                return result
        except json.JSONDecodeError:
            pass

    return None


def clean_text_response(text: str) -> str:
    """Strip whitespace and a single pair of wrapping quotes from a plain-text response."""
    text = text.strip()
    return re.sub(r"^[\"']|[\"']$", "", text).strip()
