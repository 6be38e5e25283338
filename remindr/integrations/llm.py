"""LLM integration. Every AI call goes through this module.

This layer isolates litellm so that the provider, the time box and the
response contract live in one place. Provides:

- acompletion(): minimal pass-through for litellm.acompletion
- TextGenerator: the protocol the execution engine depends on
- LiteLLMGenerator: single-attempt, time-boxed generation via litellm
- MockTextGenerator: canned output for local runs and tests
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from remindr.config.models import LLMSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Minimal facade
# ---------------------------------------------------------------------------


async def acompletion(**kwargs: Any) -> Any:
    """Async LLM completion. Delegates to litellm; all callers must use this.

    Args:
        **kwargs: Passed through to litellm.acompletion (model, messages,
            max_tokens, timeout, etc.).

    Returns:
        litellm response object (``choices[0].message.content`` holds the text).
    """
    import litellm

    return await litellm.acompletion(**kwargs)


# ---------------------------------------------------------------------------
# Error types
# ---------------------------------------------------------------------------


class LLMError(Exception):
    """Base exception for LLM integration errors."""

    def __init__(self, message: str, *, model: str | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.model = model
        self.cause = cause


class LLMTimeoutError(LLMError):
    """Raised when the provider does not answer within the time box."""


class MalformedResponseError(LLMError):
    """Raised when the response carries no usable text."""


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------


@runtime_checkable
class TextGenerator(Protocol):
    """Turns a prompt into text. One attempt, no state."""

    async def generate(self, prompt: str) -> str: ...


def extract_text(response: Any, model: str | None = None) -> str:
    """Return the stripped text of the first choice or raise MalformedResponseError."""
    try:
        choices = response.choices if not isinstance(response, dict) else response["choices"]
        first = choices[0]
        message = first.message if not isinstance(first, dict) else first["message"]
        content = message.content if not isinstance(message, dict) else message.get("content")
    except (AttributeError, IndexError, KeyError, TypeError) as exc:
        raise MalformedResponseError("LLM response has no choices", model=model, cause=exc) from exc
    if not isinstance(content, str) or not content.strip():
        raise MalformedResponseError("LLM response content is empty", model=model)
    return content.strip()


class LiteLLMGenerator:
    """Single-shot generation through litellm with a hard timeout."""

    def __init__(
        self,
        model: str = "gpt-4.1-mini",
        *,
        timeout_seconds: float = 15.0,
        max_output_tokens: int = 500,
        temperature: float = 0.7,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature

    @classmethod
    def from_config(cls, config: LLMSettings) -> LiteLLMGenerator:
        return cls(
            config.model,
            timeout_seconds=config.timeout_seconds,
            max_output_tokens=config.max_output_tokens,
            temperature=config.temperature,
        )

    async def generate(self, prompt: str) -> str:
        """Call the model once. Raises LLMTimeoutError, MalformedResponseError or LLMError."""
        params: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_output_tokens,
            "temperature": self.temperature,
            "timeout": self.timeout_seconds,
            "num_retries": 0,
        }
        try:
            response = await asyncio.wait_for(acompletion(**params), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.warning("LLM call timed out model=%s timeout_seconds=%s", self.model, self.timeout_seconds)
            raise LLMTimeoutError(
                f"LLM call exceeded {self.timeout_seconds}s", model=self.model, cause=exc
            ) from exc
        except Exception as exc:
            msg = str(exc)
            logger.warning(
                "LLM call failed model=%s error_type=%s message=%s",
                self.model,
                type(exc).__name__,
                msg[:200] + ("..." if len(msg) > 200 else ""),
            )
            if "Timeout" in type(exc).__name__:
                raise LLMTimeoutError(msg, model=self.model, cause=exc) from exc
            raise LLMError(f"LLM call failed: {msg}", model=self.model, cause=exc) from exc

        text = extract_text(response, self.model)
        logger.info("LLM call succeeded model=%s prompt_length=%d output_length=%d", self.model, len(prompt), len(text))
        return text


class MockTextGenerator:
    """Returns a fixed response and remembers the prompts it was given."""

    def __init__(self, response: str = "This is a mock draft.") -> None:
        self.response = response
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.response.strip():
            raise MalformedResponseError("mock response is empty", model="mock")
        return self.response


def generator_from_config(config: LLMSettings) -> TextGenerator:
    """Build the generator selected by ``integrations.llm``."""
    if config.mock_mode:
        return MockTextGenerator(config.mock_response)
    return LiteLLMGenerator.from_config(config)
