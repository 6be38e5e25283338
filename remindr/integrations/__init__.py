"""External integrations."""

from remindr.integrations.llm import (
    LiteLLMGenerator,
    LLMError,
    LLMTimeoutError,
    MalformedResponseError,
    MockTextGenerator,
    TextGenerator,
    acompletion,
    generator_from_config,
)

__all__ = [
    "LLMError",
    "LLMTimeoutError",
    "LiteLLMGenerator",
    "MalformedResponseError",
    "MockTextGenerator",
    "TextGenerator",
    "acompletion",
    "generator_from_config",
]
