from .client import (
    FakeLLMClient,
    GeminiClient,
    IncompleteResponseError,
    LLMClient,
    LLMResponse,
    create_client,
)

__all__ = [
    "FakeLLMClient",
    "GeminiClient",
    "IncompleteResponseError",
    "LLMClient",
    "LLMResponse",
    "create_client",
]
