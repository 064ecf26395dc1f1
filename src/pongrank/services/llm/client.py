"""Gemini API client with async support and retries."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pongrank.core.errors import APIKeyError

logger = structlog.get_logger()

_TEXT_LINE = re.compile(r'^Match result text: "(?P<text>.*)"\s*$', re.MULTILINE)
_PLAYER_LINE = re.compile(r"^- (?P<name>.+?) \(Nicknames: (?P<nicks>.*)\)\s*$", re.MULTILINE)
_NUMBER = re.compile(r"\d+")


class IncompleteResponseError(Exception):
    """Raised when the model returns no usable text."""

    def __init__(self, model: str | None = None) -> None:
        msg = "Empty response from model"
        if model:
            msg = f"{msg} {model}"
        super().__init__(msg)


@dataclass(frozen=True)
class LLMResponse:
    """Response from an LLM API call with usage data."""

    content: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class LLMClient(ABC):
    """Abstract base class for async LLM clients."""

    @abstractmethod
    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        """Generate a completion from the model.

        Args:
            model: Model identifier.
            messages: List of message dicts with 'role' and 'content'.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.

        Returns:
            LLMResponse with content and usage data.
        """

    async def close(self) -> None:  # noqa: B027
        """Close any resources. Override if needed."""


class FakeLLMClient(LLMClient):
    """Offline match resolver for dry runs and tests.

    Reads the roster and the result text out of the parser prompt, finds the
    first two distinct players mentioned (by full name or nickname) and the
    first two numbers, and answers with the parser's JSON contract.
    """

    def __init__(self) -> None:
        self.call_count = 0

    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        _max_tokens: int,
        _temperature: float,
    ) -> LLMResponse:
        """Return a deterministic parse of the prompt.

        Args:
            model: Model identifier (unused).
            messages: Input messages (last one holds text and roster).
            _max_tokens: Maximum tokens (unused).
            _temperature: Temperature (unused).

        Returns:
            LLMResponse with JSON content and simulated token counts.
        """
        self.call_count += 1
        prompt = messages[-1]["content"] if messages else ""
        content = json.dumps(self._resolve(prompt))

        prompt_tokens = sum(len(m.get("content", "").split()) for m in messages) * 2
        completion_tokens = len(content.split()) * 2
        return LLMResponse(
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )

    @staticmethod
    def _resolve(prompt: str) -> dict[str, object]:
        text_match = _TEXT_LINE.search(prompt)
        text = text_match.group("text") if text_match else ""
        lowered = text.lower()

        # (position in text, full name) for every alias hit
        hits: list[tuple[int, str]] = []
        for line in _PLAYER_LINE.finditer(prompt):
            name = line.group("name").strip()
            aliases = [name] + [n.strip() for n in line.group("nicks").split(",") if n.strip()]
            positions = [
                m.start()
                for alias in aliases
                for m in re.finditer(rf"\b{re.escape(alias.lower())}\b", lowered)
            ]
            if positions:
                hits.append((min(positions), name))

        names: list[str] = []
        for _, name in sorted(hits):
            if name not in names:
                names.append(name)
        scores = [int(n) for n in _NUMBER.findall(text)]

        if len(names) < 2 or len(scores) < 2:
            return {
                "valid": False,
                "player1": None,
                "score1": None,
                "player2": None,
                "score2": None,
                "matchDate": None,
            }
        return {
            "valid": True,
            "player1": names[0],
            "score1": scores[0],
            "player2": names[1],
            "score2": scores[1],
            "matchDate": None,
        }


def _to_gemini_payload(
    messages: list[dict[str, str]],
    max_tokens: int,
    temperature: float,
) -> dict[str, object]:
    """Translate chat messages into a generateContent request body."""
    system_parts = [{"text": m["content"]} for m in messages if m.get("role") == "system"]
    contents = [
        {
            "role": "model" if m.get("role") == "assistant" else "user",
            "parts": [{"text": m["content"]}],
        }
        for m in messages
        if m.get("role") != "system"
    ]
    payload: dict[str, object] = {
        "contents": contents,
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
            "responseMimeType": "application/json",
        },
    }
    if system_parts:
        payload["systemInstruction"] = {"parts": system_parts}
    return payload


class GeminiClient(LLMClient):
    """Async Google Gemini API client with retries."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key.
            client: Optional preconfigured HTTP client.
        """
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=60.0)

    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        """Generate completion via the generateContent endpoint.

        Args:
            model: Gemini model ID.
            messages: Chat messages.
            max_tokens: Maximum output tokens.
            temperature: Sampling temperature.

        Returns:
            LLMResponse with content and usage data.

        Raises:
            IncompleteResponseError: If the reply carries no text.
        """
        return await self._call_api(model, messages, max_tokens, temperature)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.TransportError)),
        reraise=True,
    )
    async def _call_api(
        self,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        """Make API call with retries.

        Raises:
            httpx.HTTPStatusError: On API error after retries.
        """
        logger.info("api_call", model=model, max_tokens=max_tokens)

        response = await self.client.post(
            f"{self.BASE_URL}/{model}:generateContent",
            headers={
                "x-goog-api-key": self.api_key,
                "Content-Type": "application/json",
            },
            json=_to_gemini_payload(messages, max_tokens, temperature),
        )
        response.raise_for_status()

        data = response.json()
        candidates = data.get("candidates") or []
        parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
        content = "".join(p.get("text", "") for p in parts)
        if not content.strip():
            logger.warning("api_empty_response", model=model)
            raise IncompleteResponseError(model)

        usage = data.get("usageMetadata", {})
        prompt_tokens = usage.get("promptTokenCount", 0)
        completion_tokens = usage.get("candidatesTokenCount", 0)
        total_tokens = usage.get("totalTokenCount", prompt_tokens + completion_tokens)

        logger.debug(
            "api_response",
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )
        return LLMResponse(
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()


def create_client(
    api_key: str | None = None,
    dry_run: bool = False,
) -> LLMClient:
    """Create appropriate LLM client based on settings.

    Args:
        api_key: Gemini API key (required unless dry_run).
        dry_run: Use the offline resolver instead of the real API.

    Returns:
        LLMClient instance.

    Raises:
        APIKeyError: If no key is given for a real client.
    """
    if dry_run:
        logger.info("using_fake_client")
        return FakeLLMClient()

    if not api_key:
        raise APIKeyError()

    return GeminiClient(api_key)
