"""Natural-language match parsing for PongRank.

The heavy lifting is done by a hosted model; this module builds the
prompt, extracts the JSON object from the reply, and validates it.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pongrank.core.config import ParserConfig
from pongrank.core.errors import MatchParseError
from pongrank.models import Player
from pongrank.prompts import (
    parser_strict_retry_prompt,
    parser_system_prompt,
    parser_user_prompt,
)
from pongrank.services.llm import LLMClient

logger = structlog.get_logger()


class ParsedMatch(BaseModel):
    """Structured match record returned by the parser.

    Attributes:
        valid: Whether the model understood a complete result.
        player1: Full name of the first player.
        score1: Games won by the first player.
        player2: Full name of the second player.
        score2: Games won by the second player.
        match_date: When the match was played, if the text said so.
    """

    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    player1: str | None = None
    score1: int | None = None
    player2: str | None = None
    score2: int | None = None
    match_date: datetime | None = Field(default=None, alias="matchDate")

    @field_validator("player1", "player2", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("match_date", mode="before")
    @classmethod
    def parse_match_date(cls, v: Any) -> Any:
        """Accept ISO 8601 text, treating blanks and junk as no date."""
        if not isinstance(v, str):
            return v
        text = v.strip()
        if not text or text.lower() == "null":
            return None
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("match_date_unparseable", value=text)
            return None

    def timestamp_ms(self) -> int | None:
        """Match date in ms since the epoch; naive dates are local time."""
        if self.match_date is None:
            return None
        return int(self.match_date.timestamp() * 1000)


def build_players_context(players: Sequence[Player]) -> str:
    """List the roster for the prompt, one player per line."""
    return "\n".join(f"- {p.full_name} (Nicknames: {', '.join(p.nicknames)})" for p in players)


def parse_match_response(response: str) -> ParsedMatch:
    """Parse parser response JSON.

    Args:
        response: Raw response string (may contain markdown).

    Returns:
        Parsed ParsedMatch.

    Raises:
        ValueError: If parsing fails.
    """
    json_text = response.strip()

    # Remove markdown code blocks if present
    if "```" in json_text:
        match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", json_text)
        if match:
            json_text = match.group(1)

    match = re.search(r"\{[\s\S]*\}", json_text)
    if match:
        json_text = match.group(0)

    try:
        data = json.loads(json_text)
        return ParsedMatch.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        msg = f"Failed to parse match response: {e}"
        raise ValueError(msg) from e


def repair_json(broken_json: str) -> str:
    """Attempt lightweight JSON repair.

    Args:
        broken_json: Potentially malformed JSON.

    Returns:
        Repaired JSON string.
    """
    text = broken_json.strip()

    # Remove trailing commas before } or ]
    text = re.sub(r",\s*([\}\]])", r"\1", text)

    # Ensure quotes around keys
    text = re.sub(r"(\{|,)\s*(\w+)\s*:", r'\1"\2":', text)

    text = text.replace("'", '"')

    # Python/JS literals
    text = re.sub(r"\bTrue\b", "true", text)
    text = re.sub(r"\bFalse\b", "false", text)
    return re.sub(r"\b(None|undefined)\b", "null", text)


def _parse_with_repair(response: str) -> ParsedMatch:
    """Parse a parser response, applying repair when needed.

    Raises:
        ValueError: If parsing fails after repair.
    """
    try:
        return parse_match_response(response)
    except ValueError:
        repaired = repair_json(response)
        return parse_match_response(repaired)


class MatchParser:
    """Resolve free text into a ParsedMatch via an LLM."""

    def __init__(self, client: LLMClient, config: ParserConfig) -> None:
        self.client = client
        self.config = config

    def _build_messages(
        self,
        text: str,
        players: Sequence[Player],
        now: datetime,
        strict: bool,
    ) -> list[dict[str, str]]:
        prompt = parser_strict_retry_prompt if strict else parser_user_prompt
        return [
            {"role": "system", "content": parser_system_prompt()},
            {"role": "user", "content": prompt(text, build_players_context(players), now)},
        ]

    async def _request(
        self,
        text: str,
        players: Sequence[Player],
        now: datetime,
        strict: bool,
    ) -> str:
        messages = self._build_messages(text, players, now, strict)
        response = await self.client.complete(
            self.config.model,
            messages,
            self.config.max_tokens,
            self.config.temperature,
        )
        return response.content

    async def parse(
        self,
        text: str,
        players: Sequence[Player],
        now: datetime | None = None,
    ) -> ParsedMatch:
        """Turn a free-text result into a structured record.

        Args:
            text: Typed text or speech transcript.
            players: Current roster, offered to the model for name matching.
            now: Reference time for relative dates (defaults to local now).

        Returns:
            ParsedMatch as returned by the model. ``valid`` may be False.

        Raises:
            MatchParseError: If the text is empty or the reply stays unreadable
                after one strict retry.
        """
        if not text or not text.strip():
            raise MatchParseError("Match text is empty")
        now = now or datetime.now()

        response = await self._request(text, players, now, strict=False)
        try:
            return _parse_with_repair(response)
        except ValueError:
            logger.warning("parse_failed", model=self.config.model, retrying=True)

        response = await self._request(text, players, now, strict=True)
        try:
            return _parse_with_repair(response)
        except ValueError as e:
            logger.error("parse_failed", model=self.config.model, retrying=False)
            raise MatchParseError(str(e)) from e
