"""Prompt templates for PongRank.

Loads prompts from 'prompts.yaml' in the parent directory.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import yaml

PROMPTS_PATH = Path(__file__).parent.parent / "prompts.yaml"


def _load_prompts() -> dict[str, str]:
    if not PROMPTS_PATH.exists():
        raise FileNotFoundError(f"Missing prompts file: {PROMPTS_PATH}")

    with open(PROMPTS_PATH, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise TypeError(f"Invalid prompts file: {PROMPTS_PATH} (must be dict)")
        return data


# Load on import
_PROMPTS = _load_prompts()


def parser_system_prompt() -> str:
    """System prompt for the match parser."""
    return _PROMPTS["parser_system"]


def parser_user_prompt(text: str, players_context: str, now: datetime) -> str:
    """User prompt carrying the result text, the roster and the current time."""
    return _PROMPTS["parser_user"].format(
        text=" ".join(text.split()).replace('"', "'"),
        players_context=players_context,
        now=now.strftime("%Y-%m-%d %H:%M (%A)"),
    )


def parser_strict_retry_prompt(text: str, players_context: str, now: datetime) -> str:
    """Stricter prompt used after an unreadable reply."""
    return _PROMPTS["parser_strict_retry"].format(
        request=parser_user_prompt(text, players_context, now)
    )
