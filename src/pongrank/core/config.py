"""Configuration schemas and loading for PongRank."""

from __future__ import annotations

import os
from pathlib import Path

import pydantic
import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

from pongrank.core.errors import APIKeyError, ValidationError

DEFAULT_CONFIG_PATH = Path("pongrank.yaml")


class RatingConfig(BaseModel):
    """Elo rating configuration.

    Attributes:
        initial_rating: Baseline rating for players with no match history.
        k_factor: Multiplier applied to every rating adjustment.
    """

    initial_rating: int = 1200
    k_factor: float = Field(default=32.0, gt=0)


class ParserConfig(BaseModel):
    """Settings for the natural-language match parser."""

    model: str = "gemini-2.5-flash"
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, ge=16)

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "Parser model ID cannot be empty"
            raise ValueError(msg)
        return v.strip()


class AppConfig(BaseModel):
    """Complete application configuration."""

    database_path: str = "./pongrank.duckdb"
    rating: RatingConfig = Field(default_factory=RatingConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    recent_matches: int = Field(default=5, ge=1)
    api_key: str | None = None

    def get_api_key(self) -> str:
        """Get API key from config or environment."""
        load_dotenv(find_dotenv(usecwd=True))
        key = self.api_key or os.environ.get("GEMINI_API_KEY")
        if not key:
            raise APIKeyError()
        return key


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate configuration from YAML file.

    With no path, reads ``pongrank.yaml`` from the working directory when it
    exists and falls back to defaults otherwise.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist.
        ValidationError: If config is invalid.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return AppConfig()
        path = DEFAULT_CONFIG_PATH

    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f)

    try:
        return AppConfig.model_validate(data or {})
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "config"
        raise ValidationError(field, first["msg"]) from e
