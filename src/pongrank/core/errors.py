"""Custom exceptions for configuration and domain errors."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class APIKeyError(ConfigurationError):
    """Error when API key is missing."""

    def __init__(self) -> None:
        super().__init__(
            "API key required for match parsing",
            "Set GEMINI_API_KEY or add api_key to pongrank.yaml.",
        )


class ValidationError(ConfigurationError):
    """Error when configuration validation fails."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid value for '{field}'",
            f"{reason}",
        )


class PongRankError(Exception):
    """Base exception for roster and match operations."""


class InvalidPlayerError(PongRankError):
    """Player form is missing a name or nicknames."""


class DuplicatePlayerError(PongRankError):
    """Another player already uses this name."""

    def __init__(self, full_name: str) -> None:
        self.full_name = full_name
        super().__init__(f"A player named '{full_name}' already exists")


class PlayerNotFoundError(PongRankError):
    """No player with the given id."""

    def __init__(self, player_id: str) -> None:
        self.player_id = player_id
        super().__init__(f"Player not found: {player_id}")


class MatchNotFoundError(PongRankError):
    """No match with the given id."""

    def __init__(self, match_id: str) -> None:
        self.match_id = match_id
        super().__init__(f"Match not found: {match_id}")


class NotEnoughPlayersError(PongRankError):
    """Fewer than two players are registered."""

    def __init__(self) -> None:
        super().__init__("Register at least 2 players before recording matches")


class MatchParseError(PongRankError):
    """The parser reply could not be turned into a match record."""


class UnresolvedMatchError(PongRankError):
    """The text was understood as invalid or named unknown players."""

    def __init__(self, reason: str | None = None) -> None:
        msg = "Could not understand the result or players were not found"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class SelfPlayError(PongRankError):
    """Both sides of a match resolved to the same player."""

    def __init__(self, full_name: str) -> None:
        self.full_name = full_name
        super().__init__(f"Players must be different people (got '{full_name}' twice)")
