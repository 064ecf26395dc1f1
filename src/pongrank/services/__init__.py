"""Application services for PongRank."""
