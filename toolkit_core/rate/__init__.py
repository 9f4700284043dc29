"""Outbound chat throttling."""

from .sender import RateLimitedSender

__all__ = ["RateLimitedSender"]
