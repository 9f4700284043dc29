"""Twitch chat bridge core: connection lifecycle, main-loop dispatch and listener fan-out."""

__version__ = "1.0.0"
