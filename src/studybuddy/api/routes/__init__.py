"""API Route modules."""

from . import health, quiz, realtime

__all__ = ["health", "quiz", "realtime"]
