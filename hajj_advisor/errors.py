"""Exceptions raised by the advisor."""


class AdvisorError(Exception):
    """Base exception for advisor errors"""
    pass


class InvalidInputError(AdvisorError, ValueError):
    """Raised when the engine is handed something it cannot score at all."""
    pass
