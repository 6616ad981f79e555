"""
PrepCoach Interview API - Errors

Provider and storage failures surface as these types so route handlers can
tell them apart from programming errors.
"""


class PrepCoachError(Exception):
    """Base class for all PrepCoach errors."""


class EmbeddingError(PrepCoachError):
    """The embedding provider rejected or failed the request."""


class CompletionError(PrepCoachError):
    """The chat-completion provider rejected or failed the request."""


class RetrievalError(PrepCoachError):
    """A retrieval tier could not run, or every tier failed."""

    def __init__(self, message: str, tier: str = ""):
        super().__init__(message)
        self.tier = tier
