"""
PrepCoach Interview API - Embedding Module

Calls the OpenAI embeddings endpoint to turn free text into a fixed-length
vector. No caching and no retry: every call goes to the provider once.
"""

from typing import Any, List, Optional

from openai import OpenAI, OpenAIError

from prepcoach.errors import EmbeddingError
from prepcoach.logger import get_logger

log = get_logger("prepcoach.embedder")

# The provider rejects empty input
EMPTY_PLACEHOLDER = "empty content"


def prepare_text(text: Optional[str], max_chars: int = 8000) -> str:
    """Substitute the placeholder for blank input and truncate long input."""
    if not text or not text.strip():
        return EMPTY_PLACEHOLDER
    return text[:max_chars]


def experience_text(title: str, content: str) -> str:
    """Text an experience is embedded from."""
    return f"{title}\n{content}"


class Embedder:
    """Embeds text with a single configured OpenAI embedding model."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        dimensions: int = 1536,
        max_chars: int = 8000,
        client: Optional[Any] = None,
    ):
        self.model = model
        self.dimensions = dimensions
        self.max_chars = max_chars
        self.client = client if client is not None else OpenAI(api_key=api_key)

    def embed(self, text: str) -> List[float]:
        """Embed one string. Blank input must already be replaced by the caller."""
        try:
            response = self.client.embeddings.create(model=self.model, input=text)
        except OpenAIError as e:
            log.warning("embedding_failed", model=self.model, error=str(e))
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        embedding = list(response.data[0].embedding)
        if len(embedding) != self.dimensions:
            log.warning(
                "embedding_dimension_mismatch",
                expected=self.dimensions,
                actual=len(embedding),
            )
        return embedding

    def embed_text(self, text: Optional[str]) -> List[float]:
        """Embed user-supplied text, applying the blank/length guards first."""
        return self.embed(prepare_text(text, self.max_chars))
