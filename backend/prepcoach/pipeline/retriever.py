"""
PrepCoach Interview API - Tiered Retriever

Runs an ordered list of search strategies against the experience store and
returns the first one that completes without raising:

1. vector index search   (best relevance)
2. keyword index search  (some relevance)
3. unfiltered sample     (structurally non-empty)

A strategy that returns zero rows has still succeeded and ends the cascade.
If the last strategy raises, the cascade fails with RetrievalError.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from prepcoach.errors import RetrievalError
from prepcoach.logger import get_logger
from prepcoach.store.experiences import Experience, ExperienceStore

log = get_logger("prepcoach.retriever")


@dataclass
class SearchQuery:
    """What each tier may search by: the raw text and its embedding."""
    text: str
    embedding: List[float]


@dataclass
class RetrievalResult:
    """Experiences returned by the winning tier (not yet relevance-filtered)."""
    experiences: List[Experience]
    tier: str
    used_fallback: bool = False
    failed_tiers: List[str] = field(default_factory=list)


class SearchStrategy(Protocol):
    name: str

    def search(self, query: SearchQuery, limit: int) -> List[Experience]:
        ...


# ─── Strategies ────────────────────────────────────────────

class VectorSearchStrategy:
    """Store-native nearest-neighbour search by embedding."""

    name = "vector"

    def __init__(self, store: ExperienceStore):
        self.store = store

    def search(self, query: SearchQuery, limit: int) -> List[Experience]:
        return self.store.vector_search(query.embedding, limit)


class KeywordSearchStrategy:
    """Full-text index search by the question text."""

    name = "keyword"

    def __init__(self, store: ExperienceStore):
        self.store = store

    def search(self, query: SearchQuery, limit: int) -> List[Experience]:
        if not query.text.strip():
            raise RetrievalError("keyword search needs query text", tier=self.name)
        return self.store.keyword_search(query.text, limit)


class SampleStrategy:
    """Arbitrary rows, no relevance criterion."""

    name = "sample"

    def __init__(self, store: ExperienceStore):
        self.store = store

    def search(self, query: SearchQuery, limit: int) -> List[Experience]:
        return self.store.sample(limit)


def default_strategies(store: ExperienceStore) -> List[SearchStrategy]:
    return [
        VectorSearchStrategy(store),
        KeywordSearchStrategy(store),
        SampleStrategy(store),
    ]


# ─── Driver ────────────────────────────────────────────────

class Retriever:
    """Iterates strategies in order until one completes."""

    def __init__(self, strategies: Sequence[SearchStrategy], limit: int = 100):
        if not strategies:
            raise ValueError("Retriever needs at least one strategy")
        self.strategies = list(strategies)
        self.limit = limit

    def retrieve(self, query: SearchQuery, limit: Optional[int] = None) -> RetrievalResult:
        """
        Return the result of the first strategy that does not raise.

        Raises:
            RetrievalError: the final strategy raised; chained to its cause.
        """
        limit = self.limit if limit is None else limit
        failed: List[str] = []

        for position, strategy in enumerate(self.strategies):
            try:
                experiences = strategy.search(query, limit)
            except Exception as e:
                failed.append(strategy.name)
                if position == len(self.strategies) - 1:
                    log.error("retrieval_exhausted", failed_tiers=failed, error=str(e))
                    raise RetrievalError(
                        f"All retrieval tiers failed (last: {strategy.name}): {e}",
                        tier=strategy.name,
                    ) from e
                log.warning("retrieval_tier_failed", tier=strategy.name, error=str(e))
                continue

            log.info(
                "retrieval_tier_succeeded",
                tier=strategy.name,
                results=len(experiences),
            )
            return RetrievalResult(
                experiences=list(experiences),
                tier=strategy.name,
                used_fallback=position > 0,
                failed_tiers=failed,
            )

        # Unreachable: the loop either returns or raises on the last strategy
        raise RetrievalError("No retrieval strategies configured")
