"""
PrepCoach Interview API - Experience Search

Browse stored experiences: optionally narrowed to those carrying every given
tag, then ranked by cosine similarity to a query, or newest first when there
is no query.
"""

from typing import List, Optional

from prepcoach.logger import get_logger
from prepcoach.pipeline.embedder import Embedder
from prepcoach.pipeline.similarity import cosine_similarity
from prepcoach.store.experiences import Experience, ExperienceStore

log = get_logger("prepcoach.search")


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Accept repeated and comma-separated tag params alike."""
    if not tags:
        return []
    normalized = []
    for raw in tags:
        normalized.extend(t.strip() for t in raw.split(",") if t.strip())
    return normalized


class ExperienceSearch:
    """Scores a filtered scan of the store; no index involved."""

    def __init__(self, store: ExperienceStore, embedder: Embedder, limit: int = 20):
        self.store = store
        self.embedder = embedder
        self.limit = limit

    def search(
        self,
        query: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> List[Experience]:
        experiences = self.store.scan(tags=tags or None)

        if query and query.strip():
            query_embedding = self.embedder.embed_text(query)
            # sorted() is stable: equal scores keep scan order
            ranked = sorted(
                experiences,
                key=lambda e: cosine_similarity(query_embedding, e.embedding),
                reverse=True,
            )
        else:
            ranked = sorted(experiences, key=lambda e: e.created_at, reverse=True)

        log.info("experiences_searched", query=query, tags=tags, matched=len(experiences))
        return ranked[: self.limit]
