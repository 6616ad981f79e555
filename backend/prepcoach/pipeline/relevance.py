"""
PrepCoach Interview API - Relevance Filter

Scores retrieved experiences against the query embedding, drops those under
the threshold, and assembles the numbered context string for the prompt.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from prepcoach.pipeline.similarity import cosine_similarity
from prepcoach.store.experiences import Experience


@dataclass
class Candidate:
    """An experience paired with its similarity to one query."""
    experience: Experience
    score: float

    def to_public(self) -> Dict:
        data = self.experience.to_public()
        data["similarity"] = round(self.score, 4)
        return data


def score_candidates(
    query_embedding: Sequence[float],
    experiences: Sequence[Experience],
) -> List[Candidate]:
    """Pair every experience with its cosine similarity, keeping retrieval order."""
    return [
        Candidate(experience=exp, score=cosine_similarity(query_embedding, exp.embedding))
        for exp in experiences
    ]


def filter_candidates(
    query_embedding: Sequence[float],
    experiences: Sequence[Experience],
    threshold: float,
    max_results: Optional[int] = None,
) -> List[Candidate]:
    """
    Keep candidates scoring >= threshold, best first.

    Python's sort is stable, so equal scores keep retrieval order.
    An empty list is a normal result.
    """
    scored = score_candidates(query_embedding, experiences)
    survivors = [c for c in scored if c.score >= threshold]
    survivors.sort(key=lambda c: c.score, reverse=True)
    if max_results is not None:
        survivors = survivors[:max_results]
    return survivors


def build_context(candidates: Sequence[Candidate]) -> str:
    """Numbered `(n) Title: Content` lines; empty string when nothing survived."""
    lines = []
    for idx, candidate in enumerate(candidates, 1):
        exp = candidate.experience
        prefix = f"{exp.title}: " if exp.title else ""
        lines.append(f"({idx}) {prefix}{exp.content}")
    return "\n".join(lines)
