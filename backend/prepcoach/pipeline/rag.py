"""
PrepCoach Interview API - RAG Pipeline

Sequential chain for one question:
embed -> tiered retrieval -> relevance filter -> context -> synthesis -> references
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from prepcoach.logger import get_logger
from prepcoach.pipeline.embedder import Embedder
from prepcoach.pipeline.references import append_references
from prepcoach.pipeline.relevance import Candidate, build_context, filter_candidates
from prepcoach.pipeline.retriever import RetrievalResult, Retriever, SearchQuery
from prepcoach.pipeline.similarity import cosine_similarity
from prepcoach.pipeline.synthesizer import AnswerSynthesizer

log = get_logger("prepcoach.rag")


@dataclass
class GenerationResult:
    """Everything the generate endpoint reports back."""
    answer: str
    candidates: List[Candidate]
    retrieval: RetrievalResult
    threshold: float
    tokens_input: int = 0
    tokens_output: int = 0

    @property
    def candidates_found(self) -> int:
        return len(self.retrieval.experiences)


class RagPipeline:
    """Owns no state beyond its injected collaborators; safe to share across requests."""

    def __init__(
        self,
        embedder: Embedder,
        retriever: Retriever,
        synthesizer: AnswerSynthesizer,
        context_threshold: float = 0.3,
        max_context_results: Optional[int] = 3,
    ):
        self.embedder = embedder
        self.retriever = retriever
        self.synthesizer = synthesizer
        self.context_threshold = context_threshold
        self.max_context_results = max_context_results

    def generate(self, question: str) -> GenerationResult:
        """Answer a question from the stored experiences."""
        query_embedding = self.embedder.embed_text(question)
        retrieval = self.retriever.retrieve(SearchQuery(text=question, embedding=query_embedding))

        candidates = filter_candidates(
            query_embedding,
            retrieval.experiences,
            threshold=self.context_threshold,
            max_results=self.max_context_results,
        )
        log.info(
            "relevance_filtered",
            candidates=len(retrieval.experiences),
            relevant=len(candidates),
            threshold=self.context_threshold,
        )

        completion = self.synthesizer.generate(question=question, context=build_context(candidates))
        answer = append_references(completion["content"], candidates)

        return GenerationResult(
            answer=answer,
            candidates=candidates,
            retrieval=retrieval,
            threshold=self.context_threshold,
            tokens_input=completion.get("prompt_tokens", 0),
            tokens_output=completion.get("completion_tokens", 0),
        )

    def find_best_match(
        self,
        text: str,
        threshold: float,
        limit: int = 1,
        inclusive: bool = True,
    ) -> Tuple[Optional[Candidate], float]:
        """
        Closest stored experience by the primary vector tier only.

        Returns (candidate, similarity); candidate is None when nothing was
        found or the best similarity is under the threshold (or equal to it
        when `inclusive` is False). Search errors propagate.
        """
        query_embedding = self.embedder.embed_text(text)
        primary = self.retriever.strategies[0]
        results = primary.search(SearchQuery(text=text, embedding=query_embedding), limit)
        if not results:
            return None, 0.0

        best = max(
            (Candidate(experience=exp, score=cosine_similarity(query_embedding, exp.embedding)) for exp in results),
            key=lambda c: c.score,
        )
        log.info("best_match_scored", id=best.experience.id, similarity=round(best.score, 4))
        below = best.score < threshold if inclusive else best.score <= threshold
        if below:
            return None, best.score
        return best, best.score
