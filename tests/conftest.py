"""Shared fakes for the provider clients and the document store."""

import re
from typing import Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from prepcoach.coaching import CoachingService
from prepcoach.main import Services, create_app
from prepcoach.pipeline.prompt import NO_CONTEXT_RESPONSE
from prepcoach.pipeline.rag import RagPipeline
from prepcoach.pipeline.retriever import Retriever, SearchQuery
from prepcoach.pipeline.search import ExperienceSearch
from prepcoach.pipeline.synthesizer import AnswerSynthesizer
from prepcoach.store.experiences import Experience, ExperienceMetadata

CTX_BLOCK = re.compile(r"<ctx_(\w+)>\n(.*?)\n</ctx_\1>", re.DOTALL)


def make_experience(
    exp_id: str,
    title: str,
    content: str,
    embedding: Optional[List[float]] = None,
    category: str = "",
    tags: Optional[List[str]] = None,
    created_at: str = "2026-01-01T00:00:00+00:00",
) -> Experience:
    return Experience(
        id=exp_id,
        title=title,
        content=content,
        embedding=embedding if embedding is not None else [0.0],
        metadata=ExperienceMetadata(category=category, tags=list(tags or [])),
        created_at=created_at,
        updated_at=created_at,
    )


def context_of(messages: List[Dict[str, str]]) -> str:
    """The text between the salted ctx tags of the user message."""
    match = CTX_BLOCK.search(messages[-1]["content"])
    return match.group(2) if match else ""


class FakeEmbedder:
    """Returns fixed vectors per text; unknown text gets `default`."""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, default=None, error=None):
        self.vectors = vectors or {}
        self.default = default if default is not None else [1.0, 0.0, 0.0]
        self.error = error
        self.max_chars = 8000
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return list(self.vectors.get(text, self.default))

    def embed_text(self, text: Optional[str]) -> List[float]:
        return self.embed(text or "empty content")


class FakeChat:
    """Chat client stand-in. Answers with NO_CONTEXT_RESPONSE when the context is empty."""

    def __init__(
        self,
        responder: Optional[Callable[[List[Dict[str, str]]], str]] = None,
        error=None,
        usage=(0, 0),
    ):
        self.responder = responder
        self.error = error
        self.usage = usage
        self.params: List[dict] = []
        self.calls: List[List[Dict[str, str]]] = []

    def generate(self, messages, model=None, temperature=None, max_tokens=None):
        self.calls.append(messages)
        self.params.append({"temperature": temperature, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        if self.responder is not None:
            content = self.responder(messages)
        elif context_of(messages).strip():
            content = "Based on my experience [1], I delivered the project."
        else:
            content = NO_CONTEXT_RESPONSE
        return {
            "content": content,
            "prompt_tokens": self.usage[0],
            "completion_tokens": self.usage[1],
            "latency_ms": 0,
        }

    def complete(self, system_prompt, user_prompt, **kwargs):
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return self.generate(messages, **kwargs)["content"]


class FakeStrategy:
    """A retrieval tier that returns fixed rows or raises."""

    def __init__(self, name: str, results=None, error: Optional[Exception] = None):
        self.name = name
        self.results = results or []
        self.error = error
        self.calls: List[SearchQuery] = []

    def search(self, query: SearchQuery, limit: int) -> List[Experience]:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        return list(self.results)[:limit]


class FakeStore:
    """In-memory stand-in for the tag-filtered scan."""

    def __init__(self, experiences: List[Experience], error: Optional[Exception] = None):
        self.experiences = experiences
        self.error = error

    def scan(self, tags=None) -> List[Experience]:
        if self.error is not None:
            raise self.error
        return [e for e in self.experiences if all(t in e.metadata.tags for t in (tags or []))]


def build_test_services(
    strategies,
    embedder: Optional[FakeEmbedder] = None,
    chat: Optional[FakeChat] = None,
    coaching_chat: Optional[FakeChat] = None,
    threshold: float = 0.3,
    best_match_threshold: float = 0.8,
    suggest_update_threshold: float = 0.85,
    stored: Optional[List[Experience]] = None,
) -> Services:
    embedder = embedder or FakeEmbedder()
    pipeline = RagPipeline(
        embedder=embedder,
        retriever=Retriever(strategies, limit=100),
        synthesizer=AnswerSynthesizer(chat or FakeChat()),
        context_threshold=threshold,
        max_context_results=3,
    )
    coaching = CoachingService(
        client=coaching_chat or FakeChat(),
        pipeline=pipeline,
        suggest_update_threshold=suggest_update_threshold,
    )
    return Services(
        pipeline=pipeline,
        coaching=coaching,
        search=ExperienceSearch(FakeStore(stored or []), embedder, limit=20),
        best_match_threshold=best_match_threshold,
    )


@pytest.fixture
def make_client():
    """Factory: TestClient around an app wired with the given services."""

    def _make(services: Services) -> TestClient:
        return TestClient(create_app(services=services), raise_server_exceptions=False)

    return _make
