"""
PrepCoach Interview API - FastAPI Main Application

API endpoints, startup and CORS.
The lifespan handler is the composition root: it builds every provider client
and pipeline component once and hangs them on app.state.
"""

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from prepcoach.coaching import CoachingService
from prepcoach.config import Settings, get_settings
from prepcoach.errors import EmbeddingError
from prepcoach.groq_client import GroqClient
from prepcoach.logger import get_logger, log_generation
from prepcoach.pipeline.embedder import Embedder
from prepcoach.pipeline.rag import RagPipeline
from prepcoach.pipeline.retriever import Retriever, default_strategies
from prepcoach.pipeline.search import ExperienceSearch, normalize_tags
from prepcoach.pipeline.synthesizer import AnswerSynthesizer
from prepcoach.schemas import (
    CandidateOut,
    EvaluateRequest,
    EvaluateResponse,
    ExperienceOut,
    FindSimilarRequest,
    FindSimilarResponse,
    FormatStarRequest,
    FormatStarResponse,
    GenerateDebug,
    GenerateRequest,
    GenerateResponse,
    SuggestEditsRequest,
    SuggestEditsResponse,
    SuggestedUpdate,
)
from prepcoach.store.experiences import ExperienceStore

log = get_logger("prepcoach.api")


# ─── Composition root ──────────────────────────────────────

@dataclass
class Services:
    """Process-wide components, built once at startup."""
    pipeline: RagPipeline
    coaching: CoachingService
    store: Optional[ExperienceStore] = None
    search: Optional[ExperienceSearch] = None
    best_match_threshold: float = 0.8


def build_services(settings: Settings) -> Services:
    """Construct provider clients and wire the pipeline."""
    # 1. Embedding provider
    embedder = Embedder(
        api_key=settings.OPENAI_API_KEY or None,
        model=settings.EMBEDDING_MODEL,
        dimensions=settings.EMBEDDING_DIM,
        max_chars=settings.EMBEDDING_MAX_CHARS,
    )

    # 2. Document store + keyword index
    store = ExperienceStore(
        db_path=settings.DB_PATH,
        table_name=settings.TABLE_NAME,
        dimensions=settings.EMBEDDING_DIM,
        embedder=embedder,
    )
    store.ensure_fts_index()

    # 3. Tiered retriever
    retriever = Retriever(default_strategies(store), limit=settings.RETRIEVAL_LIMIT)

    # 4. Chat clients
    answer_client = GroqClient(
        api_key=settings.GROQ_API_KEY or None,
        model=settings.CHAT_MODEL,
        temperature=settings.CHAT_TEMPERATURE,
    )
    evaluation_client = GroqClient(
        api_key=settings.GROQ_API_KEY or None,
        model=settings.EVALUATION_MODEL,
        temperature=settings.EVALUATION_TEMPERATURE,
    )

    # 5. Pipeline + coaching
    pipeline = RagPipeline(
        embedder=embedder,
        retriever=retriever,
        synthesizer=AnswerSynthesizer(answer_client),
        context_threshold=settings.CONTEXT_THRESHOLD,
        max_context_results=settings.MAX_CONTEXT_RESULTS,
    )
    coaching = CoachingService(
        client=evaluation_client,
        pipeline=pipeline,
        suggest_update_threshold=settings.SUGGEST_UPDATE_THRESHOLD,
        evaluation_temperature=settings.EVALUATION_TEMPERATURE,
    )
    # New experiences with no category get one from the evaluation model
    store.categorizer = coaching.suggest_category

    return Services(
        pipeline=pipeline,
        coaching=coaching,
        store=store,
        search=ExperienceSearch(store, embedder, limit=settings.SEARCH_LIMIT),
        best_match_threshold=settings.BEST_MATCH_THRESHOLD,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


# ─── App factory ───────────────────────────────────────────

def create_app(
    services: Optional[Services] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the API. Pass `services` to skip provider construction (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.services is None:
            app.state.services = build_services(settings or get_settings())
        log.info("startup_complete")
        yield
        log.info("shutdown")

    app = FastAPI(
        title="PrepCoach Interview API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS: allow all origins for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Error bodies ──────────────────────────────────────

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": "Invalid request body"})

    # ─── Endpoints ─────────────────────────────────────────

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok"}

    @app.post("/generate", response_model=GenerateResponse)
    def generate(
        body: Optional[GenerateRequest] = None,
        services: Services = Depends(get_services),
    ):
        """
        Answer an interview question from stored experiences.

        Flow:
        1. Validate the question
        2. Embed, retrieve (tiered), filter, synthesize, add references
        3. Log retrieval stats
        4. Return answer + context + debug block
        """
        request_start = time.perf_counter()
        question = (body.question if body else None) or ""
        if not question.strip():
            raise HTTPException(status_code=400, detail="Missing question in body")

        try:
            result = services.pipeline.generate(question)
        except Exception:
            log.exception("generate_failed", question=question)
            raise HTTPException(status_code=500, detail="Internal server error")

        latency_ms = int((time.perf_counter() - request_start) * 1000)
        log_generation(
            question=question,
            tier=result.retrieval.tier,
            used_fallback=result.retrieval.used_fallback,
            candidates_found=result.candidates_found,
            relevant_results=len(result.candidates),
            threshold=result.threshold,
            tokens_input=result.tokens_input,
            tokens_output=result.tokens_output,
            latency_ms=latency_ms,
        )

        return GenerateResponse(
            answer=result.answer,
            context=[CandidateOut(**c.to_public()) for c in result.candidates],
            debug=GenerateDebug(
                candidates_found=result.candidates_found,
                relevant_results=len(result.candidates),
                threshold=result.threshold,
                used_fallback=result.retrieval.used_fallback,
                tier=result.retrieval.tier,
            ),
        )

    @app.post("/experiences/find-similar", response_model=FindSimilarResponse)
    def find_similar(
        body: Optional[FindSimilarRequest] = None,
        services: Services = Depends(get_services),
    ):
        """Closest stored experience, if it clears the best-match threshold."""
        text = (body.text if body else None) or ""
        if not text.strip():
            raise HTTPException(status_code=400, detail="Missing text in body")

        try:
            match, similarity = services.pipeline.find_best_match(
                text, threshold=services.best_match_threshold
            )
        except EmbeddingError:
            log.exception("find_similar_embedding_failed")
            raise HTTPException(status_code=500, detail="Internal server error")
        except Exception:
            log.exception("find_similar_failed")
            raise HTTPException(status_code=500, detail="Vector search failed")

        return FindSimilarResponse(
            match=CandidateOut(**match.to_public()) if match else None,
            similarity=round(similarity, 4),
        )

    @app.post("/experiences/evaluate", response_model=EvaluateResponse)
    def evaluate(
        body: Optional[EvaluateRequest] = None,
        services: Services = Depends(get_services),
    ):
        """Grade a practice answer and suggest merging it into a matching experience."""
        question = (body.question if body else None) or ""
        answer = (body.answer if body else None) or ""
        if not question.strip() or not answer.strip():
            raise HTTPException(status_code=400, detail="Question and answer are required")

        try:
            result = services.coaching.evaluate(question, answer)
        except Exception:
            log.exception("evaluate_failed")
            raise HTTPException(status_code=500, detail="Internal server error")

        return EvaluateResponse(
            evaluation=result.evaluation,
            rating=result.rating,
            matched_experience=(
                CandidateOut(**result.matched_experience) if result.matched_experience else None
            ),
            suggested_update=(
                SuggestedUpdate(**result.suggested_update) if result.suggested_update else None
            ),
        )

    @app.post("/experiences/format-star", response_model=FormatStarResponse)
    def format_star(
        body: Optional[FormatStarRequest] = None,
        services: Services = Depends(get_services),
    ):
        """Restructure a story into STAR sections."""
        content = (body.content if body else None) or ""
        if not content.strip():
            raise HTTPException(status_code=400, detail="Content is required")

        try:
            formatted = services.coaching.format_star(content, question=body.question)
        except Exception:
            log.exception("format_star_failed")
            raise HTTPException(
                status_code=500, detail="Failed to format experience in STAR format"
            )

        return FormatStarResponse(formatted_content=formatted, original_content=content)

    @app.post("/experiences/suggest-edits", response_model=SuggestEditsResponse)
    def suggest_edits(
        body: Optional[SuggestEditsRequest] = None,
        services: Services = Depends(get_services),
    ):
        """Merge new text into an existing story and diff the two."""
        original = (body.original if body else None) or ""
        new_text = (body.new_text if body else None) or ""
        if not original or not new_text:
            raise HTTPException(status_code=400, detail="Missing original or newText in body")

        try:
            suggested, diff = services.coaching.suggest_edits(original, new_text)
        except Exception:
            log.exception("suggest_edits_failed")
            raise HTTPException(status_code=500, detail="Internal server error")

        return SuggestEditsResponse(suggested=suggested, diff=diff)

    @app.get("/experiences/search", response_model=List[ExperienceOut])
    def search_experiences(
        q: Optional[str] = None,
        tags: Optional[List[str]] = Query(None),
        services: Services = Depends(get_services),
    ):
        """
        Browse experiences.

        `tags` may repeat or be comma-separated; results must carry all of
        them. With `q`, results are ranked by similarity, otherwise newest first.
        """
        try:
            experiences = services.search.search(query=q, tags=normalize_tags(tags))
        except Exception:
            log.exception("search_failed", query=q)
            raise HTTPException(status_code=500, detail="Error searching experiences")

        return [ExperienceOut(**e.to_public()) for e in experiences]

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
