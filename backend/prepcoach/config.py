"""
PrepCoach Interview API - Configuration

Uses pydantic-settings to load environment variables from .env file.
Contains all tunables for the RAG pipeline and the coaching endpoints.
"""

from functools import lru_cache
from pathlib import Path
from pydantic_settings import BaseSettings

# Project root = two levels up from this file: config.py -> prepcoach/ -> backend/ -> root
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- API Keys ---
    GROQ_API_KEY: str = ""
    OPENAI_API_KEY: str = ""

    # --- Server ---
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # --- Chat models ---
    CHAT_MODEL: str = "llama-3.3-70b-versatile"
    CHAT_TEMPERATURE: float = 0.3
    EVALUATION_MODEL: str = "llama-3.3-70b-versatile"
    EVALUATION_TEMPERATURE: float = 0.7

    # --- Embedding Model ---
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIM: int = 1536
    EMBEDDING_MAX_CHARS: int = 8000

    # --- Storage ---
    DB_PATH: str = str(PROJECT_ROOT / "data" / "lancedb")
    TABLE_NAME: str = "experiences"

    # --- RAG Pipeline ---
    RETRIEVAL_LIMIT: int = 100          # K for every retrieval tier
    CONTEXT_THRESHOLD: float = 0.3      # min cosine similarity for answer context
    MAX_CONTEXT_RESULTS: int = 3        # survivors handed to the synthesizer

    # --- Matching ---
    BEST_MATCH_THRESHOLD: float = 0.8       # find-similar
    SUGGEST_UPDATE_THRESHOLD: float = 0.85  # evaluate -> suggested update (strictly above)

    # --- Search ---
    SEARCH_LIMIT: int = 20

    model_config = {
        "env_file": str(PROJECT_ROOT / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()
