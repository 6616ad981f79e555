"""
PrepCoach Interview API - Structured Logger

JSON-formatted logging using structlog.
Every generation request is logged as one event with its retrieval stats
and token usage.
"""

import logging

import structlog

from prepcoach.config import get_settings


def setup_logger(level: str = "INFO"):
    """JSON lines to stdout, dropping events below `level`."""
    min_level = getattr(logging, level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


setup_logger(get_settings().LOG_LEVEL)
logger = structlog.get_logger("prepcoach")


def get_logger(name: str):
    """Named logger for a pipeline component."""
    return structlog.get_logger(name)


def log_generation(
    question: str,
    tier: str,
    used_fallback: bool,
    candidates_found: int,
    relevant_results: int,
    threshold: float,
    tokens_input: int,
    tokens_output: int,
    latency_ms: int,
):
    """Log a complete answer-generation event."""
    logger.info(
        "generation_processed",
        question=question,
        tier=tier,
        used_fallback=used_fallback,
        candidates_found=candidates_found,
        relevant_results=relevant_results,
        threshold=threshold,
        tokens_input=tokens_input,
        tokens_output=tokens_output,
        latency_ms=latency_ms,
    )
