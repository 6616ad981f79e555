"""
PrepCoach Interview API - Reference Formatter

Appends a markdown references block that links each cited snippet back to
its experience page.
"""

from typing import Sequence

from prepcoach.pipeline.relevance import Candidate

REFERENCE_LINK_BASE = "/navigate-experiences"


def format_reference(index: int, candidate: Candidate) -> str:
    exp = candidate.experience
    title = exp.title or "Experience"
    return f"**[{index}]** [{title}]({REFERENCE_LINK_BASE}#{exp.id}): {exp.content}"


def format_references(candidates: Sequence[Candidate]) -> str:
    """The `**References:**` block, numbered in the given (score) order."""
    entries = [format_reference(i, c) for i, c in enumerate(candidates, 1)]
    return "**References:**\n" + "\n\n".join(entries)


def append_references(answer: str, candidates: Sequence[Candidate]) -> str:
    """Return the answer with a references block, or unchanged when nothing was cited."""
    if not candidates:
        return answer
    return f"{answer}\n\n---\n{format_references(candidates)}"
