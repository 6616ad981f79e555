"""
PrepCoach Interview API - Pydantic Schemas

Request/response models. Required fields are Optional here so that missing
values produce the API's own 400 messages instead of a 422.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


# ─── Requests ──────────────────────────────────────────────

class GenerateRequest(BaseModel):
    """POST /generate request body."""
    question: Optional[str] = None


class FindSimilarRequest(BaseModel):
    """POST /experiences/find-similar request body."""
    text: Optional[str] = None


class EvaluateRequest(BaseModel):
    """POST /experiences/evaluate request body."""
    question: Optional[str] = None
    answer: Optional[str] = None


class FormatStarRequest(BaseModel):
    """POST /experiences/format-star request body."""
    question: Optional[str] = None
    content: Optional[str] = None


class SuggestEditsRequest(BaseModel):
    """POST /experiences/suggest-edits request body."""
    model_config = ConfigDict(populate_by_name=True)

    original: Optional[str] = None
    new_text: Optional[str] = Field(None, alias="newText")


# ─── Response (nested models) ─────────────────────────────

class ExperienceMetadataOut(BaseModel):
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    role: str = ""
    date: Optional[str] = None


class ExperienceOut(BaseModel):
    """An experience as returned to clients (no embedding)."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    content: str
    metadata: ExperienceMetadataOut = Field(default_factory=ExperienceMetadataOut)
    created_at: str = Field("", alias="createdAt")
    updated_at: str = Field("", alias="updatedAt")


class CandidateOut(ExperienceOut):
    """An experience used as answer context, with its similarity."""
    similarity: float


class GenerateDebug(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    candidates_found: int = Field(alias="candidatesFound")
    relevant_results: int = Field(alias="relevantResults")
    threshold: float
    used_fallback: bool = Field(alias="usedFallback")
    tier: str


class GenerateResponse(BaseModel):
    """POST /generate response body."""
    answer: str
    context: List[CandidateOut]
    debug: GenerateDebug


class FindSimilarResponse(BaseModel):
    match: Optional[CandidateOut] = None
    similarity: float


class SuggestedUpdate(BaseModel):
    title: str
    content: str


class EvaluateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    evaluation: str
    rating: int
    matched_experience: Optional[CandidateOut] = Field(None, alias="matchedExperience")
    suggested_update: Optional[SuggestedUpdate] = Field(None, alias="suggestedUpdate")


class FormatStarResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    formatted_content: str = Field(alias="formattedContent")
    original_content: str = Field(alias="originalContent")


class SuggestEditsResponse(BaseModel):
    suggested: str
    diff: str
