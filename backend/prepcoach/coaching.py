"""
PrepCoach Interview API - Coaching Services

Model-backed helpers around practice answers and stored stories:
- evaluate: graded feedback, rating, suggested experience update
- format_star: STAR restructuring of a free-form story
- suggest_edits: merged rewrite plus a markdown diff
- suggest_category: category for a new experience
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from prepcoach.errors import PrepCoachError
from prepcoach.evaluator.rating import extract_rating
from prepcoach.groq_client import GroqClient
from prepcoach.logger import get_logger
from prepcoach.pipeline.rag import RagPipeline

log = get_logger("prepcoach.coaching")


# ─── Prompts ───────────────────────────────────────────────

EVALUATION_PROMPT_TEMPLATE = """You are a technical executive evaluating an interview candidate to be your peer. You are looking for a highly technical and competent leader. Expect detailed answers that show the framework the candidate is using and examples of that framework in action. Judge both their answer to the question and their ability to lead a very technical team. An ideal answer is about 5 minutes long.

Question: {question}

Answer: {answer}

Provide constructive feedback on:
1. Content quality and completeness
2. Structure and clarity
3. Specific examples and evidence
4. Areas for improvement, with specific adjustments to the answer given

**IMPORTANT: End your evaluation with a clear overall rating from 1-10, formatted exactly as "Overall Rating: X/10". Unless the answer would take more than 15 minutes to read, do not deduct for length.**

Scale:
- 9-10: Exceptional answer with compelling, easy-to-follow examples, strong structure, high competence
- 7-8: Strong answer with good examples and clear structure
- 5-6: Adequate answer but lacking detail or structure
- 3-4: Weak answer with minimal examples or poor structure
- 1-2: Poor answer that doesn't address the question

Format your response in markdown with clear sections."""

MERGE_PROMPT_TEMPLATE = """You have an existing experience and a new answer. Suggest an improved version that combines the best of both:

Existing Experience:
{existing}

New Answer:
{answer}

The improved version should:
1. Keep the best parts of the existing experience
2. Incorporate new insights from the answer
3. Keep a consistent tone and style
4. Provide more detail and better examples

Return only the improved experience content, no explanation."""

STAR_SYSTEM_PROMPT = (
    "You are an expert interview coach helping candidates structure their "
    "experiences using the STAR method. Always preserve all details and keep "
    "responses in clear narrative format."
)

STAR_PROMPT_TEMPLATE = """Restructure the following interview experience into STAR format (Situation, Task, Action, Result).

Keep it in narrative form (not bullet points) and preserve ALL details from the original: specifics, numbers, outcomes and context.

Original Question: {question}

Original Experience:
{content}

Structure it as:

**Situation:** [context and background]

**Task:** [what needed to be accomplished]

**Action:** [the specific steps taken]

**Result:** [outcomes, impact and lessons learned]

Keep the tone professional but conversational, as if telling the story in an interview."""

EDIT_SYSTEM_PROMPT = "You are an expert at merging and improving interview experiences."

EDIT_PROMPT_TEMPLATE = """Given the existing experience and the new answer, suggest an improved version that combines the best details, adds missing metrics, and keeps specificity, 'I' language and business impact. Format as markdown.

Existing Experience:
{original}

New Answer:
{new_text}

Improved Experience:"""

DIFF_SYSTEM_PROMPT = "You are a markdown diff generator."

DIFF_PROMPT_TEMPLATE = """Compare the following two interview experiences and output a markdown-formatted diff, highlighting what was added, removed, or changed.

Original:
{original}

New:
{new_text}

Markdown Diff:"""

CATEGORY_SYSTEM_PROMPT = (
    "You are an expert interview coach. Given an experience, you will assign "
    "the best-fit category from common behavioral or technical interview "
    "themes. Respond with only the category name."
)

CATEGORY_PROMPT_TEMPLATE = """Given the following interview experience, suggest the most appropriate behavioral or technical category (e.g., Leadership, Technical Trade-offs, Customer Focus, Operational Excellence, Data & Decision Quality). Respond with only the category name, no explanation.

Title: {title}
Content: {content}"""


class StarFormattingError(PrepCoachError):
    """The model returned nothing to use as the STAR rewrite."""


@dataclass
class EvaluationResult:
    evaluation: str
    rating: int
    matched_experience: Optional[Dict[str, Any]] = None
    suggested_update: Optional[Dict[str, str]] = None


class CoachingService:
    """Grades practice answers and restructures stories."""

    def __init__(
        self,
        client: GroqClient,
        pipeline: RagPipeline,
        suggest_update_threshold: float = 0.85,
        evaluation_temperature: float = 0.7,
    ):
        self.client = client
        self.pipeline = pipeline
        self.suggest_update_threshold = suggest_update_threshold
        self.evaluation_temperature = evaluation_temperature

    def evaluate(self, question: str, answer: str) -> EvaluationResult:
        """
        Grade an answer, then look for a stored experience it closely matches.

        Grading errors propagate. Matching is best-effort: a failure there is
        logged and the result simply carries no match.
        """
        evaluation = self.client.complete(
            None,
            EVALUATION_PROMPT_TEMPLATE.format(question=question, answer=answer),
            temperature=self.evaluation_temperature,
        )
        result = EvaluationResult(evaluation=evaluation, rating=extract_rating(evaluation))

        try:
            match, similarity = self.pipeline.find_best_match(
                answer,
                threshold=self.suggest_update_threshold,
                limit=5,
                inclusive=False,
            )
            if match is not None:
                existing = match.experience
                result.matched_experience = match.to_public()
                merged = self.client.complete(
                    None,
                    MERGE_PROMPT_TEMPLATE.format(existing=existing.content, answer=answer),
                    temperature=self.evaluation_temperature,
                )
                result.suggested_update = {"title": existing.title, "content": merged}
                log.info("suggested_update_generated", id=existing.id, similarity=round(similarity, 4))
        except Exception as e:
            log.warning("evaluation_match_failed", error=str(e))

        return result

    def format_star(self, content: str, question: Optional[str] = None) -> str:
        """Rewrite content into Situation / Task / Action / Result sections."""
        formatted = self.client.complete(
            STAR_SYSTEM_PROMPT,
            STAR_PROMPT_TEMPLATE.format(
                question=question or "Interview question",
                content=content,
            ),
            max_tokens=2000,
        )
        if not formatted:
            raise StarFormattingError("No formatted content received from the model")
        return formatted.strip()

    def suggest_edits(self, original: str, new_text: str) -> Tuple[str, str]:
        """Returns (suggested merge, markdown diff of original vs new_text)."""
        suggested = self.client.complete(
            EDIT_SYSTEM_PROMPT,
            EDIT_PROMPT_TEMPLATE.format(original=original, new_text=new_text),
            temperature=0.2,
        )
        diff = self.client.complete(
            DIFF_SYSTEM_PROMPT,
            DIFF_PROMPT_TEMPLATE.format(original=original, new_text=new_text),
            temperature=0.1,
        )
        return suggested, diff

    def suggest_category(self, title: str, content: str) -> str:
        category = self.client.complete(
            CATEGORY_SYSTEM_PROMPT,
            CATEGORY_PROMPT_TEMPLATE.format(title=title, content=content),
            temperature=0,
            max_tokens=16,
        )
        log.info("category_suggested", title=title, category=category)
        return category
