"""
PrepCoach Interview API - Answer Synthesizer

Turns a question plus the numbered context string into a first-person
interview answer.
"""

from typing import Any, Dict, Optional

from prepcoach.groq_client import GroqClient
from prepcoach.pipeline.prompt import build_messages


class AnswerSynthesizer:
    """Calls the chat model once per question; errors propagate."""

    def __init__(self, client: GroqClient, max_tokens: Optional[int] = None):
        self.client = client
        self.max_tokens = max_tokens

    def generate(self, question: str, context: str) -> Dict[str, Any]:
        """Answer plus token usage, as returned by GroqClient.generate."""
        messages, _salt = build_messages(question=question, context=context)
        return self.client.generate(messages=messages, max_tokens=self.max_tokens)

    def synthesize(self, question: str, context: str) -> str:
        return self.generate(question, context)["content"]
