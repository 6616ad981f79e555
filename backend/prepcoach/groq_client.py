"""
PrepCoach Interview API - Groq Chat Client

Wrapper for the Groq SDK chat-completion endpoint with token tracking.
Each call is attempted exactly once; provider failures are raised as
CompletionError.
"""

import time
from typing import Any, Dict, List, Optional

from groq import APIError, Groq

from prepcoach.errors import CompletionError
from prepcoach.logger import get_logger

log = get_logger("prepcoach.groq")


class GroqClient:
    """Wraps the Groq SDK with a fixed default model and temperature."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.3,
        client: Optional[Any] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.client = client if client is not None else Groq(api_key=api_key)

    def generate(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Non-streaming completion.

        Returns:
            {
                "content": str,
                "prompt_tokens": int,
                "completion_tokens": int,
                "latency_ms": int,
            }
        """
        model = model or self.model
        params: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "stream": False,
        }
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        start = time.perf_counter()
        try:
            response = self.client.chat.completions.create(**params)
        except APIError as e:
            log.warning("completion_failed", model=model, error=str(e))
            raise CompletionError(f"Chat completion failed: {e}") from e
        latency_ms = int((time.perf_counter() - start) * 1000)

        usage = getattr(response, "usage", None)
        return {
            "content": (response.choices[0].message.content or "").strip(),
            "prompt_tokens": usage.prompt_tokens if usage else 0,
            "completion_tokens": usage.completion_tokens if usage else 0,
            "latency_ms": latency_ms,
        }

    def complete(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        **kwargs: Any,
    ) -> str:
        """Single-turn completion; returns only the answer text."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return self.generate(messages, **kwargs)["content"]
