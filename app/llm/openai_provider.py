"""
OpenAI text-generation provider implementation.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from openai import OpenAI, OpenAIError

from app.llm.base import TextGenerationError, TextGenerator
from app.logging_config import log_llm_call

logger = logging.getLogger(__name__)


class OpenAITextGenerator(TextGenerator):
    """OpenAI-based text generator."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[OpenAI] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. If not provided, uses OPENAI_API_KEY env var.
            model: Model to use. If not provided, uses OPENAI_MODEL env var
                   or defaults to gpt-4o-mini for cost efficiency.
            client: Pre-built client (tests)
        """
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self._api_key and client is None:
            raise ValueError(
                "OpenAI API key required. Set OPENAI_API_KEY env var or pass api_key."
            )

        self._model = model or os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self._client = client or OpenAI(api_key=self._api_key)

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self._model

    def generate(self, prompt: str) -> str:
        """Single chat completion with the prompt as the user message."""
        try:
            with log_llm_call(self.name, self._model) as metrics:
                response = self._client.chat.completions.create(
                    model=self._model,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=0.4,
                )
                usage = getattr(response, "usage", None)
                if usage is not None:
                    metrics["tokens_in"] = usage.prompt_tokens
                    metrics["tokens_out"] = usage.completion_tokens
        except OpenAIError as e:
            raise TextGenerationError(f"OpenAI generation failed: {e}") from e

        if not response.choices:
            raise TextGenerationError("OpenAI returned no choices")
        text = (response.choices[0].message.content or "").strip()
        if not text:
            raise TextGenerationError("OpenAI returned an empty response")
        return text
