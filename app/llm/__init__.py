"""
Text-generation provider abstraction layer.

Usage:
    from app.llm import get_text_generator

    generator = get_text_generator()  # None when no API key is configured
    text = generator.generate(prompt)
"""

from __future__ import annotations

import logging
from typing import Optional

from app.config import get_settings
from app.llm.base import TextGenerationError, TextGenerator

__all__ = [
    "TextGenerationError",
    "TextGenerator",
    "get_text_generator",
]

logger = logging.getLogger(__name__)


def get_text_generator(
    provider_name: Optional[str] = None,
    **kwargs,
) -> Optional[TextGenerator]:
    """
    Factory function to get a text generator instance.

    Args:
        provider_name: Provider to use ('openai'). Defaults to openai.
        **kwargs: Additional arguments passed to the provider constructor

    Returns:
        Configured TextGenerator, or None when the provider has no credentials
    """
    name = (provider_name or "openai").lower().strip()

    if name == "openai":
        settings = get_settings()
        api_key = kwargs.pop("api_key", None) or settings.OPENAI_API_KEY
        if not api_key:
            logger.info("OPENAI_API_KEY not set, post insights disabled")
            return None

        from app.llm.openai_provider import OpenAITextGenerator

        return OpenAITextGenerator(api_key=api_key, model=kwargs.pop("model", settings.OPENAI_MODEL), **kwargs)

    raise ValueError(
        f"Unknown text generation provider: {name}. Available: openai"
    )
