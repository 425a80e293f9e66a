"""
Base interface for text-generation providers.
Allows swapping between OpenAI or other providers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class TextGenerationError(Exception):
    """Raised when a provider fails to produce text."""

    pass


class TextGenerator(ABC):
    """Abstract base class for text-generation providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name (e.g., 'openai')."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model being used (e.g., 'gpt-4o-mini')."""
        pass

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """
        Generate text from a prompt.

        A single synchronous call with no retry.

        Raises:
            TextGenerationError: If the provider call fails or returns nothing
        """
        pass
