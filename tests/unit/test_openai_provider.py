# tests/unit/test_openai_provider.py
"""
Unit tests for the OpenAI text generator and the insight prompt.

The OpenAI client is mocked; no network calls are made.
"""

from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from app.llm import get_text_generator
from app.llm.base import TextGenerationError
from app.llm.openai_provider import OpenAITextGenerator


def completion(text: str | None, prompt_tokens: int = 120, completion_tokens: int = 40) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    response.usage.prompt_tokens = prompt_tokens
    response.usage.completion_tokens = completion_tokens
    return response


class TestOpenAITextGenerator:
    @pytest.fixture
    def client(self):
        return MagicMock()

    def test_generate_returns_stripped_text(self, client):
        client.chat.completions.create.return_value = completion("  A short insight.  ")
        generator = OpenAITextGenerator(api_key="sk-test", model="gpt-4o-mini", client=client)

        assert generator.generate("prompt") == "A short insight."

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_provider_error_wrapped(self, client):
        client.chat.completions.create.side_effect = OpenAIError("rate limited")
        generator = OpenAITextGenerator(api_key="sk-test", client=client)

        with pytest.raises(TextGenerationError):
            generator.generate("prompt")

    def test_empty_response_is_error(self, client):
        client.chat.completions.create.return_value = completion(None)
        generator = OpenAITextGenerator(api_key="sk-test", client=client)

        with pytest.raises(TextGenerationError):
            generator.generate("prompt")

    def test_no_choices_is_error(self, client):
        response = completion("unused")
        response.choices = []
        client.chat.completions.create.return_value = response
        generator = OpenAITextGenerator(api_key="sk-test", client=client)

        with pytest.raises(TextGenerationError):
            generator.generate("prompt")

    def test_properties(self, client):
        generator = OpenAITextGenerator(api_key="sk-test", model="gpt-4o", client=client)

        assert generator.name == "openai"
        assert generator.model_name == "gpt-4o"


class TestGetTextGenerator:
    def test_none_without_api_key(self):
        with patch("app.llm.get_settings") as settings:
            settings.return_value.OPENAI_API_KEY = None
            assert get_text_generator() is None

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            get_text_generator("nope")
