"""Tests for post translation — response parsing, slug rules, failure handling."""

import json
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from blog_api.services.ingestion.translator import (
    TranslationError,
    TranslationSource,
    _parse_response,
    choose_slug,
    strip_code_fence,
    translate_post,
)

SOURCE = TranslationSource(
    title="Mein Test",
    content="<p>Hallo Welt</p>",
    meta_description="Ein Test",
    tags=["test", "blog"],
)

GOOD_RESPONSE = json.dumps(
    {
        "title": "My Test",
        "content": "<p>Hello world</p>",
        "metaDescription": "A test",
        "tags": ["test", "blog"],
        "slug": "my-test",
    }
)


def _mock_llm(mocker, **kwargs):
    return mocker.patch(
        "blog_api.services.ingestion.translator.chat_completion",
        new_callable=AsyncMock,
        **kwargs,
    )


class TestStripCodeFence:
    def test_plain_json_unchanged(self):
        assert strip_code_fence('{"a": 1}') == '{"a": 1}'

    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence('```\n{"a": 1}\n```\n') == '{"a": 1}'


class TestChooseSlug:
    def test_uses_suggested_slug(self):
        assert choose_slug("My Great Post", "Whatever", "mein-post", "en") == "my-great-post"

    def test_short_suggestion_falls_back_to_title(self):
        assert choose_slug("abc", "My Test", "mein-test", "en") == "my-test"

    def test_missing_suggestion_falls_back_to_title(self):
        assert choose_slug(None, "My Test", "mein-test", "en") == "my-test"

    def test_same_as_canonical_gets_locale_suffix(self):
        assert choose_slug("berlin", "Berlin", "berlin", "en") == "berlin-en"

    def test_unsluggable_title_gets_locale_suffix(self):
        assert choose_slug(None, "!!!", "mein-post", "fr") == "mein-post-fr"


class TestParseResponse:
    def test_full_response(self):
        result = _parse_response(GOOD_RESPONSE, SOURCE, "mein-test", "en")

        assert result.locale == "en"
        assert result.slug == "my-test"
        assert result.title == "My Test"
        assert result.meta_description == "A test"
        assert result.tags == ["test", "blog"]

    def test_missing_meta_and_tags_filled_in(self):
        text = json.dumps({"title": "My Test", "content": "<p>Hello world</p>"})

        result = _parse_response(text, SOURCE, "mein-test", "en")

        assert result.meta_description == "Hello world"
        assert result.tags == ["test", "blog"]

    @pytest.mark.parametrize(
        "text",
        ["not json", "[1, 2]", json.dumps({"content": "x"}), json.dumps({"title": "x"})],
    )
    def test_unusable_responses(self, text):
        with pytest.raises(TranslationError):
            _parse_response(text, SOURCE, "mein-test", "en")


class TestTranslatePost:
    async def test_success(self, mock_settings, mocker):
        mock_llm = _mock_llm(mocker, return_value="```json\n" + GOOD_RESPONSE + "\n```")

        result = await translate_post(SOURCE, "en", "mein-test")

        assert result.slug == "my-test"
        prompt = mock_llm.call_args.kwargs["prompt"]
        assert "from German to English" in prompt
        assert "<p>Hallo Welt</p>" in prompt
        assert mock_llm.call_args.kwargs["temperature"] == 0.3

    async def test_french_prompt(self, mock_settings, mocker):
        mock_llm = _mock_llm(mocker, return_value=GOOD_RESPONSE)

        await translate_post(SOURCE, "fr", "mein-test")

        assert "to French" in mock_llm.call_args.kwargs["prompt"]

    async def test_unsupported_locale(self, mock_settings, mocker):
        mock_llm = _mock_llm(mocker, return_value=GOOD_RESPONSE)

        assert await translate_post(SOURCE, "es", "mein-test") is None
        mock_llm.assert_not_called()

    async def test_no_api_key(self, mock_settings, mocker):
        mock_settings.openai_api_key = ""
        mock_llm = _mock_llm(mocker, return_value=GOOD_RESPONSE)

        assert await translate_post(SOURCE, "en", "mein-test") is None
        mock_llm.assert_not_called()

    async def test_api_error(self, mock_settings, mocker):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        _mock_llm(mocker, side_effect=openai.APITimeoutError(request=request))

        assert await translate_post(SOURCE, "en", "mein-test") is None

    async def test_unexpected_error(self, mock_settings, mocker):
        _mock_llm(mocker, side_effect=RuntimeError("boom"))

        assert await translate_post(SOURCE, "en", "mein-test") is None

    async def test_empty_response(self, mock_settings, mocker):
        _mock_llm(mocker, return_value="   ")

        assert await translate_post(SOURCE, "en", "mein-test") is None

    async def test_malformed_response(self, mock_settings, mocker):
        _mock_llm(mocker, return_value="Sorry, I cannot do that.")

        assert await translate_post(SOURCE, "en", "mein-test") is None
