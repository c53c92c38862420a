import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from oxbow.mirror.errors import TranscriptionError
from oxbow.mirror.llm_client import LLMClient


def _response(
    content: str | None,
    finish_reason: str = "stop",
    usage: tuple[int, int, int] | None = (12, 30, 42),
):
    mock_message = MagicMock()
    mock_message.content = content

    mock_choice = MagicMock()
    mock_choice.message = mock_message
    mock_choice.finish_reason = finish_reason

    mock_response = MagicMock()
    mock_response.choices = [mock_choice]
    if usage is None:
        mock_response.usage = None
    else:
        mock_response.usage = MagicMock(
            prompt_tokens=usage[0], completion_tokens=usage[1], total_tokens=usage[2]
        )
    return mock_response


def _client_instance(create: AsyncMock) -> MagicMock:
    mock_completions = MagicMock()
    mock_completions.create = create

    mock_chat = MagicMock()
    mock_chat.completions = mock_completions

    mock_client_instance = MagicMock()
    mock_client_instance.chat = mock_chat
    return mock_client_instance


def _status_error(status_code: int, message: str) -> openai.APIStatusError:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return openai.APIStatusError(message, response=httpx.Response(status_code, request=request), body=None)


@pytest.mark.asyncio
async def test_complete_parses_fenced_json_and_reports_usage():
    create = AsyncMock(return_value=_response('```json\n{"screen1_themes": {"title": "Themes"}}\n```'))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        client = LLMClient(model_name="test-model", api_key="dummy_key")
        result = await client.complete("prompt", "core", 5)

    assert result.success is True
    assert result.finish_reason == "stop"
    assert result.content == {"screen1_themes": {"title": "Themes"}}
    assert result.usage.total_tokens == 42
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["max_completion_tokens"] == 10000


@pytest.mark.asyncio
async def test_complete_respects_per_call_token_cap():
    create = AsyncMock(return_value=_response('{"ok": true}'))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        client = LLMClient(api_key="dummy_key")
        await client.complete("prompt", "preview", 5, max_tokens=2000)

    assert create.call_args.kwargs["max_completion_tokens"] == 2000


def test_sdk_retries_are_disabled():
    with patch("oxbow.mirror.llm_client.AsyncOpenAI") as openai_cls:
        LLMClient(api_key="dummy_key")

    assert openai_cls.call_args.kwargs["max_retries"] == 0


@pytest.mark.asyncio
async def test_content_filter_is_tagged_not_successful():
    create = AsyncMock(return_value=_response("", finish_reason="content_filter"))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        result = await LLMClient(api_key="dummy_key").complete("prompt", "core", 5)

    assert result.success is False
    assert result.content_filter_triggered is True
    assert result.finish_reason == "content_filter"


@pytest.mark.asyncio
async def test_timeout_becomes_tagged_result():
    create = AsyncMock(side_effect=asyncio.TimeoutError())

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        result = await LLMClient(api_key="dummy_key").complete("prompt", "core", 240)

    assert result.success is False
    assert result.finish_reason == "timeout"
    assert "240" in result.error
    assert result.usage is None


@pytest.mark.asyncio
async def test_provider_status_error_carries_status_code():
    create = AsyncMock(side_effect=_status_error(503, "overloaded"))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        result = await LLMClient(api_key="dummy_key").complete("prompt", "core", 5)

    assert result.finish_reason == "api_error"
    assert result.status_code == 503
    assert "overloaded" in result.error


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_tagged_result():
    create = AsyncMock(side_effect=ConnectionResetError("socket closed"))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        result = await LLMClient(api_key="dummy_key").complete("prompt", "core", 5)

    assert result.finish_reason == "exception"
    assert "socket closed" in result.error


@pytest.mark.asyncio
async def test_unparseable_output_is_parse_error_with_usage():
    create = AsyncMock(return_value=_response("Here are your themes: Trust, Hope"))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        result = await LLMClient(api_key="dummy_key").complete("prompt", "core", 5)

    assert result.finish_reason == "parse_error"
    assert result.success is False
    assert result.usage.total_tokens == 42
    assert result.raw_text.startswith("Here are")


@pytest.mark.asyncio
async def test_deeply_nested_output_is_parse_error():
    create = AsyncMock(return_value=_response('{"a": ' + "[" * 100000 + "]" * 100000 + "}"))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        result = await LLMClient(api_key="dummy_key").complete("prompt", "core", 5)

    assert result.success is False
    assert result.finish_reason == "parse_error"
    assert "nesting too deep" in result.error


@pytest.mark.asyncio
async def test_empty_output_is_parse_error():
    create = AsyncMock(return_value=_response(None, usage=None))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        result = await LLMClient(api_key="dummy_key").complete("prompt", "core", 5)

    assert result.finish_reason == "parse_error"
    assert result.usage is None


def test_missing_api_key_is_a_programmer_error():
    with patch("oxbow.mirror.llm_client.settings.OPENAI_API_KEY", None):
        with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
            LLMClient()


@pytest.mark.asyncio
async def test_complete_text_returns_stripped_text():
    create = AsyncMock(return_value=_response("  Trust \n"))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=_client_instance(create)):
        text = await LLMClient(api_key="dummy_key").complete_text("prompt", max_tokens=10)

    assert text == "Trust"
    assert "response_format" not in create.call_args.kwargs
    assert create.call_args.kwargs["max_completion_tokens"] == 10


@pytest.mark.asyncio
async def test_transcribe_sends_m4a_file():
    mock_client_instance = MagicMock()
    mock_client_instance.audio.transcriptions.create = AsyncMock(return_value=MagicMock(text=" I prayed today. "))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        text = await LLMClient(api_key="dummy_key").transcribe(b"audio-bytes")

    assert text == "I prayed today."
    kwargs = mock_client_instance.audio.transcriptions.create.call_args.kwargs
    assert kwargs["model"] == "whisper-1"
    assert kwargs["file"] == ("recording.m4a", b"audio-bytes", "audio/m4a")


@pytest.mark.asyncio
async def test_transcribe_timeout_raises_transcription_error():
    mock_client_instance = MagicMock()
    mock_client_instance.audio.transcriptions.create = AsyncMock(side_effect=asyncio.TimeoutError())

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with pytest.raises(TranscriptionError) as exc_info:
            await LLMClient(api_key="dummy_key").transcribe(b"audio-bytes")

    assert exc_info.value.error_type == "timeout"
    assert "too long" in str(exc_info.value)


@pytest.mark.asyncio
async def test_transcribe_empty_text_raises():
    mock_client_instance = MagicMock()
    mock_client_instance.audio.transcriptions.create = AsyncMock(return_value=MagicMock(text="   "))

    with patch("oxbow.mirror.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with pytest.raises(TranscriptionError, match="empty transcription"):
            await LLMClient(api_key="dummy_key").transcribe(b"audio-bytes")
