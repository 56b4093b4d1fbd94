"""Tests for the content provider gateway."""
import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import openai
import pytest

from nexus_ops.llm_client import (
    ContentProviderError,
    LLMClient,
    LLMConfig,
    MalformedContentError,
    parse_script,
)
from nexus_ops.models import MemberRecord


def _response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _client(content=None, error=None) -> LLMClient:
    client = LLMClient(LLMConfig(api_key="test-key"), script_length=10, language="Bengali")
    client.client = Mock()
    if error is not None:
        client.client.chat.completions.create.side_effect = error
    else:
        client.client.chat.completions.create.return_value = _response(content)
    return client


def _members(count: int):
    return [
        MemberRecord(
            id=str(i),
            username=f"member{i}",
            messages=0,
            vc_minutes=0,
            avatar="",
            joined_date=f"2024-01-{i + 1:02d}",
        )
        for i in range(count)
    ]


def test_llm_config_from_env():
    """Test loading LLM configuration from environment variables."""
    with patch.dict(os.environ, {
        "LLM_API_BASE": "http://test:8080/v1",
        "LLM_API_KEY": "test-key",
        "LLM_MODEL_NAME": "test-model",
        "LLM_TEMPERATURE": "0.5",
        "LLM_MAX_TOKENS": "300",
        "LLM_MODE": "mock",
    }):
        config = LLMConfig.from_env()
        assert config.api_base == "http://test:8080/v1"
        assert config.api_key == "test-key"
        assert config.model_name == "test-model"
        assert config.temperature == 0.5
        assert config.max_tokens == 300
        assert config.mock_mode is True


def test_llm_config_invalid_numbers_fall_back():
    with patch.dict(os.environ, {"LLM_TEMPERATURE": "hot", "LLM_TIMEOUT": "soon"}):
        config = LLMConfig.from_env()
    assert config.temperature == 0.8
    assert config.timeout == 30


def test_llm_config_defaults():
    config = LLMConfig()
    assert config.api_base == "http://localhost:5000/v1"
    assert config.model_name == "local-model"
    assert config.mock_mode is False


@pytest.mark.parametrize(
    "text, expected",
    [
        ('["a", "b"]', ["a", "b"]),
        ('```json\n["wipe roles", "drop channels"]\n```', ["wipe roles", "drop channels"]),
        ("[1, \"two\"]", ["1", "two"]),
        ("", []),
        (None, []),
    ],
)
def test_parse_script_accepts_arrays(text, expected):
    assert parse_script(text) == expected


@pytest.mark.parametrize("text", ['{"steps": ["a"]}', "not json", '"just a string"'])
def test_parse_script_rejects_non_arrays(text):
    with pytest.raises(MalformedContentError):
        parse_script(text)


@pytest.mark.asyncio
async def test_operation_script_parses_response():
    client = _client('["Deleting #general... OK", "Purging roles... OK"]')
    try:
        steps = await client.request_operation_script("Nexus")
    finally:
        client.close()

    assert steps == ["Deleting #general... OK", "Purging roles... OK"]
    kwargs = client.client.chat.completions.create.call_args.kwargs
    prompt = kwargs["messages"][-1]["content"]
    assert "'Nexus'" in prompt
    assert "10 terminal-style" in prompt


@pytest.mark.asyncio
async def test_operation_script_fails_closed_on_malformed_response():
    client = _client('{"lines": "nope"}')
    try:
        steps = await client.request_operation_script("Nexus")
    finally:
        client.close()

    assert steps == []


@pytest.mark.asyncio
async def test_provider_error_is_wrapped():
    client = _client(error=openai.OpenAIError("connection refused"))
    try:
        with pytest.raises(ContentProviderError):
            await client.request_operation_script("Nexus")
        with pytest.raises(ContentProviderError):
            await client.request_threat_narrative(_members(2))
    finally:
        client.close()
    assert client.client.chat.completions.create.call_count == 2


@pytest.mark.asyncio
async def test_threat_narrative_uses_first_ten_members():
    client = _client("  member3 looks like a bot.  ")
    try:
        report = await client.request_threat_narrative(_members(15))
    finally:
        client.close()

    assert report == "member3 looks like a bot."
    prompt = client.client.chat.completions.create.call_args.kwargs["messages"][-1]["content"]
    assert "member0 (Joined: 2024-01-01)" in prompt
    assert "member9 (Joined: 2024-01-10)" in prompt
    assert "member10" not in prompt
    assert "Bengali" in prompt


@pytest.mark.asyncio
async def test_missing_choices_is_provider_error():
    client = _client()
    client.client.chat.completions.create.return_value = SimpleNamespace(choices=[])
    try:
        with pytest.raises(ContentProviderError):
            await client.request_threat_narrative(_members(1))
    finally:
        client.close()


@pytest.mark.asyncio
async def test_mock_mode_needs_no_network():
    client = LLMClient(LLMConfig(mock_mode=True), script_length=4)
    client._complete = AsyncMock()
    try:
        steps = await client.request_operation_script("Nexus")
        report = await client.request_threat_narrative(_members(2))
    finally:
        client.close()

    assert len(steps) == 4
    assert all("Nexus" in step for step in steps)
    assert report.startswith("[MOCK]")
    client._complete.assert_not_called()


def test_close_does_not_wait_for_in_flight_calls():
    client = LLMClient(LLMConfig(mock_mode=True))
    executor = client._executor
    client._executor = Mock()

    client.close()

    client._executor.shutdown.assert_called_once_with(wait=False)
    executor.shutdown(wait=False)
