"""
Unit tests for the transformation oracle clients.
"""

from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from codeport.config.models import LLMConfig, LLMProvider, ModelHint, SourceFile, TransformOptions
from codeport.translator.llm_client import (
    FALLBACK_MARKER,
    DeterministicFallbackClient,
    OracleRequest,
    RemoteOracleClient,
    TransformConversation,
    create_oracle_client,
    resolve_model,
)


@pytest.fixture
def request_for_file():
    return OracleRequest(
        messages=[{"role": "system", "content": "sys"}, {"role": "user", "content": "convert"}],
        options=TransformOptions(),
        subject=SourceFile(path="Main.kt", content="class Main {\n}"),
    )


@pytest.fixture
def compatible_config():
    return LLMConfig(provider=LLMProvider.OPENAI_COMPATIBLE, base_url="http://localhost:8080")


def _completion(text: str) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    return response


def _chunk(token):
    chunk = MagicMock()
    chunk.choices = [MagicMock()]
    chunk.choices[0].delta.content = token
    return chunk


# =============================================================================
# Model routing
# =============================================================================


def test_primary_model_routes_by_hint():
    config = LLMConfig()
    assert resolve_model(TransformOptions(model="primary", model_hint=ModelHint.SMALL), config) == "qwen2.5-coder:1.5b"
    assert resolve_model(TransformOptions(model="qwen", model_hint=ModelHint.LARGE), config) == "qwen2.5-coder:7b"


def test_default_model_uses_config():
    config = LLMConfig(model="my-model")
    assert resolve_model(TransformOptions(model="default"), config) == "my-model"


def test_concrete_model_passes_through():
    assert resolve_model(TransformOptions(model="gpt-4o-mini"), LLMConfig()) == "gpt-4o-mini"


# =============================================================================
# Client selection
# =============================================================================


def test_fallback_provider_selects_fallback_client():
    client = create_oracle_client(LLMConfig(provider=LLMProvider.FALLBACK))
    assert isinstance(client, DeterministicFallbackClient)


def test_missing_base_url_selects_fallback_client():
    client = create_oracle_client(LLMConfig(provider=LLMProvider.OPENAI_COMPATIBLE))
    assert isinstance(client, DeterministicFallbackClient)


@patch("codeport.translator.llm_client.OpenAI")
def test_compatible_provider_appends_v1(mock_openai, compatible_config):
    client = create_oracle_client(compatible_config)

    assert isinstance(client, RemoteOracleClient)
    kwargs = mock_openai.call_args.kwargs
    assert kwargs["base_url"] == "http://localhost:8080/v1"


def test_openai_provider_requires_api_key():
    with pytest.raises(ValueError, match="API key"):
        RemoteOracleClient(LLMConfig(provider=LLMProvider.OPENAI))


# =============================================================================
# Fallback behavior
# =============================================================================


def test_fallback_placeholder_is_marked(request_for_file):
    response = DeterministicFallbackClient().transform(request_for_file)

    assert response.fallback
    assert response.text.startswith(FALLBACK_MARKER)
    assert "// Source: Main.kt" in response.text
    assert "// class Main {" in response.text


def test_fallback_is_deterministic(request_for_file):
    client = DeterministicFallbackClient()
    assert client.transform(request_for_file).text == client.transform(request_for_file).text


@patch("codeport.translator.llm_client.OpenAI")
def test_transform_returns_completion_text(mock_openai, compatible_config, request_for_file):
    mock_openai.return_value.chat.completions.create.return_value = _completion("struct Main {}")

    response = RemoteOracleClient(compatible_config).transform(request_for_file)

    assert response.text == "struct Main {}"
    assert response.model == "qwen2.5-coder:3b"
    assert not response.fallback


@patch("codeport.translator.llm_client.OpenAI")
def test_connection_error_returns_fallback(mock_openai, compatible_config, request_for_file):
    mock_openai.return_value.chat.completions.create.side_effect = openai.APIConnectionError(
        request=httpx.Request("POST", "http://localhost:8080/v1/chat/completions")
    )

    response = RemoteOracleClient(compatible_config).transform(request_for_file)

    assert response.fallback
    assert FALLBACK_MARKER in response.text


@patch("codeport.translator.llm_client.OpenAI")
def test_non_transport_errors_propagate(mock_openai, compatible_config, request_for_file):
    mock_openai.return_value.chat.completions.create.side_effect = KeyError("boom")

    with pytest.raises(KeyError):
        RemoteOracleClient(compatible_config).transform(request_for_file)


# =============================================================================
# Streaming
# =============================================================================


@patch("codeport.translator.llm_client.OpenAI")
def test_stream_delivers_tokens_in_order(mock_openai, compatible_config, request_for_file):
    mock_openai.return_value.chat.completions.create.return_value = iter(
        [_chunk("struct "), _chunk(None), _chunk("Main"), _chunk(" {}")]
    )
    tokens = []

    response = RemoteOracleClient(compatible_config).stream(request_for_file, on_token=tokens.append)

    assert tokens == ["struct ", "Main", " {}"]
    assert response.text == "struct Main {}"


@patch("codeport.translator.llm_client.OpenAI")
def test_stream_timeout_returns_fallback(mock_openai, compatible_config, request_for_file):
    mock_openai.return_value.chat.completions.create.side_effect = httpx.ReadTimeout("slow")

    response = RemoteOracleClient(compatible_config).stream(request_for_file)

    assert response.fallback


@patch("codeport.translator.llm_client.ollama.Client")
def test_ollama_stream(mock_client, request_for_file):
    mock_client.return_value.chat.return_value = iter(
        [{"message": {"content": "struct "}}, {"message": {"content": "Main {}"}}]
    )
    client = RemoteOracleClient(LLMConfig(provider=LLMProvider.OLLAMA))

    assert list(client.iter_tokens(request_for_file)) == ["struct ", "Main {}"]


def test_default_stream_delivers_whole_response(request_for_file):
    tokens = []
    response = DeterministicFallbackClient().stream(request_for_file, on_token=tokens.append)
    assert tokens == [response.text]


def test_conversation_is_append_only():
    conversation = TransformConversation()
    conversation.add_message("system", "a")
    conversation.add_message("user", "b")

    assert len(conversation) == 2
    assert conversation.messages[-1] == {"role": "user", "content": "b"}
