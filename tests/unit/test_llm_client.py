"""Tests for the GigaChat / Ollama client"""
import time
from unittest.mock import MagicMock, Mock, patch

import ollama
import pytest
import requests

from src.config import LLMSettings
from src.llm_client import LLMClient, LLMError, extract_json


def gigachat_settings():
    return LLMSettings.model_validate({
        "useGigaChat": True,
        "gigaChat": {"apiKey": "a2V5", "model": "GigaChat:latest"},
    })


def ollama_settings():
    return LLMSettings.model_validate({
        "useGigaChat": False,
        "ollama": {"baseURL": "http://localhost:11434", "model": "llama3"},
    })


def make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    response.json.return_value = json_data
    return response


def token_response(expires_in=1800):
    return make_response(200, {
        "access_token": "token-1",
        "expires_at": int((time.time() + expires_in) * 1000),
    })


def chat_response(content):
    return make_response(200, {"choices": [{"message": {"role": "assistant", "content": content}}]})


class TestExtractJson:

    def test_object_inside_markdown(self):
        raw = 'Вот ответ:\n```json\n{"keywords": ["лоток"]}\n```\nГотово'
        assert extract_json(raw) == '{"keywords": ["лоток"]}'

    def test_array(self):
        assert extract_json('[{"name": "Гайка", "price": 5}] ') == '[{"name": "Гайка", "price": 5}]'

    def test_no_json(self):
        with pytest.raises(LLMError):
            extract_json("извините, не могу помочь")


class TestGigaChat:

    @patch('src.llm_client.requests.post')
    def test_token_is_requested_then_reused(self, mock_post):
        mock_post.side_effect = [token_response(), chat_response("первый"), chat_response("второй")]
        client = LLMClient(gigachat_settings(), temperature=0.1, verify_ssl=False, timeout=10)

        assert client.call_for_text("a") == "первый"
        assert client.call_for_text("b") == "второй"

        assert mock_post.call_count == 3
        auth_call = mock_post.call_args_list[0]
        assert auth_call.kwargs["headers"]["Authorization"] == "Basic a2V5"
        assert auth_call.kwargs["data"] == {"scope": "GIGACHAT_API_PERS"}
        assert "RqUID" in auth_call.kwargs["headers"]

        chat_call = mock_post.call_args_list[1]
        assert chat_call.kwargs["headers"]["Authorization"] == "Bearer token-1"
        assert chat_call.kwargs["json"]["model"] == "GigaChat:latest"
        assert chat_call.kwargs["json"]["temperature"] == 0.1
        assert chat_call.kwargs["json"]["messages"] == [{"role": "user", "content": "a"}]

    @patch('src.llm_client.requests.post')
    def test_expiring_token_is_refreshed(self, mock_post):
        # Expires within the refresh margin
        mock_post.side_effect = [
            token_response(expires_in=30), chat_response("1"),
            token_response(), chat_response("2"),
        ]
        client = LLMClient(gigachat_settings(), verify_ssl=False)

        client.call_for_text("a")
        client.call_for_text("b")

        assert mock_post.call_count == 4

    @patch('src.llm_client.requests.post')
    def test_auth_failure(self, mock_post):
        mock_post.return_value = make_response(401, {"message": "Unauthorized"}, text="Unauthorized")
        client = LLMClient(gigachat_settings(), verify_ssl=False)

        with pytest.raises(LLMError) as exc_info:
            client.call_for_text("a")

        assert "401" in str(exc_info.value)

    @patch('src.llm_client.requests.post')
    def test_network_error(self, mock_post):
        mock_post.side_effect = [token_response(), requests.exceptions.ConnectionError("boom")]
        client = LLMClient(gigachat_settings(), verify_ssl=False)

        with pytest.raises(LLMError) as exc_info:
            client.call_for_text("a")

        assert "сетевая ошибка при вызове GigaChat" in str(exc_info.value)

    @patch('src.llm_client.requests.post')
    def test_empty_choices(self, mock_post):
        mock_post.side_effect = [token_response(), make_response(200, {"choices": []})]
        client = LLMClient(gigachat_settings(), verify_ssl=False)

        with pytest.raises(LLMError) as exc_info:
            client.call_for_text("a")

        assert "пустой ответ" in str(exc_info.value)

    @patch('src.llm_client.requests.post')
    def test_call_for_json_extracts_payload(self, mock_post):
        mock_post.side_effect = [token_response(), chat_response('Ответ: {"found_items": []}')]
        client = LLMClient(gigachat_settings(), verify_ssl=False)

        assert client.call_for_json("a") == '{"found_items": []}'


class TestOllama:

    @patch('src.llm_client.ollama.Client')
    def test_chat_request(self, mock_client_cls):
        mock_client = MagicMock()
        mock_client.chat.return_value = {"message": {"role": "assistant", "content": "- Гайка М10, 10"}}
        mock_client_cls.return_value = mock_client
        client = LLMClient(ollama_settings(), temperature=0.1, timeout=60)

        assert client.call_for_text("план") == "- Гайка М10, 10"

        mock_client_cls.assert_called_once_with(host="http://localhost:11434", timeout=60)
        kwargs = mock_client.chat.call_args.kwargs
        assert kwargs["model"] == "llama3"
        assert kwargs["messages"] == [{"role": "user", "content": "план"}]
        assert kwargs["stream"] is False

    @patch('src.llm_client.ollama.Client')
    def test_response_error(self, mock_client_cls):
        mock_client = MagicMock()
        mock_client.chat.side_effect = ollama.ResponseError("model 'llama3' not found", 404)
        mock_client_cls.return_value = mock_client
        client = LLMClient(ollama_settings())

        with pytest.raises(LLMError) as exc_info:
            client.call_for_text("a")

        assert "404" in str(exc_info.value)

    @patch('src.llm_client.ollama.Client')
    def test_connection_error(self, mock_client_cls):
        mock_client = MagicMock()
        mock_client.chat.side_effect = ConnectionError("Failed to connect to Ollama")
        mock_client_cls.return_value = mock_client
        client = LLMClient(ollama_settings())

        with pytest.raises(LLMError) as exc_info:
            client.call_for_text("a")

        assert "Failed to connect" in str(exc_info.value)
