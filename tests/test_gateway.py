# tests/test_gateway.py

import json

import pytest
import requests

from services import gateway
from services.errors import GenerationBackendError, UnknownBackendError
from services.gateway import ContentGenerationGateway, extract_code, is_backend_configured


def make_response(status_code: int, body) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    response._content = (body if isinstance(body, str) else json.dumps(body)).encode("utf-8")
    return response


@pytest.fixture
def captured(monkeypatch):
    """Replaces requests.post and records every call."""
    calls = []
    replies = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(gateway.requests, "post", fake_post)
    return calls, replies


def chat_reply(content: str) -> requests.Response:
    return make_response(200, {"choices": [{"message": {"content": content}}]})


def test_extract_code_prefers_fenced_block():
    raw = "Here you go:\n```tsx\nexport const MyVideo = () => null;\n```\nEnjoy!"
    assert extract_code(raw) == "export const MyVideo = () => null;"


def test_extract_code_without_fence_returns_trimmed_text():
    assert extract_code("  export const MyVideo = () => null;\n") == "export const MyVideo = () => null;"
    assert extract_code("") == ""


def test_chat_completions_backend_sends_system_and_user_messages(captured):
    calls, replies = captured
    replies.append(chat_reply("```tsx\nexport const MyVideo = () => null;\n```"))

    gw = ContentGenerationGateway(api_key="secret", default_backend="openai", default_model=None)
    code = gw.generate("A spinning logo", "SYSTEM")

    assert code == "export const MyVideo = () => null;"
    call = calls[0]
    assert call["url"] == "https://api.openai.com/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["json"]["model"] == "gpt-4o-mini"
    assert call["json"]["messages"] == [
        {"role": "system", "content": "SYSTEM"},
        {"role": "user", "content": "A spinning logo"},
    ]


def test_default_model_applies_only_to_default_backend(captured):
    calls, replies = captured
    replies.extend([chat_reply("code"), chat_reply("code")])

    gw = ContentGenerationGateway(api_key="secret", default_backend="openrouter", default_model="my/model")
    gw.generate("prompt", "SYSTEM")
    gw.generate("prompt", "SYSTEM", backend="a4f")

    assert calls[0]["json"]["model"] == "my/model"
    assert calls[1]["json"]["model"] == "provider-8/gemini-2.0-flash"


def test_claude_backend_uses_messages_api(captured):
    calls, replies = captured
    replies.append(make_response(200, {"content": [{"type": "text", "text": "export const MyVideo = 1;"}]}))

    gw = ContentGenerationGateway(api_key="secret", default_backend="claude", default_model=None)
    assert gw.generate("prompt", "SYSTEM") == "export const MyVideo = 1;"
    assert calls[0]["headers"]["x-api-key"] == "secret"
    assert calls[0]["json"]["system"] == "SYSTEM"


def test_ollama_backend_needs_no_key(captured):
    calls, replies = captured
    replies.append(make_response(200, {"message": {"content": "export const MyVideo = 1;"}}))

    gw = ContentGenerationGateway(api_key="", default_backend="ollama", default_model=None)
    assert gw.generate("prompt", "SYSTEM") == "export const MyVideo = 1;"
    assert calls[0]["json"]["stream"] is False


def test_error_response_surfaces_backend_message(captured):
    """
    A non-success response raises with the backend's own error message.
    """
    _, replies = captured
    replies.append(make_response(401, {"error": {"message": "Invalid API key"}}))

    gw = ContentGenerationGateway(api_key="bad", default_backend="openai", default_model=None)
    with pytest.raises(GenerationBackendError) as excinfo:
        gw.generate("prompt", "SYSTEM")

    assert excinfo.value.message == "Invalid API key"
    assert excinfo.value.backend == "openai"


def test_error_response_without_json_uses_body_text(captured):
    _, replies = captured
    replies.append(make_response(502, "Bad Gateway"))

    gw = ContentGenerationGateway(api_key="key", default_backend="openai", default_model=None)
    with pytest.raises(GenerationBackendError, match="Bad Gateway"):
        gw.generate("prompt", "SYSTEM")


def test_connection_error_is_wrapped(captured):
    _, replies = captured
    replies.append(requests.ConnectionError("refused"))

    gw = ContentGenerationGateway(api_key="key", default_backend="openai", default_model=None)
    with pytest.raises(GenerationBackendError, match="Could not connect to openai"):
        gw.generate("prompt", "SYSTEM")


def test_empty_generation_is_an_error(captured):
    _, replies = captured
    replies.append(chat_reply("   "))

    gw = ContentGenerationGateway(api_key="key", default_backend="openai", default_model=None)
    with pytest.raises(GenerationBackendError, match="empty response"):
        gw.generate("prompt", "SYSTEM")


def test_unknown_backend_is_rejected():
    gw = ContentGenerationGateway(api_key="key", default_backend="openai")
    with pytest.raises(UnknownBackendError):
        gw.generate("prompt", "SYSTEM", backend="nope")


def test_is_backend_configured():
    assert is_backend_configured("ollama", api_key="")
    assert not is_backend_configured("openai", api_key="")
    assert is_backend_configured("openai", api_key="key")


def test_enhance_prompt_without_key_returns_original(captured):
    calls, _ = captured
    gw = ContentGenerationGateway(enhancer_backend="a4f", enhancer_api_key="")

    assert gw.enhance_prompt("A blue circle") == "A blue circle"
    assert calls == []


def test_enhance_prompt_failure_falls_back_to_original(captured):
    _, replies = captured
    replies.append(make_response(500, {"error": {"message": "boom"}}))
    gw = ContentGenerationGateway(enhancer_backend="a4f", enhancer_api_key="key")

    assert gw.enhance_prompt("A blue circle") == "A blue circle"


def test_enhance_prompt_returns_enhanced_text(captured):
    calls, replies = captured
    replies.append(chat_reply("A glowing blue circle pulsing on a navy gradient"))
    gw = ContentGenerationGateway(enhancer_backend="a4f", enhancer_api_key="key", enhancer_model="m")

    assert gw.enhance_prompt("A blue circle") == "A glowing blue circle pulsing on a navy gradient"
    assert calls[0]["json"]["model"] == "m"
    assert '"A blue circle"' in calls[0]["json"]["messages"][1]["content"]
