"""
Tests for the OpenAI-compatible translator against a mocked HTTP transport.
"""

import asyncio
import json

import httpx
import pytest

from src.subtrans.errors import AuthError, QuotaError, TransientError
from src.subtrans.translation import OpenAICompatibleTranslator
from src.tests.helpers import VALID_KEY

BASE_URL = "https://llm.example.test/v1/"


def _completion(content=None, choices=True):
    body = {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "gemini-2.0-flash",
        "choices": [],
    }
    if choices:
        body["choices"] = [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ]
    return body


def _translator(handler, **kwargs):
    seen = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(record))
    translator = OpenAICompatibleTranslator(base_url=BASE_URL, http_client=client, **kwargs)
    return translator, seen


def _translate(translator, text):
    return asyncio.run(translator.translate(text, "pt-BR", VALID_KEY))


def test_request_body_and_response():
    translator, seen = _translator(
        lambda request: httpx.Response(200, json=_completion("Olá.|Obrigado.")),
        context="The Office S02E01",
    )

    assert _translate(translator, "Hello.|Thanks.") == "Olá.|Obrigado."

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == BASE_URL + "chat/completions"
    assert request.headers["Authorization"] == f"Bearer {VALID_KEY}"
    payload = json.loads(request.content)
    assert payload["model"] == "gemini-2.0-flash"
    system, user = payload["messages"]
    assert system["role"] == "system"
    assert "'|'" in system["content"]
    assert system["content"].endswith("'The Office S02E01'.")
    assert user["role"] == "user"
    assert user["content"].endswith("Hello.|Thanks.")


def test_empty_choices_is_transient():
    translator, _ = _translator(lambda request: httpx.Response(200, json=_completion(choices=False)))

    with pytest.raises(TransientError):
        _translate(translator, "Hello.")


def test_unauthorized_is_auth_error_without_retry():
    translator, seen = _translator(
        lambda request: httpx.Response(401, json={"error": {"message": "API key not valid"}})
    )

    with pytest.raises(AuthError):
        _translate(translator, "Hello.")
    assert len(seen) == 1


def test_rate_limit_is_quota_error_without_sdk_retry():
    translator, seen = _translator(
        lambda request: httpx.Response(429, json={"error": {"message": "Resource has been exhausted"}})
    )

    with pytest.raises(QuotaError):
        _translate(translator, "Hello.")
    # the SDK must not retry on its own
    assert len(seen) == 1


def test_server_error_is_transient():
    translator, _ = _translator(lambda request: httpx.Response(503, json={"error": {"message": "overloaded"}}))

    with pytest.raises(TransientError):
        _translate(translator, "Hello.")
