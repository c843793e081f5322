import json
from unittest.mock import MagicMock, patch

import azure.functions as func
import pytest

from relay.settings import ProxyConfig

API_KEY = "sk-test-secret-key-123"


def make_request(method="POST", body=None, headers=None, raw=None):
    if raw is None:
        raw = json.dumps(body).encode() if body is not None else b""
    return func.HttpRequest(
        method=method,
        url="/api/proxy",
        headers=headers or {"Content-Type": "application/json"},
        params={},
        body=raw,
    )


def make_upstream_response(status=200, payload=None, text=None):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    if payload is not None:
        response.json.return_value = payload
        response.text = json.dumps(payload)
    else:
        response.json.side_effect = ValueError("No JSON")
        response.text = text or ""
    return response


def completion(content):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


@pytest.fixture
def config():
    return ProxyConfig(api_key=API_KEY)


@pytest.fixture
def unconfigured():
    return ProxyConfig()


@pytest.fixture
def upstream():
    with patch("relay.upstream.requests.post") as post:
        yield post
