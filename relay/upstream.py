# relay/upstream.py
import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from relay.errors import MalformedUpstreamError, TransportError, UpstreamError
from relay.models import ChatCompletionPayload
from relay.settings import ProxyConfig

logger = logging.getLogger(__name__)

MAX_DETAIL_CHARS = 500


@dataclass
class OutboundResult:
    ok: bool
    status: int
    body: Any = None


def redact(text: Optional[str], secret: str) -> Optional[str]:
    if not text or not secret:
        return text
    return text.replace(secret, "***")


def extract_error_detail(response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    text = (response.text or "").strip()
    if text:
        return text[:MAX_DETAIL_CHARS]
    return "Unknown error."


def post_chat_completion(payload: ChatCompletionPayload, config: ProxyConfig, log=None) -> OutboundResult:
    if log is None:
        log = []
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.credential()}",
    }
    log.append(f"📡 Calling upstream with model {payload.model}")
    try:
        response = requests.post(config.api_url, headers=headers, json=payload.to_json(), timeout=config.timeout)
    except requests.exceptions.Timeout as e:
        log.append(f"⏱️ Upstream timed out: {type(e).__name__}")
        raise TransportError("AI analysis failed: the upstream service timed out.")
    except requests.exceptions.RequestException as e:
        log.append(f"❌ Upstream connection failed: {type(e).__name__}")
        logger.warning("Upstream request failed: %s", type(e).__name__)
        raise TransportError("AI analysis failed due to an internal server connection error.")

    if not response.ok:
        details = redact(extract_error_detail(response), config.credential())
        log.append(f"❌ Upstream returned {response.status_code}: {details}")
        logger.error("OpenAI API error %s: %s", response.status_code, details)
        raise UpstreamError(
            "OpenAI API failed to process the request.",
            details=details,
            status_code=response.status_code,
        )

    try:
        body = response.json()
    except ValueError:
        log.append("❌ Upstream success body was not JSON.")
        raise MalformedUpstreamError("Upstream returned non-JSON content.", status_code=502)

    log.append(f"✅ Upstream answered {response.status_code}")
    return OutboundResult(ok=True, status=response.status_code, body=body)


def extract_content(body: Any) -> str:
    """Return ``choices[0].message.content`` or raise when it is missing or empty."""
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = None
    if not isinstance(content, str) or not content.strip():
        raise MalformedUpstreamError("OpenAI response format unexpected.")
    return content
