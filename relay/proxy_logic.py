import json
import logging
from dataclasses import dataclass
from typing import Optional

import azure.functions as func
from pydantic import ValidationError

from relay.auth import TokenVerifier, get_access_token, verifier_from_config
from relay.errors import (
    AuthorizationError,
    ClientInputError,
    ConfigurationError,
    MalformedUpstreamError,
    ProxyError,
)
from relay.models import AnalysisRequest, ChatCompletionPayload, ChatRelayRequest
from relay.prompts import build_analysis_messages
from relay.settings import ProxyConfig
from relay.upstream import extract_content, post_chat_completion, redact

logger = logging.getLogger(__name__)

STRUCTURED = "structured"
PASSTHROUGH = "passthrough"

REQUIRED_RELAY_FIELDS = ("model", "messages", "response_format")


@dataclass(frozen=True)
class HandlerOptions:
    prompt_mode: str = STRUCTURED
    require_token: bool = False


def cors_headers(options: HandlerOptions) -> dict:
    allow_headers = "Content-Type, Authorization"
    if options.require_token:
        allow_headers += ", x-access-token"
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": allow_headers,
    }


def build_response(result, options: HandlerOptions, code=200):
    return func.HttpResponse(
        json.dumps(result),
        mimetype="application/json",
        status_code=code,
        headers=cors_headers(options),
    )


def check_method(req, log):
    method = (req.method or "").upper()
    if method != "POST":
        log.append(f"🚫 Method {method} rejected.")
        raise ClientInputError("Method Not Allowed", status_code=405)


def check_access_token(req, verify_token: TokenVerifier, log):
    token = get_access_token(req.headers)
    if not token or not verify_token(token):
        log.append("🚫 Missing or invalid access token.")
        raise AuthorizationError("Unauthorized: Missing or invalid access token.")
    log.append("🔑 Access token accepted.")


def parse_body(req, log) -> dict:
    try:
        raw = req.get_body() or b""
        data = json.loads(raw.decode("utf-8"))
    except ValueError:
        log.append("❌ Request body is not valid JSON.")
        raise ClientInputError("Invalid JSON payload.")
    if not isinstance(data, dict):
        log.append("❌ Request body is not a JSON object.")
        raise ClientInputError("Invalid JSON payload.", details="Request body must be a JSON object.")
    return data


def _validation_details(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'body'}: {e['msg']}" for e in error.errors()
    )


def build_structured_payload(data: dict, config: ProxyConfig, log) -> ChatCompletionPayload:
    try:
        analysis = AnalysisRequest.model_validate(data)
    except ValidationError as e:
        raise ClientInputError("Invalid request fields.", details=_validation_details(e))
    if not analysis.has_clinical_input():
        log.append("❌ Neither symptoms nor results provided.")
        raise ClientInputError("Symptoms or test results must be provided.")
    log.append(f"🩺 Structured prompt built (language: {analysis.language or 'default'}).")
    return ChatCompletionPayload(
        model=config.model,
        messages=build_analysis_messages(analysis),
        response_format={"type": "json_object"},
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def build_passthrough_payload(data: dict, config: ProxyConfig, log) -> ChatCompletionPayload:
    missing = [field for field in REQUIRED_RELAY_FIELDS if not data.get(field)]
    if missing:
        log.append(f"❌ Missing fields: {', '.join(missing)}")
        raise ClientInputError(f"Missing required fields: {', '.join(missing)}.")
    try:
        relay = ChatRelayRequest.model_validate(data)
    except ValidationError as e:
        raise ClientInputError("Invalid request fields.", details=_validation_details(e))
    payload = relay.model_dump(exclude_none=True)
    payload.setdefault("temperature", config.temperature)
    payload.setdefault("max_tokens", config.max_tokens)
    log.append(f"📨 Relaying {len(relay.messages)} caller message(s).")
    return ChatCompletionPayload.model_validate(payload)


def parse_generated_json(content: str, log) -> dict:
    try:
        result = json.loads(content)
    except ValueError:
        log.append("❌ Generated content is not JSON.")
        raise MalformedUpstreamError("Upstream returned non-JSON content.", status_code=502)
    if not isinstance(result, dict):
        log.append("❌ Generated content is not a JSON object.")
        raise MalformedUpstreamError("Upstream returned non-JSON content.", status_code=502)
    return result


def handle_proxy_request(
    req: func.HttpRequest,
    config: ProxyConfig,
    options: HandlerOptions,
    verify_token: Optional[TokenVerifier] = None,
) -> func.HttpResponse:
    if (req.method or "").upper() == "OPTIONS":
        return func.HttpResponse(status_code=200, headers=cors_headers(options))

    log = []
    log.append(f"🔁 Proxy request ({options.prompt_mode}) started.")
    try:
        if config.load_error:
            log.append(f"❌ {config.load_error}")
            raise ConfigurationError("Server configuration error: invalid settings.", details=config.load_error)

        if not config.has_credential:
            log.append("❌ OPENAI_API_KEY is not set.")
            logger.error("OPENAI_API_KEY environment variable is not set.")
            raise ConfigurationError("Server configuration error: API Key missing.")

        check_method(req, log)
        if options.require_token:
            check_access_token(req, verify_token or verifier_from_config(config), log)

        data = parse_body(req, log)
        if options.prompt_mode == PASSTHROUGH:
            payload = build_passthrough_payload(data, config, log)
        else:
            payload = build_structured_payload(data, config, log)

        outbound = post_chat_completion(payload, config, log)
        content = extract_content(outbound.body)

        if options.prompt_mode == PASSTHROUGH:
            result = outbound.body
        else:
            result = parse_generated_json(content, log)

        log.append("📤 Relaying result to caller.")
        return build_response(result, options)

    except ProxyError as e:
        if e.details:
            e.details = redact(e.details, config.credential())
        log.append(f"🔥 Aborted with {e.status_code}: {e.message}")
        return build_response(e.to_dict(), options, code=e.status_code)

    except Exception as e:
        log.append(f"🔥 Unexpected {type(e).__name__}")
        logger.exception("Unhandled error while proxying request")
        return build_response({"error": "Internal Server Error during execution."}, options, code=500)

    finally:
        logger.info("\n".join(log))
