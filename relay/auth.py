# relay/auth.py
import hmac
from typing import Callable, Iterable, Optional

from relay.settings import ProxyConfig

ACCESS_TOKEN_HEADER = "x-access-token"

TokenVerifier = Callable[[str], bool]


def prefix_verifier(prefix: str) -> TokenVerifier:
    """Accept any token that starts with ``prefix``. Format check only, no lookup."""
    def verify(token: str) -> bool:
        return bool(token) and token.startswith(prefix)
    return verify


def allowlist_verifier(tokens: Iterable[str]) -> TokenVerifier:
    allowed = tuple(tokens)

    def verify(token: str) -> bool:
        if not token:
            return False
        supplied = token.encode("utf-8")
        return any(hmac.compare_digest(supplied, candidate.encode("utf-8")) for candidate in allowed)
    return verify


def verifier_from_config(config: ProxyConfig) -> TokenVerifier:
    if config.access_tokens:
        return allowlist_verifier(config.access_tokens)
    return prefix_verifier(config.access_token_prefix)


def get_access_token(headers) -> Optional[str]:
    token = headers.get(ACCESS_TOKEN_HEADER)
    return token.strip() if token else None
