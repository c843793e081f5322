# relay/settings.py
import os
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, SecretStr, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o-mini"

ENV_FIELDS = {
    "OPENAI_API_KEY": "api_key",
    "OPENAI_API_URL": "api_url",
    "OPENAI_MODEL": "model",
    "OPENAI_TEMPERATURE": "temperature",
    "OPENAI_MAX_TOKENS": "max_tokens",
    "OPENAI_TIMEOUT": "timeout",
    "ACCESS_TOKEN_PREFIX": "access_token_prefix",
}


def load_local_settings():
    settings_path = Path(__file__).resolve().parent.parent / "local.settings.json"
    if settings_path.exists():
        with open(settings_path) as f:
            local_settings = json.load(f)
            for key, value in local_settings.get("Values", {}).items():
                os.environ.setdefault(key, value)


class ProxyConfig(BaseModel):
    """Process-wide configuration for the proxy handlers. Never mutated after load.

    ``load_error`` names the environment variables whose values did not parse.
    """

    model_config = ConfigDict(frozen=True)

    api_key: Optional[SecretStr] = None
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.2
    max_tokens: int = 2000
    timeout: float = 60.0
    access_token_prefix: str = "token-"
    access_tokens: Tuple[str, ...] = ()
    load_error: Optional[str] = None

    @classmethod
    def from_env(cls, env=None) -> "ProxyConfig":
        env = os.environ if env is None else env
        values = {field: env[name] for name, field in ENV_FIELDS.items() if env.get(name)}
        tokens = env.get("ACCESS_TOKENS") or ""
        values["access_tokens"] = tuple(t.strip() for t in tokens.split(",") if t.strip())
        return cls(**values)

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key and self.api_key.get_secret_value())

    def credential(self) -> str:
        return self.api_key.get_secret_value() if self.api_key else ""


def invalid_settings(error: ValidationError) -> str:
    names = {field: name for name, field in ENV_FIELDS.items()}
    fields = sorted({names.get(str(e["loc"][0]), str(e["loc"][0])) for e in error.errors() if e["loc"]})
    return f"Invalid setting(s): {', '.join(fields)}"


def load_config(env=None) -> ProxyConfig:
    try:
        return ProxyConfig.from_env(env)
    except ValidationError as e:
        message = invalid_settings(e)
        logger.error("Proxy configuration rejected. %s", message)
        return ProxyConfig(load_error=message)


@lru_cache()
def get_config() -> ProxyConfig:
    """Read the configuration once per worker process."""
    load_local_settings()
    return load_config()
