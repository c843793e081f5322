"""
Request and payload models for the chat-completion proxy.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class AnalysisRequest(BaseModel):
    """Free-text patient fields sent by the analysis form.

    At least one of ``symptoms`` or ``results`` has to carry text; the handler
    checks that, the model only checks types.
    """
    department: Optional[str] = None
    symptoms: Optional[str] = None
    results: Optional[str] = None
    language: Optional[str] = None

    def has_clinical_input(self) -> bool:
        return bool((self.symptoms or "").strip() or (self.results or "").strip())


class ChatRelayRequest(BaseModel):
    """A caller-built chat completion request, relayed as-is."""
    model_config = ConfigDict(extra="allow")

    model: str
    messages: List[Dict[str, Any]]
    response_format: Dict[str, Any]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class ChatCompletionPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    model: str
    messages: List[Dict[str, Any]]
    response_format: Dict[str, Any] = {"type": "json_object"}
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
