from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from bridge.core.errors import BackendProtocolError, BackendUnavailableError
from bridge.core.memory import TranscriptStore, Utterance


logger = logging.getLogger(__name__)


class BackendRequest(BaseModel):
    question: str = Field(..., description="Whole transcript, oldest first")
    session_id: str = Field(..., description="Correlation id for the backend")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "overrideConfig": {"sessionId": self.session_id},
        }


class BackendReply(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("reply text is empty")
        return value


def linearize(transcript: Sequence[Utterance]) -> str:
    return " ".join(u.text for u in transcript)


def _call_backend(
    endpoint: str,
    payload: Dict[str, Any],
    timeout: float,
    transport: Optional[httpx.BaseTransport] = None,
) -> Any:
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.post(endpoint, json=payload)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise BackendUnavailableError(f"Backend call failed: {exc}") from exc

    logger.info("Backend answered status=%s bytes=%s", response.status_code, len(response.content))
    try:
        return response.json()
    except ValueError as exc:
        raise BackendProtocolError(f"Backend returned non-JSON body: {exc}") from exc


def _parse_reply(data: Any) -> str:
    if not isinstance(data, dict):
        raise BackendProtocolError(f"Backend returned {type(data).__name__}, expected an object")
    try:
        return BackendReply.model_validate(data).text
    except ValidationError as exc:
        raise BackendProtocolError(f"Invalid backend reply: {exc}") from exc


class BackendQueryComposer:
    """Turns one content message into exactly one backend call."""

    def __init__(
        self,
        transcripts: TranscriptStore,
        endpoint: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.transcripts = transcripts
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport

    def ask(self, session_id: str, text: str) -> str:
        # The user turn stays in the transcript even if the call below fails.
        self.transcripts.append(session_id, Utterance.user(text))

        if not self.endpoint:
            raise BackendUnavailableError("FLOWISE_API_URL not configured")

        request = BackendRequest(
            question=linearize(self.transcripts.get(session_id)),
            session_id=session_id,
        )
        logger.info(
            "Querying backend: session=%s prompt_len=%s",
            session_id,
            len(request.question),
        )
        data = _call_backend(self.endpoint, request.to_payload(), self.timeout, self._transport)
        reply = _parse_reply(data)

        self.transcripts.append(session_id, Utterance.assistant(reply))
        return reply
