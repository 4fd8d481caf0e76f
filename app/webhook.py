from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple


_MENTION_RE = re.compile(r"<at>.*?</at>", re.IGNORECASE | re.DOTALL)


INVALID_FORMAT = "Invalid input format"
MISSING_FIELDS = "Invalid input. 'text' and 'sessionId' are required."


class InvalidWebhook(ValueError):
    pass


def _strip_mentions(text: str) -> str:
    return _MENTION_RE.sub("", text).strip()


def _teams_session_id(body: Dict[str, Any]) -> Optional[str]:
    conversation = body.get("conversation") or {}
    sender = body.get("from") or {}
    if isinstance(conversation, dict) and conversation.get("id"):
        return str(conversation["id"])
    if isinstance(sender, dict) and sender.get("id"):
        return str(sender["id"])
    return None


def extract_message(body: Any) -> Tuple[str, str]:
    """Pull (session_id, text) out of a Teams activity or a plain JSON body.

    Raises InvalidWebhook with the message to return to the caller.
    """
    if not isinstance(body, dict):
        raise InvalidWebhook(INVALID_FORMAT)

    if body.get("type") == "message":
        text = body.get("text")
        session_id = _teams_session_id(body)
    elif body.get("text") and body.get("sessionId"):
        text = body.get("text")
        session_id = body.get("sessionId")
    else:
        raise InvalidWebhook(INVALID_FORMAT)

    if isinstance(text, str):
        text = _strip_mentions(text)
    if not text or not session_id or not isinstance(text, str):
        raise InvalidWebhook(MISSING_FIELDS)
    return str(session_id), text
