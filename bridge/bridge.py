from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence

import httpx

from bridge.core.memory import (
    BackupEntry,
    BackupStore,
    SessionLocks,
    TranscriptStore,
    rotate,
)
from bridge.core.replies import (
    ARCHIVED_TRAILER,
    CLEAR_CONFIRMATION,
    NO_HISTORY,
    ROLE_LABELS,
)
from bridge.tools import BackendQueryComposer
from config.settings import get_settings


logger = logging.getLogger(__name__)


class Command(str, Enum):
    CLEAR = "clear"
    HISTORY = "history"
    CONTENT = "content"


def classify(text: str) -> Command:
    normalized = (text or "").strip().lower()
    if normalized.startswith("/clear") or normalized == "/new":
        return Command.CLEAR
    if normalized == "/history":
        return Command.HISTORY
    return Command.CONTENT


def render_history(backups: Sequence[BackupEntry]) -> str:
    if not backups:
        return NO_HISTORY
    chats: List[str] = []
    for number, entry in enumerate(backups, start=1):
        lines = [f"Chat {number}:"]
        lines.extend(f"{ROLE_LABELS[u.role]}: {u.text}" for u in entry)
        chats.append("\n".join(lines))
    return "\n\n".join(chats)


def has_completion_marker(reply: str, markers: Iterable[str]) -> bool:
    lowered = reply.lower()
    return any(marker in lowered for marker in markers)


class CommandInterpreter:
    def __init__(
        self,
        transcripts: TranscriptStore,
        backups: BackupStore,
        composer: BackendQueryComposer,
        completion_markers: Iterable[str] = (),
        locks: Optional[SessionLocks] = None,
    ) -> None:
        self.transcripts = transcripts
        self.backups = backups
        self.composer = composer
        self.completion_markers = tuple(m.lower() for m in completion_markers)
        self.locks = locks or SessionLocks()

    def handle_message(self, session_id: str, text: str) -> str:
        command = classify(text)
        logger.info("Handling %s message for session=%s", command.value, session_id)

        with self.locks.hold(session_id):
            if command is Command.CLEAR:
                self._rotate(session_id)
                return CLEAR_CONFIRMATION
            if command is Command.HISTORY:
                return render_history(self.backups.list(session_id))

            reply = self.composer.ask(session_id, text)
            if has_completion_marker(reply, self.completion_markers):
                logger.info("Completion marker in reply, rotating session=%s", session_id)
                self._rotate(session_id)
                return reply + ARCHIVED_TRAILER
            return reply

    def _rotate(self, session_id: str) -> None:
        archived = rotate(self.transcripts, self.backups, session_id)
        if archived:
            logger.info("Archived %s utterances for session=%s", archived, session_id)


def build_bridge(transport: Optional[httpx.BaseTransport] = None) -> CommandInterpreter:
    settings = get_settings()
    if not settings.flowise_api_url:
        logger.warning("FLOWISE_API_URL not set; content messages will fail until configured")

    transcripts = TranscriptStore()
    backups = BackupStore()
    composer = BackendQueryComposer(
        transcripts,
        endpoint=settings.flowise_api_url,
        timeout=settings.backend_timeout,
        transport=transport,
    )
    return CommandInterpreter(
        transcripts,
        backups,
        composer,
        completion_markers=settings.completion_markers,
    )
