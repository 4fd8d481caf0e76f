"""In-process conversation memory.

Transcripts and their archived backups live only for the lifetime of the
process. Both stores grow without bound; nothing is evicted.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Literal, Sequence, Tuple

from pydantic import BaseModel, ConfigDict


Role = Literal["user", "assistant"]


class Utterance(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    text: str

    @classmethod
    def user(cls, text: str) -> "Utterance":
        return cls(role="user", text=text)

    @classmethod
    def assistant(cls, text: str) -> "Utterance":
        return cls(role="assistant", text=text)


BackupEntry = Tuple[Utterance, ...]


def is_alternating(transcript: Sequence[Utterance]) -> bool:
    """True when turns go user, assistant, user, ... starting with the user."""
    for idx, utterance in enumerate(transcript):
        expected = "user" if idx % 2 == 0 else "assistant"
        if utterance.role != expected:
            return False
    return True


class TranscriptStore:
    """Live transcript per session id."""

    def __init__(self) -> None:
        self._transcripts: Dict[str, List[Utterance]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> List[Utterance]:
        with self._lock:
            return list(self._transcripts.get(session_id, []))

    def append(self, session_id: str, utterance: Utterance) -> None:
        with self._lock:
            self._transcripts.setdefault(session_id, []).append(utterance)

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._transcripts.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._transcripts


class BackupStore:
    """Append-only archive of rotated transcripts, oldest first."""

    def __init__(self) -> None:
        self._backups: Dict[str, List[BackupEntry]] = {}
        self._lock = threading.Lock()

    def archive(self, session_id: str, transcript: Sequence[Utterance]) -> None:
        # Utterances are frozen, so a tuple of them is a full snapshot.
        snapshot: BackupEntry = tuple(transcript)
        with self._lock:
            self._backups.setdefault(session_id, []).append(snapshot)

    def list(self, session_id: str) -> List[BackupEntry]:
        with self._lock:
            return list(self._backups.get(session_id, []))


class SessionLocks:
    """One lock per session id; different sessions never block each other."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        lock = self._lock_for(session_id)
        with lock:
            yield


def rotate(transcripts: TranscriptStore, backups: BackupStore, session_id: str) -> int:
    """Archive the live transcript (if any) and clear it.

    Returns the number of utterances archived, 0 when there was nothing to keep.
    """
    transcript = transcripts.get(session_id)
    if transcript:
        backups.archive(session_id, transcript)
    transcripts.clear(session_id)
    return len(transcript)
