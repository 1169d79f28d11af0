from __future__ import annotations

"""Chat memory lives on the client, not on the relay server.

The relay stays stateless; the client keeps every chat session in a small
key-value store (one JSON file by default) under a single namespaced key.
Writers overwrite the whole index, so concurrent processes sharing a file are
last-write-wins.
"""

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Literal, Optional, Protocol

from pydantic import BaseModel, Field, TypeAdapter, ValidationError


logger = logging.getLogger("amigo.memory")

DEFAULT_TITLE = "Obrolan Baru"
TITLE_LENGTH = 30
HISTORY_KEY = "allChatHistories"
LOGIN_KEY = "isLoggedIn"


class Message(BaseModel):
    role: Literal["user", "ai"]
    text: Optional[str] = None
    image: Optional[str] = None
    id: Optional[str] = None
    time: Optional[int] = None


class ChatSession(BaseModel):
    id: str
    title: str = DEFAULT_TITLE
    messages: List[Message] = Field(default_factory=list)


SessionIndex = List[ChatSession]

_index_adapter = TypeAdapter(List[ChatSession])


def derive_title(messages: List[Message]) -> str:
    first = messages[0].text if messages else None
    return first[:TITLE_LENGTH] if first else DEFAULT_TITLE


def now_ms() -> int:
    return int(time.time() * 1000)


class KeyValueStore(Protocol):
    def open(self) -> None: ...

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def close(self) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self, data: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(data or {})
        self.is_open = False

    def open(self) -> None:
        self.is_open = True

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def close(self) -> None:
        self.is_open = False

    def __enter__(self) -> "InMemoryKeyValueStore":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class JsonFileKeyValueStore:
    """String key-value pairs kept in one JSON object file.

    The file is read on ``open()`` and rewritten (temp file + ``os.replace``)
    on every mutation. Nothing is locked: the last writer wins.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._data: Dict[str, str] = {}
        self._opened = False

    def open(self) -> None:
        self._data = self._read()
        self._opened = True

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Could not read store %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.error("Store %s does not hold a JSON object, ignoring it", self.path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _ensure_open(self) -> None:
        if not self._opened:
            raise RuntimeError(f"Store {self.path} is not open")

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        self._ensure_open()
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._ensure_open()
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        self._ensure_open()
        if self._data.pop(key, None) is not None:
            self._flush()

    def close(self) -> None:
        self._opened = False
        self._data = {}

    def __enter__(self) -> "JsonFileKeyValueStore":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class SessionStore:
    """Persists the ordered list of chat sessions under one key."""

    def __init__(self, kv: KeyValueStore, namespace: str = "") -> None:
        self.kv = kv
        self.key = f"{namespace}{HISTORY_KEY}"

    def _read(self) -> Optional[SessionIndex]:
        raw = self.kv.get(self.key)
        if not raw:
            return None
        try:
            return _index_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.error("Failed to load chat histories: %s", exc)
            return None

    def _new_id(self, index: SessionIndex) -> str:
        taken = {s.id for s in index}
        stamp = now_ms()
        while f"chat-{stamp}" in taken:
            stamp += 1
        return f"chat-{stamp}"

    def load(self) -> SessionIndex:
        index = self._read()
        if index:
            return index
        index = [ChatSession(id=self._new_id([]))]
        self.save(index)
        return index

    def save(self, index: SessionIndex) -> None:
        self.kv.set(self.key, _index_adapter.dump_json(index).decode("utf-8"))

    def get(self, session_id: str) -> Optional[ChatSession]:
        for session in self._read() or []:
            if session.id == session_id:
                return session
        return None

    def create_session(self) -> ChatSession:
        index = self._read() or []
        session = ChatSession(id=self._new_id(index))
        index.append(session)
        self.save(index)
        return session

    def append(self, session_id: str, message: Message) -> ChatSession:
        index = self._read() or []
        session = next((s for s in index if s.id == session_id), None)
        if session is None:
            session = ChatSession(id=session_id)
            index.append(session)
        session.messages.append(message)
        session.title = derive_title(session.messages)
        self.save(index)
        return session

    def delete(self, session_id: str) -> SessionIndex:
        index = [s for s in self._read() or [] if s.id != session_id]
        self.save(index)
        return index

    def clear(self) -> None:
        self.kv.remove(self.key)
