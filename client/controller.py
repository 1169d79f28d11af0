from __future__ import annotations

"""Client-side chat orchestration.

One controller owns the send/cooldown state machine and the working copy of
the session index. Every mutation is written back through the session store
right away.
"""

import logging
import mimetypes
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Protocol

from agent.core.datauri import encode_data_uri
from agent.core.memory import ChatSession, JsonFileKeyValueStore, Message, SessionStore, now_ms
from client.gate import LoginGate
from client.relay_client import RelayClient, RelayError
from config.settings import Settings, get_settings


logger = logging.getLogger("amigo.controller")

NO_RESPONSE_TEXT = "Maaf, tidak ada respon."
BUSY_TEXT = "⚠️ Maaf server sedang sibuk, mohon coba beberapa menit lagi."


class Relay(Protocol):
    def chat(
        self, message: Optional[str], image: Optional[str] = None, chat_id: Optional[str] = None
    ) -> Optional[str]: ...


class LoginRequired(RuntimeError):
    pass


class ControllerState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SUCCESS = "success"
    ERROR = "error"


class SendOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    REJECTED_EMPTY = "rejected_empty"
    REJECTED_IMAGE = "rejected_image"
    REJECTED_BUSY = "rejected_busy"
    REJECTED_COOLDOWN = "rejected_cooldown"


@dataclass
class SendResult:
    outcome: SendOutcome
    user_message: Optional[Message] = None
    reply: Optional[Message] = None

    @property
    def dispatched(self) -> bool:
        return self.outcome in (SendOutcome.SENT, SendOutcome.FAILED)


class CooldownGate:
    """Short cooldown after every send, extended one every ``threshold`` sends."""

    def __init__(
        self,
        short_seconds: float,
        extended_seconds: float,
        threshold: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.short_seconds = short_seconds
        self.extended_seconds = extended_seconds
        self.threshold = threshold
        self.clock = clock
        self.count = 0
        self._short_until = 0.0
        self._extended_until = 0.0

    @property
    def short_active(self) -> bool:
        return self.clock() < self._short_until

    @property
    def extended_active(self) -> bool:
        return self.clock() < self._extended_until

    def active(self) -> bool:
        return self.short_active or self.extended_active

    def register_send(self) -> None:
        now = self.clock()
        self.count += 1
        if self.count >= self.threshold:
            logger.info("Extended cooldown started after %s sends", self.count)
            self._extended_until = now + self.extended_seconds
            self.count = 0
        self._short_until = now + self.short_seconds


def read_image_data_uri(path: Path | str) -> str:
    path = Path(path)
    mime_type, _ = mimetypes.guess_type(path.name)
    return encode_data_uri(mime_type or "application/octet-stream", path.read_bytes())


class ChatController:
    def __init__(
        self,
        store: SessionStore,
        relay: Relay,
        gate: LoginGate,
        cooldown: Optional[CooldownGate] = None,
    ) -> None:
        self.store = store
        self.relay = relay
        self.gate = gate
        if cooldown is None:
            settings = get_settings()
            cooldown = CooldownGate(
                settings.cooldown_seconds,
                settings.extended_cooldown_seconds,
                settings.extended_cooldown_threshold,
            )
        self.cooldown = cooldown
        self.state = ControllerState.IDLE
        self.sessions: List[ChatSession] = []
        self.current_id: Optional[str] = None

    # Sessions

    def start(self) -> None:
        if not self.gate.is_logged_in():
            raise LoginRequired("Login required")
        self.sessions = self.store.load()
        self.current_id = self.sessions[-1].id

    @property
    def current(self) -> Optional[ChatSession]:
        return next((s for s in self.sessions if s.id == self.current_id), None)

    @property
    def messages(self) -> List[Message]:
        session = self.current
        return list(session.messages) if session else []

    def new_chat(self) -> ChatSession:
        session = self.store.create_session()
        self.sessions = self.store.load()
        self.current_id = session.id
        return session

    def select_chat(self, session_id: str) -> bool:
        if any(s.id == session_id for s in self.sessions):
            self.current_id = session_id
            return True
        return False

    def delete_chat(self, session_id: str) -> None:
        was_current = session_id == self.current_id
        self.sessions = self.store.delete(session_id)
        if not was_current:
            return
        if self.sessions:
            self.current_id = self.sessions[-1].id
        else:
            self.new_chat()

    def clear_history(self) -> None:
        self.store.clear()
        self.sessions = []
        self.current_id = None

    def logout(self) -> None:
        self.gate.logout()

    # Sending

    def _append(self, message: Message) -> None:
        self.store.append(self.current_id, message)
        self.sessions = self.store.load()

    def send(self, text: Optional[str] = None, image_path: Optional[Path | str] = None) -> SendResult:
        if self.state is ControllerState.SENDING:
            return SendResult(SendOutcome.REJECTED_BUSY)
        if self.cooldown.active():
            logger.info("Send rejected: cooldown active")
            return SendResult(SendOutcome.REJECTED_COOLDOWN)

        text = (text or "").strip() or None
        if not text and not image_path:
            return SendResult(SendOutcome.REJECTED_EMPTY)

        image = None
        if image_path:
            try:
                image = read_image_data_uri(image_path)
            except OSError as exc:
                logger.warning("Could not read image %s: %s", image_path, exc)
                return SendResult(SendOutcome.REJECTED_IMAGE)

        if self.current_id is None:
            self.new_chat()

        stamp = now_ms()
        user_msg = Message(role="user", text=text, image=image, id=f"m-{stamp}", time=stamp)
        self._append(user_msg)
        self.cooldown.register_send()

        self.state = ControllerState.SENDING
        try:
            try:
                reply_text = self.relay.chat(text, image, self.current_id)
            except RelayError as exc:
                logger.error("Chat send failed: %s", exc)
                stamp = now_ms()
                reply = Message(role="ai", text=BUSY_TEXT, id=f"m-{stamp}-err", time=stamp)
                self.state = ControllerState.ERROR
                outcome = SendOutcome.FAILED
            else:
                stamp = now_ms()
                if reply_text is None:
                    reply_text = NO_RESPONSE_TEXT
                reply = Message(role="ai", text=reply_text, id=f"m-{stamp}-ai", time=stamp)
                self.state = ControllerState.SUCCESS
                outcome = SendOutcome.SENT
            self._append(reply)
        finally:
            self.state = ControllerState.IDLE
        return SendResult(outcome, user_message=user_msg, reply=reply)


@contextmanager
def open_controller(settings: Optional[Settings] = None) -> Iterator[ChatController]:
    """Controller wired to the file-backed store and the HTTP relay."""
    settings = settings or get_settings()
    with JsonFileKeyValueStore(settings.store_path) as kv:
        yield ChatController(
            SessionStore(kv, namespace=settings.storage_namespace),
            RelayClient(settings.relay_url, timeout=settings.relay_timeout),
            LoginGate(kv, code=settings.access_code, namespace=settings.storage_namespace),
        )
