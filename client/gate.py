from __future__ import annotations

import hmac
import logging
from typing import Optional

from agent.core.memory import LOGIN_KEY, KeyValueStore
from config.settings import get_settings


logger = logging.getLogger("amigo.gate")


class LoginGate:
    """Shared static passcode; the logged-in flag is kept in the client store."""

    def __init__(self, kv: KeyValueStore, code: Optional[str] = None, namespace: str = "") -> None:
        self.kv = kv
        self.code = code if code is not None else get_settings().access_code
        self.key = f"{namespace}{LOGIN_KEY}"

    def is_logged_in(self) -> bool:
        return self.kv.get(self.key) == "true"

    def login(self, code: str) -> bool:
        if not hmac.compare_digest((code or "").encode(), self.code.encode()):
            logger.info("Login rejected: wrong code")
            return False
        self.kv.set(self.key, "true")
        return True

    def logout(self) -> None:
        self.kv.remove(self.key)
