from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from config.settings import get_settings


class RelayError(RuntimeError):
    """Any failure reaching the relay or reading its answer."""


class RelayClient:
    def __init__(
        self,
        endpoint: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.endpoint = endpoint or settings.relay_url
        if not self.endpoint:
            raise RuntimeError("AMIGO_RELAY_URL not configured")
        self.timeout = timeout if timeout is not None else settings.relay_timeout
        self.transport = transport

    def chat(
        self,
        message: Optional[str],
        image: Optional[str] = None,
        chat_id: Optional[str] = None,
    ) -> Optional[str]:
        payload: Dict[str, Any] = {
            "message": message or "",
            "image": image,
            "chatId": chat_id,
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.endpoint, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise RelayError(f"Relay call failed: {exc}") from exc
        except ValueError as exc:
            raise RelayError(f"Relay returned invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise RelayError("Relay returned an unexpected payload")
        text = data.get("text")
        if text is not None and not isinstance(text, str):
            raise RelayError(f"Relay returned non-text reply: {type(text).__name__}")
        return text
