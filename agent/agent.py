from __future__ import annotations

from typing import Any, Dict, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from agent.core.datauri import DataURI, parse_data_uri
from agent.core.prompt import GREETING, SYSTEM_PROMPT
from config.settings import Settings, get_settings


def build_llm(settings: Optional[Settings] = None) -> BaseChatModel:
    settings = settings or get_settings()
    if not settings.gemini_api_key:
        raise RuntimeError(
            "GEMINI_API_KEY not set. Please configure it in environment or .env"
        )

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.gemini_api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
    )


def seed_history() -> List[BaseMessage]:
    # No server memory: every request starts from these two turns.
    return [HumanMessage(content=SYSTEM_PROMPT), AIMessage(content=GREETING)]


def build_user_parts(message: Optional[str], image: Optional[DataURI]) -> List[Dict[str, Any]]:
    parts: List[Dict[str, Any]] = []
    if message:
        parts.append({"type": "text", "text": message})
    if image is not None:
        parts.append({"type": "image_url", "image_url": {"url": image.as_uri()}})
    return parts


def build_messages(message: Optional[str], image: Optional[str]) -> List[BaseMessage]:
    """Seed turns plus the current turn.

    ``image`` is parsed strictly; a malformed data-URI raises
    :class:`agent.core.datauri.MalformedDataURI` before anything is sent.
    """
    parsed = parse_data_uri(image) if image else None
    parts = build_user_parts(message, parsed)
    if not parts:
        raise ValueError("Message or image is required")
    return seed_history() + [HumanMessage(content=parts)]


def response_text(result: Any) -> str:
    content = getattr(result, "content", result)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        chunks = []
        for item in content:
            if isinstance(item, str):
                chunks.append(item)
            elif isinstance(item, dict) and item.get("type") == "text":
                chunks.append(item.get("text") or "")
        return "".join(chunks)
    return str(content or "")


def run_relay(llm: BaseChatModel, messages: List[BaseMessage]) -> str:
    result = llm.invoke(messages)
    return response_text(result)
