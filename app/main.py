from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from agent.agent import build_llm, build_messages, run_relay
from agent.core.datauri import MalformedDataURI
from config.settings import Settings, get_settings


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("amigo")

app = FastAPI(title="Amigo AI Relay", version="1.0.0")

# CORS: allow local frontend during development
settings = get_settings()
if settings.app_env.lower() in {"dev", "development", "local"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


GENERIC_FAILURE = "Something went wrong with the AI."


class ChatRequest(BaseModel):
    message: Optional[str] = Field(None, description="User's text message")
    image: Optional[str] = Field(None, description="Attached image as a base64 data-URI")
    chat_id: Optional[str] = Field(
        None, alias="chatId", description="Client session id; not used server-side"
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected invalid request body: %s", exc.errors())
    return _error(400, "Invalid request body")


@app.post("/api/chat")
def chat(
    req: Optional[ChatRequest] = Body(None), settings: Settings = Depends(get_settings)
) -> Any:
    if req is None or (not req.message and not req.image):
        logger.warning("Rejected chat request without message or image")
        return _error(400, "Message or image is required")

    if not settings.gemini_api_key:
        logger.error("Missing GEMINI_API_KEY")
        return _error(500, "API key is not set.")

    try:
        messages = build_messages(req.message, req.image)
    except MalformedDataURI as e:
        logger.warning("Rejected malformed image data-URI: %s", e)
        return _error(500, GENERIC_FAILURE)

    try:
        logger.info(
            "Incoming chat: model=%s text_len=%s image=%s",
            settings.gemini_model,
            len(req.message or ""),
            bool(req.image),
        )
        llm = build_llm(settings)
        text = run_relay(llm, messages)
        logger.info("Model responded with %s chars", len(text))
        return {"text": text}
    except Exception as e:
        logger.exception("Chat relay failed: %s", e)
        return _error(500, GENERIC_FAILURE)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}
