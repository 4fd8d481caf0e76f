from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.webhook import INVALID_FORMAT, InvalidWebhook, extract_message
from bridge.bridge import CommandInterpreter, build_bridge
from bridge.core.errors import BridgeError
from bridge.core.replies import GENERIC_FAILURE
from config.settings import get_settings


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("teams_bridge")

app = FastAPI(title="Teams Flowise Bridge", version="1.0.0")

# CORS: allow local tools during development
if settings.app_env.lower() in {"dev", "development", "local"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Unparseable JSON bodies land here before the endpoint runs.
    logger.warning("Rejected webhook body on %s: %s", request.url.path, exc.errors())
    return error_response(400, INVALID_FORMAT)


@lru_cache(maxsize=1)
def get_bridge() -> CommandInterpreter:
    return build_bridge()


@app.post("/teams-webhook")
def teams_webhook(
    body: Any = Body(None),
    bridge: CommandInterpreter = Depends(get_bridge),
):
    try:
        session_id, text = extract_message(body)
    except InvalidWebhook as exc:
        logger.warning("Rejected webhook: %s", exc)
        return error_response(400, str(exc))

    logger.info("Received message: session=%s text_len=%s", session_id, len(text))
    try:
        answer = bridge.handle_message(session_id, text)
    except BridgeError as exc:
        logger.warning("Backend failure for session=%s: %s", session_id, exc)
        return error_response(500, GENERIC_FAILURE)
    except Exception as e:
        logger.exception("Webhook processing failed: %s", e)
        return error_response(500, GENERIC_FAILURE)

    logger.info("Sending response: session=%s reply_len=%s", session_id, len(answer))
    return {"type": "message", "text": answer}


@app.get("/health")
def health():
    return {"status": "UP", "message": "Teams webhook is running"}


if __name__ == "__main__":
    import uvicorn

    logger.info("Teams webhook server running on port %s", settings.port)
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
