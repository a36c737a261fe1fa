"""API controller for reply generation.

Defines the ``/api/ai`` routes backed by the ReplyService.  The router is
registered in ``main.py``.
"""

import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from loguru import logger

from ..config.app_config import AppConfig, get_app_config
from ..models.reply_request import GenerateRequest, UserRequest, build_user_request
from ..services.reply_service import ReplyService, get_reply_service
from ..utils.helpers import elapsed_ms

router = APIRouter(prefix="/api/ai", tags=["Reply"])

_STARTED_AT = time.monotonic()

TEST_REQUEST = UserRequest(
    nickname="Tester",
    topic="faith",
    situation="I am testing whether the reply service is working.",
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("/generate")
async def generate_endpoint(
    request: GenerateRequest,
    service: ReplyService = Depends(get_reply_service),
    app_config: AppConfig = Depends(get_app_config),
) -> dict[str, Any]:
    """Generate a letter, prayer and scripture references for the user.

    Missing fields and oversized situations are rejected with HTTP 400
    before any provider is called.  Provider failures never surface
    here; the service falls back to a static reply instead.
    """
    user_request = build_user_request(request.user_input, app_config.max_situation_length)
    logger.info("Received reply request for topic '{}'", user_request.topic)
    reply = await service.generate_reply(user_request)
    return {
        "success": True,
        "data": {
            "userInput": user_request.model_dump(),
            "aiResponse": reply.model_dump(mode="json", by_alias=True),
        },
        "timestamp": _timestamp(),
    }


@router.get("/status")
async def status_endpoint(
    service: ReplyService = Depends(get_reply_service),
) -> dict[str, Any]:
    """Report provider availability and process uptime."""
    status = service.get_service_status().model_dump(by_alias=True)
    return {
        "success": True,
        "data": {
            **status,
            "timestamp": _timestamp(),
            "uptime": round(time.monotonic() - _STARTED_AT, 3),
        },
    }


@router.post("/test")
async def test_endpoint(
    service: ReplyService = Depends(get_reply_service),
) -> dict[str, Any]:
    """Run the full pipeline on a fixed request as a smoke test."""
    started = time.perf_counter()
    reply = await service.generate_reply(TEST_REQUEST)
    logger.info("Test reply produced by {}", reply.metadata.ai_service)
    return {
        "success": True,
        "data": {
            "testResult": reply.model_dump(mode="json", by_alias=True),
            "responseTime": elapsed_ms(started),
            "aiService": reply.metadata.ai_service,
            "timestamp": _timestamp(),
        },
    }
