from __future__ import annotations

import json
import math
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from lottery.logic.exceptions import (
    EmptyPoolError,
    InvalidRangeError,
    InvalidRoundNumberError,
    LotteryError,
    RoundInProgressError,
)
from lottery.logic.settings import READY_LABEL, LotterySettings
from lottery.persistence.gateway import PersistenceGateway
from lottery.server.settings import LotteryServerSettings
from lottery.server.types import (
    DisplayRequest,
    RosterRangeRequest,
    RosterTextRequest,
    RoundNumberRequest,
    StartRoundRequest,
)
from lottery.session.annotation import GeminiAnnotationService
from lottery.session.controller import RoundController
from shared.logging import setup_logging
from shared.storage import LocalSnapshotStorage

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request

# Background images may arrive as data URLs, so bodies are allowed to be large.
_MAX_REQUEST_BODY_SIZE = 16 * 1024 * 1024
_MAX_RANGE_SIZE = 100_000

_ERROR_STATUS: dict[type[LotteryError], int] = {
    EmptyPoolError: 409,
    RoundInProgressError: 409,
    InvalidRangeError: 400,
    InvalidRoundNumberError: 400,
}


def _controller(request: Request) -> RoundController:
    return request.app.state.controller


def _error_response(exc: LotteryError) -> JSONResponse:
    status_code = _ERROR_STATUS.get(type(exc), 400)
    return JSONResponse({"error": str(exc), "code": exc.code}, status_code=status_code)


async def _parse_body(request: Request, model: type[BaseModel]) -> Any:  # noqa: ANN401
    """Validate the JSON body against model, or return the 4xx response to send."""
    try:
        raw_body = await request.body()
        if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
            return JSONResponse({"error": "Request body too large"}, status_code=413)
        return model.model_validate(json.loads(raw_body))
    except (ValueError, TypeError, json.JSONDecodeError, UnicodeDecodeError, ValidationError):  # fmt: skip
        return JSONResponse({"error": "Invalid request body"}, status_code=400)


def state_payload(controller: RoundController) -> dict[str, Any]:
    state = controller.state
    current = controller.current_result
    return {
        "phase": controller.phase.value,
        "roundNumber": state.round_counter,
        "prizeName": controller.prize_name,
        "drawCount": controller.draw_count,
        "rollingName": controller.rolling_name or READY_LABEL,
        "eligibleCount": len(controller.eligible_pool),
        "roster": [p.model_dump(by_alias=True) for p in state.roster],
        "history": [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in state.ledger],
        "currentResult": current.model_dump(mode="json", by_alias=True, exclude_none=True) if current else None,
        "display": state.display.model_dump(by_alias=True),
    }


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def get_state(request: Request) -> JSONResponse:
    return JSONResponse(state_payload(_controller(request)))


async def replace_roster(request: Request) -> JSONResponse:
    body = await _parse_body(request, RosterTextRequest)
    if isinstance(body, JSONResponse):
        return body
    controller = _controller(request)
    controller.import_roster_text(body.text)
    return JSONResponse(state_payload(controller))


async def generate_range(request: Request) -> JSONResponse:
    body = await _parse_body(request, RosterRangeRequest)
    if isinstance(body, JSONResponse):
        return body
    span = body.end - body.start
    if math.isfinite(span) and span >= _MAX_RANGE_SIZE:
        return JSONResponse({"error": f"Range may hold at most {_MAX_RANGE_SIZE} participants"}, status_code=400)
    controller = _controller(request)
    try:
        controller.generate_range(body.start, body.end)
    except InvalidRangeError as exc:
        return _error_response(exc)
    return JSONResponse(state_payload(controller))


async def start_round(request: Request) -> JSONResponse:
    body = await _parse_body(request, StartRoundRequest)
    if isinstance(body, JSONResponse):
        return body
    controller = _controller(request)
    try:
        controller.start(body.prize_name, body.draw_count)
    except (EmptyPoolError, RoundInProgressError) as exc:
        return _error_response(exc)
    return JSONResponse(state_payload(controller))


async def stop_round(request: Request) -> JSONResponse:
    controller = _controller(request)
    try:
        controller.stop()
    except EmptyPoolError as exc:
        return _error_response(exc)
    return JSONResponse(state_payload(controller))


async def acknowledge_result(request: Request) -> JSONResponse:
    controller = _controller(request)
    controller.acknowledge()
    return JSONResponse(state_payload(controller))


async def clear_history(request: Request) -> JSONResponse:
    controller = _controller(request)
    controller.clear_history()
    return JSONResponse(state_payload(controller))


async def set_round_number(request: Request) -> JSONResponse:
    body = await _parse_body(request, RoundNumberRequest)
    if isinstance(body, JSONResponse):
        return body
    controller = _controller(request)
    try:
        controller.set_round_number(body.round_number)
    except (InvalidRoundNumberError, RoundInProgressError) as exc:
        return _error_response(exc)
    return JSONResponse(state_payload(controller))


async def update_display(request: Request) -> JSONResponse:
    body = await _parse_body(request, DisplayRequest)
    if isinstance(body, JSONResponse):
        return body
    controller = _controller(request)
    controller.update_display(background=body.background, is_muted=body.is_muted)
    return JSONResponse(state_payload(controller))


def build_controller(settings: LotteryServerSettings) -> RoundController:
    """Wire storage, persistence and the caption client from server settings."""
    gateway = PersistenceGateway(LocalSnapshotStorage(settings.data_dir), key=settings.storage_key)
    annotation_service = GeminiAnnotationService(
        settings.annotation_api_key,
        model=settings.annotation_model,
        timeout_seconds=settings.annotation_timeout_seconds,
    )
    if not annotation_service.enabled:
        logger.info("no API key configured, round captions disabled")
    return RoundController.restore(
        gateway,
        settings=LotterySettings(rolling_interval_seconds=settings.rolling_interval_seconds),
        annotation_service=annotation_service,
    )


def create_app(
    settings: LotteryServerSettings | None = None,
    controller: RoundController | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = LotteryServerSettings()

    if controller is None:
        controller = build_controller(settings)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/state", get_state, methods=["GET"]),
        Route("/roster", replace_roster, methods=["PUT"]),
        Route("/roster/range", generate_range, methods=["POST"]),
        Route("/rounds/start", start_round, methods=["POST"]),
        Route("/rounds/stop", stop_round, methods=["POST"]),
        Route("/rounds/acknowledge", acknowledge_result, methods=["POST"]),
        Route("/history", clear_history, methods=["DELETE"]),
        Route("/round-number", set_round_number, methods=["PUT"]),
        Route("/display", update_display, methods=["PATCH"]),
    ]

    @asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        yield
        await controller.aclose()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.controller = controller

    logger.info("lottery server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = LotteryServerSettings()
    setup_logging(settings.log_dir)
    return create_app(settings=settings)
