"""FastAPI application wiring the transfer pipeline to HTTP routes."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ton_gateway.config import GatewayConfig, default_config
from ton_gateway.deadline import Deadline
from ton_gateway.errors import BroadcastError, GatewayError, ValidationError
from ton_gateway.metrics import default_metrics
from ton_gateway.services import TransferPipeline
from ton_gateway.services.validators import format_address
from ton_gateway.ton_api import TonCenterClient

logger = logging.getLogger(__name__)

HEALTH_STATUS = {"status": "ok"}
APP_VERSION = "0.1.0"
LOG_EXTRA_KEYS = ("route", "request_id", "error", "state")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in LOG_EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload)


def configure_logging(config: GatewayConfig = default_config) -> None:
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    if config.log_format.lower() == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=[handler])
    else:
        logging.basicConfig(level=level)


configure_logging(default_config)


def _log_route_result(route: str, request_id: Optional[str], error: Optional[str] = None) -> None:
    if error:
        logger.warning(
            "route=%s outcome=error error=%s request_id=%s",
            route,
            error,
            request_id,
            extra={"route": route, "request_id": request_id, "error": error},
        )
        default_metrics.record_route(route, success=False)
    else:
        logger.info(
            "route=%s outcome=success request_id=%s",
            route,
            request_id,
            extra={"route": route, "request_id": request_id},
        )
        default_metrics.record_route(route, success=True)


def _error_response(exc: GatewayError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content={"success": False, "message": exc.message, "error": exc.kind},
    )


async def _read_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be a JSON object.") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    return body


async def _handle(
    request: Request,
    route: str,
    operation: Callable[[Deadline], Awaitable[JSONResponse]],
) -> JSONResponse:
    """Run a route body, converting every failure into the error envelope."""
    request_id = getattr(request.state, "request_id", None)
    deadline = Deadline.after(request.app.state.config.request_deadline)
    try:
        response = await operation(deadline)
    except GatewayError as exc:
        if isinstance(exc, BroadcastError):
            default_metrics.record_broadcast(accepted=False)
        _log_route_result(route, request_id, exc.kind)
        return _error_response(exc)
    except Exception:
        logger.exception("Unexpected error route=%s request_id=%s", route, request_id)
        _log_route_result(route, request_id, "internal_error")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Unexpected error.", "error": "internal_error"},
        )
    _log_route_result(route, request_id)
    return response


def create_app(
    config: GatewayConfig | None = None,
    *,
    client: Any = None,
) -> FastAPI:
    """
    Build the application and its collaborators.

    The toncenter client is created here (or injected) and handed to the
    pipeline; there is no process-wide client.
    """
    config = config or default_config
    owns_client = client is None
    ton_client = client if client is not None else TonCenterClient(config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        # Startup
        yield
        # Shutdown
        if owns_client:
            await ton_client.aclose()

    app = FastAPI(
        title="TON Transfer Gateway",
        description="Builds, encodes and broadcasts TON transfers; exposes ledger lookups.",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.pipeline = TransferPipeline(ton_client, config=config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.time()
        default_metrics.incr_request()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        default_metrics.record_duration(request_id, duration_ms)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health endpoint for monitoring."""
        return JSONResponse(content=HEALTH_STATUS)

    @app.get("/metrics")
    async def metrics() -> JSONResponse:
        """Return in-process metrics snapshot."""
        return JSONResponse(content=default_metrics.snapshot())

    @app.post("/send-transaction")
    async def send_transaction(request: Request) -> JSONResponse:
        async def operation(deadline: Deadline) -> JSONResponse:
            body = await _read_body(request)
            pipeline: TransferPipeline = request.app.state.pipeline
            outcome = await pipeline.submit_transfer(
                body.get("to"), body.get("amount"), body.get("privateKey"), deadline=deadline
            )
            default_metrics.record_broadcast(accepted=outcome.result.accepted)
            message = outcome.message
            return JSONResponse(
                content={
                    "success": True,
                    "message": "Transaction sent successfully",
                    "log": outcome.encoded.to_base64(),
                    "hash": outcome.encoded.hash_hex,
                    "address": format_address(message.source),
                    "seqno": message.seqno,
                    "fee": message.fee.as_dict() if message.fee else None,
                    "warnings": list(message.warnings),
                }
            )

        return await _handle(request, "send_transaction", operation)

    @app.post("/send-token")
    async def send_token(request: Request) -> JSONResponse:
        async def operation(_deadline: Deadline) -> JSONResponse:
            body = await _read_body(request)
            pipeline: TransferPipeline = request.app.state.pipeline
            result = await pipeline.submit_token(
                body.get("to"), body.get("amount"), body.get("tokenAddress"), body.get("privateKey")
            )
            return JSONResponse(
                status_code=501,
                content={"success": False, "message": result.reason, "unsupported": True},
            )

        return await _handle(request, "send_token", operation)

    @app.post("/transaction/{tx_hash}")
    async def transaction(tx_hash: str, request: Request) -> JSONResponse:
        async def operation(deadline: Deadline) -> JSONResponse:
            pipeline: TransferPipeline = request.app.state.pipeline
            data = await pipeline.get_transaction(tx_hash, deadline=deadline)
            return JSONResponse(content={"success": True, "data": data})

        return await _handle(request, "get_transaction", operation)

    @app.get("/wallet/{address}/transactions")
    async def wallet_transactions(address: str, request: Request) -> JSONResponse:
        async def operation(deadline: Deadline) -> JSONResponse:
            pipeline: TransferPipeline = request.app.state.pipeline
            data = await pipeline.get_account_history(address, deadline=deadline)
            return JSONResponse(content={"success": True, "data": data})

        return await _handle(request, "get_account_history", operation)

    return app


app = create_app()

# Run with: uvicorn ton_gateway.server:app --reload
