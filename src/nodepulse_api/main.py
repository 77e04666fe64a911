from __future__ import annotations

import re
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from nodepulse_api.logging import get_logger
from nodepulse_api.metrics import metrics
from nodepulse_api.rpc_client import RequestsJsonRpcClient
from nodepulse_core.block_height import BlockHeightQuery
from nodepulse_core.config import get_settings, load_env_file
from nodepulse_core.models import (
    ErrorResponse,
    LatestBlockResponse,
    MetricsResponse,
    NodeLatencyResponse,
)
from nodepulse_core.rpc import RpcTransportError
from nodepulse_core.sampler import LatencySampler

logger = get_logger("nodepulse.api")
DASHBOARD_TITLE = "Web3 Node Current Block Status"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._:-]{0,127}$")

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def _coerce_request_id(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized or len(normalized) > 128:
        return None
    if not _REQUEST_ID_RE.match(normalized):
        return None
    return normalized


@lru_cache(maxsize=1)
def get_rpc_client() -> RequestsJsonRpcClient:
    return RequestsJsonRpcClient.from_settings(get_settings())


def close_rpc_client() -> None:
    if get_rpc_client.cache_info().currsize:
        get_rpc_client().close()
    get_rpc_client.cache_clear()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    load_env_file()
    # Fail fast on invalid settings.
    settings = get_settings()
    logger.info(
        "dashboard_ready",
        rpc_url=settings.rpc_url,
        chain=settings.chain_name,
        round_size=settings.round_size,
    )
    try:
        yield
    finally:
        close_rpc_client()


app = FastAPI(title="nodepulse", version="0.1.0", lifespan=lifespan)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    request_id = _coerce_request_id(request.headers.get("X-Request-ID")) or str(uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - start) * 1000)
    response.headers["X-Request-ID"] = request_id
    metrics.record_http_status(response.status_code)
    logger.info(
        "http_request",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
    )
    return response


@app.get("/", response_class=HTMLResponse)
def index(request: Request) -> HTMLResponse:
    settings = get_settings()
    return templates.TemplateResponse(
        request,
        "index.html",
        {"title": DASHBOARD_TITLE, "chain_name": settings.chain_name},
    )


@app.get("/api/node-latency", response_model=NodeLatencyResponse)
def node_latency() -> NodeLatencyResponse:
    settings = get_settings()
    sampler = LatencySampler(get_rpc_client().probe, penalty_ms=settings.penalty_ms)
    summary = sampler.run_round(settings.round_size, settings.thresholds)
    metrics.record_probe_round(summary)
    logger.info(
        "latency_round",
        p50_ms=summary.p50,
        p95_ms=summary.p95,
        samples=summary.sample_count,
        failures=summary.failures,
        status=summary.status.value,
    )
    return NodeLatencyResponse.from_summary(summary)


@app.get("/api/latest-block", response_model=LatestBlockResponse)
def latest_block() -> LatestBlockResponse:
    settings = get_settings()
    query = BlockHeightQuery(
        get_rpc_client(),
        chain_label=settings.chain_name,
        method=settings.rpc_method,
    )
    result = query.current_height()
    if result.degraded:
        metrics.record_block_query("degraded")
        logger.warning("block_height_degraded", block_number_hex=result.raw_hex)
    else:
        metrics.record_block_query("ok")
        logger.info("block_height", block_number=result.value, chain=result.chain_label)
    return LatestBlockResponse.from_result(result)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health/live")
def health_live() -> dict[str, str]:
    return {"status": "ok"}


def _check_rpc_ready() -> str:
    if get_rpc_client().probe():
        return "ok"
    return "error"


@app.get("/health/ready")
def health_ready() -> JSONResponse:
    checks = {"rpc": _check_rpc_ready()}
    degraded = any(value == "error" for value in checks.values())
    status_value = "degraded" if degraded else "ready"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE if degraded else status.HTTP_200_OK
    return JSONResponse(
        status_code=http_status,
        content={"status": status_value, "checks": checks},
    )


@app.get("/metrics", response_model=MetricsResponse)
def get_metrics() -> MetricsResponse:
    snapshot = metrics.snapshot()
    return MetricsResponse(**snapshot)


@app.get("/metrics/prometheus")
def get_metrics_prometheus() -> PlainTextResponse:
    return PlainTextResponse(content=metrics.prometheus_text())


@app.exception_handler(RpcTransportError)
async def rpc_transport_exception_handler(request: Request, exc: RpcTransportError):  # type: ignore[no-untyped-def]
    request_id = getattr(request.state, "request_id", str(uuid4()))
    metrics.record_block_query("unreachable")
    logger.warning(
        "rpc_unreachable",
        request_id=request_id,
        path=request.url.path,
        error=str(exc),
    )
    payload = ErrorResponse(
        error_code="UPSTREAM_UNREACHABLE",
        message="Node RPC endpoint is unreachable",
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        headers={"X-Request-ID": request_id},
        content=payload.model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[no-untyped-def]
    request_id = getattr(request.state, "request_id", str(uuid4()))
    payload = ErrorResponse(
        error_code=f"HTTP_{exc.status_code}",
        message=str(exc.detail),
        request_id=request_id,
    )
    headers: dict[str, str] = {"X-Request-ID": request_id}
    if exc.headers:
        headers.update(exc.headers)
    return JSONResponse(
        status_code=exc.status_code,
        headers=headers,
        content=payload.model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):  # type: ignore[no-untyped-def]
    request_id = getattr(request.state, "request_id", str(uuid4()))
    logger.exception(
        "unhandled_exception",
        request_id=request_id,
        path=request.url.path,
        error=str(exc),
    )
    payload = ErrorResponse(
        error_code="HTTP_500",
        message="Internal server error",
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers={"X-Request-ID": request_id},
        content=payload.model_dump(),
    )
