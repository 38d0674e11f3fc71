import importlib
import logging
import uuid

import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

from tripdesk.config import settings
from tripdesk.errors import DomainError
from tripdesk.logging_setup import TRACE_ID_CTX, setup_logging

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# initialize logging and Sentry
setup_logging(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN)
    app.add_middleware(SentryAsgiMiddleware)


@app.middleware("http")
async def add_trace_id(request: Request, call_next):
    trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
    TRACE_ID_CTX.set(trace_id)
    response = await call_next(request)
    response.headers["X-Trace-Id"] = trace_id
    return response


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


# Module names mounted as /<name>
MODULES = [
    "trips",
    "buses",
    "bookings",
    "cargo",
    "baggage",
    "people",
    "affiliates",
]


for mod in MODULES:
    pkg = importlib.import_module(f"tripdesk.modules.{mod}.router")
    app.include_router(pkg.router, prefix=f"/{mod}", tags=[mod])


@app.get("/")
async def root():
    return {"app": settings.APP_NAME, "status": "ok"}


@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health():
    return {"status": "ok"}
