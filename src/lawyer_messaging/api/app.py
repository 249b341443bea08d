"""
FastAPI Application Module

HTTP API and realtime gateway for the lawyer services messaging feature.

- Conversation, thread and send endpoints under /api/messages
- Socket.IO gateway for live delivery, typing and presence
- Structured logging, Prometheus metrics and OpenTelemetry tracing

Serve `asgi_app`, which routes Socket.IO traffic to the gateway and
everything else to the FastAPI app.
"""

import time
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException
from structlog import get_logger

from .. import __version__
from ..config import get_settings
from ..domain.models import utcnow
from ..errors import MessagingError
from ..log import configure_logging
from ..metrics import CUSTOM_REGISTRY, ERRORS, REQUESTS
from ..realtime.gateway import create_gateway
from . import routes
from .dependencies import get_auth_service

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger()

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles app startup/shutdown"""
    logger.info("application_startup_complete", version=__version__)
    yield
    logger.info("application_shutdown_complete")


app = FastAPI(
    title="Lawyer Services Messaging API",
    description="Messaging and realtime notifications for the lawyer services app",
    version=__version__,
    lifespan=lifespan,
)

# Enable cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set up request tracing
FastAPIInstrumentor.instrument_app(app)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Logs and counts every request"""
    logger.info("request_started", method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error("request_failed", path=request.url.path, error=str(e))
        raise
    route = request.scope.get("route")
    REQUESTS.labels(path=getattr(route, "path", "unmatched")).inc()
    if response.status_code >= 400:
        ERRORS.labels(status=str(response.status_code)).inc()
    return response


@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError):
    if exc.status_code >= 500:
        logger.error("request_error", path=request.url.path, message=exc.message, error=exc.error)
    else:
        logger.warning("request_rejected", path=request.url.path, status=exc.status_code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path")),
            "location": err["loc"][0] if err["loc"] else None,
            "msg": err["msg"],
        }
        for err in exc.errors()
    ]
    logger.warning("validation_failed", path=request.url.path, errors=len(errors))
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Something went wrong!", "error": str(exc)},
    )


app.include_router(routes.router, prefix="/api/messages", tags=["Messages"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "OK",
        "timestamp": utcnow().isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }


@app.get("/")
async def root():
    """Root endpoint with API info"""
    return {
        "message": "Lawyer Services Messaging API",
        "version": __version__,
        "documentation": "/docs",
    }


@app.get("/metrics")
async def metrics():
    """Provides Prometheus metrics for system monitoring"""
    return Response(generate_latest(CUSTOM_REGISTRY), media_type="text/plain")


gateway = create_gateway(get_auth_service(), cors_origins=settings.cors_origins)

asgi_app = socketio.ASGIApp(gateway.sio, other_asgi_app=app, socketio_path=settings.socketio_path)
