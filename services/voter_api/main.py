"""
FastAPI application for the Voter API.

Serves CRUD endpoints for voters and their per-poll voting history on top of
a single in-memory VoterStore created with the application.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import Settings, settings as default_settings
from .models import ErrorResponse
from .routes import configure_rate_limit, limiter, router
from .store import VoterStore

# Configure logging
logging.basicConfig(
    level=default_settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Prometheus metrics
request_counter = Counter(
    "voter_api_requests_total",
    "Total number of HTTP requests served",
    ["method", "endpoint", "status"]
)
request_duration = Histogram(
    "voter_api_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"]
)
voters_gauge = Gauge(
    "voter_api_voters",
    "Number of voters currently held in the store"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    service_name = app.state.settings.SERVICE_NAME
    store: VoterStore = app.state.store

    logger.info(f"{service_name} started, store booted at {store.boot_time.isoformat()}")

    yield

    health = store.health_check()
    logger.info(
        f"Shutting down {service_name}: uptime={health.uptime}, "
        f"total_calls={health.total_calls}, error_calls={health.error_calls}"
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies and path ids as 400 rather than 422."""
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", "")
        }
        for error in exc.errors()
    ]
    logger.warning(f"Rejected malformed request: {request.method} {request.url.path}")
    response = ErrorResponse(
        error="ValidationError",
        message="Malformed request",
        details={"errors": errors}
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=response.model_dump()
    )


async def call_accounting_middleware(request: Request, call_next):
    """Count every request, and every non-2xx outcome, on the store."""
    store: VoterStore = request.app.state.store
    store.increment_total_calls()
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        store.increment_error_calls()
        request_counter.labels(
            method=request.method,
            endpoint=_endpoint_label(request),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).inc()
        raise

    if not 200 <= response.status_code < 300:
        store.increment_error_calls()

    endpoint = _endpoint_label(request)
    request_duration.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(time.perf_counter() - started)
    request_counter.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()

    return response


def _endpoint_label(request: Request) -> str:
    # Route template keeps label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


def create_app(
    store: Optional[VoterStore] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the application around a store.

    The rate limiter is shared by every application in the process, and the
    settings of the most recently built application apply to all of them.

    Args:
        store: Store to serve; a fresh one is created when omitted.
        settings: Settings override, defaults to the environment.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Voter API",
        description="In-memory voters and per-poll voting history",
        version=settings.API_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.store = store if store is not None else VoterStore()

    # Rate limiter, applied per endpoint by the route decorators
    configure_rate_limit(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    # Added last so it wraps everything above, CORS preflights included
    app.middleware("http")(call_accounting_middleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(router)

    @app.get("/", tags=["Info"])
    async def root(request: Request):
        """Root endpoint with API information."""
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.API_VERSION,
            "status": "running",
            "boot_time": request.app.state.store.boot_time.isoformat(),
            "endpoints": {
                "voters": "/voters",
                "voter": "/voters/{voter_id}",
                "history": "/voters/{voter_id}/polls",
                "poll": "/voters/{voter_id}/polls/{poll_id}",
                "health": "/health",
                "metrics": "/metrics"
            }
        }

    @app.get("/metrics", tags=["Info"])
    def metrics(request: Request):
        """Prometheus metrics endpoint."""
        voters_gauge.set(len(request.app.state.store))
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    return app


app = create_app()


def run() -> None:
    """Serve the default application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "voter_api.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level=default_settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
