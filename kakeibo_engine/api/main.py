"""FastAPI application factory"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from kakeibo_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from kakeibo_engine.api.v1 import settlements, instruments, recurring, savings
from kakeibo_engine.domain.exceptions import InvalidMonthError, RecordNotFoundError
from kakeibo_engine.infrastructure.observability.logging import setup_logging
from kakeibo_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Kakeibo Engine",
        description="Billing cycles, settlement, recurrence and savings allocation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(RecordNotFoundError)
    async def record_not_found(request: Request, exc: RecordNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidMonthError)
    async def invalid_month(request: Request, exc: InvalidMonthError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(settlements.router, prefix="/v1", tags=["settlements"])
    app.include_router(instruments.router, prefix="/v1", tags=["instruments"])
    app.include_router(recurring.router, prefix="/v1", tags=["recurring"])
    app.include_router(savings.router, prefix="/v1", tags=["savings"])

    return app


app = create_app()
