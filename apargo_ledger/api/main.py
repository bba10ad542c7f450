"""FastAPI application factory"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from apargo_ledger.api.middleware import MetricsMiddleware, RequestIDMiddleware
from apargo_ledger.api.v1 import balance_sheets, balances, expenses, payment_events, payments
from apargo_ledger.config import settings
from apargo_ledger.domain.exceptions import InvalidMonthYearError, RecordNotFoundError
from apargo_ledger.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Apargo Ledger",
        description="Shared-expense and maintenance-fee ledger for apartment buildings",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Domain errors that escape a route
    @app.exception_handler(InvalidMonthYearError)
    async def invalid_month_handler(request: Request, exc: InvalidMonthYearError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(balances.router, prefix="/v1", tags=["balances"])
    app.include_router(balance_sheets.router, prefix="/v1", tags=["balance-sheets"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(expenses.router, prefix="/v1", tags=["expenses"])
    app.include_router(payment_events.router, prefix="/v1", tags=["payment-events"])

    return app


app = create_app()
