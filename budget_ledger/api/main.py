"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from budget_ledger.api.errors import register_exception_handlers
from budget_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from budget_ledger.api.v1 import (
    categories,
    cost_centers,
    credit_cards,
    installments,
    reports,
    transactions,
    users,
    wallets,
)
from budget_ledger.infrastructure.observability.logging import setup_logging
from budget_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Shared Budget Ledger",
        description="Wallets, credit cards, transfers and installments of shared cost centers",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(users.router, prefix="/v1", tags=["users"])
    app.include_router(cost_centers.router, prefix="/v1", tags=["cost-centers"])
    app.include_router(wallets.router, prefix="/v1", tags=["wallets"])
    app.include_router(credit_cards.router, prefix="/v1", tags=["credit-cards"])
    app.include_router(categories.router, prefix="/v1", tags=["categories"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(installments.router, prefix="/v1", tags=["installments"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])

    return app


app = create_app()
