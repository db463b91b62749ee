"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from shop_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from shop_gateway.api.v1 import customers, products, quotes, orders, sales, operators
from shop_gateway.infrastructure.observability.logging import setup_logging
from shop_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Shop Gateway",
        description="Customers, products, orders and delivery settlement",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(operators.router, prefix="/v1", tags=["operators"])
    app.include_router(customers.router, prefix="/v1", tags=["customers"])
    app.include_router(products.router, prefix="/v1", tags=["products"])
    app.include_router(quotes.router, prefix="/v1", tags=["quotes"])
    app.include_router(orders.router, prefix="/v1", tags=["orders"])
    app.include_router(sales.router, prefix="/v1", tags=["sales"])

    return app


app = create_app()
