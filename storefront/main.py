"""
FastAPI application for the storefront: accounts, catalog, cart and checkout.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.config import Config
from storefront.dependencies import Services, build_services
from storefront.exceptions import ShopError
from storefront.middleware import RequestLoggingMiddleware, configure_logging
from storefront.routers import auth, cart, orders, products

logger = logging.getLogger(__name__)


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the application.

    When ``services`` is not given they are built at startup from Config and
    closed at shutdown.
    """
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is None:
            Config.load_secrets()
            app.state.services = build_services()
        yield
        if services is None:
            app.state.services.close()

    app = FastAPI(
        title="Storefront API",
        description="Clothing storefront with guest and account carts",
        version="1.0.0",
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[Config.FRONTEND_URL] if Config.FRONTEND_URL else ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", Config.CART_TOKEN_HEADER],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(auth.router)
    app.include_router(products.router)
    app.include_router(cart.router)
    app.include_router(orders.router)

    @app.get("/health")
    def health_check(request: Request):
        """
        Liveness check. Always returns HTTP 200 while the application is
        running and reports Redis connectivity separately.
        """
        redis_status = "healthy"
        redis_latency_ms = None

        ping_start = time.time()
        if request.app.state.services.redis.ping():
            redis_latency_ms = round((time.time() - ping_start) * 1000, 2)
        else:
            redis_status = "unhealthy"

        return {
            "ok": True,
            "service": "storefront-api",
            "redis": {"status": redis_status, "latency_ms": redis_latency_ms},
            "timestamp": time.time(),
        }

    @app.exception_handler(ShopError)
    async def shop_error_handler(request: Request, exc: ShopError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.kind, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {type(exc).__name__}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "internal", "message": "Internal server error"},
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=Config.APP_PORT)
