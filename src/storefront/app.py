"""Storefront FastAPI application.

Serves the storefront engine to a UI shell over HTTP. One engine instance
lives on ``app.state.storefront`` for the lifetime of the process: durable
state is loaded at startup and pending writes are drained at shutdown.

Usage:
    uvicorn storefront.app:create_app --factory --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api import address_router, cart_router, order_router, payment_router, rating_router
from storefront.domain import storefront as storefront_domain
from storefront.engine import Storefront
from storefront.utils.logging import add_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)

# Initialized at module level so every app instance shares the registry
storefront_domain.init()


def create_app(storefront: Storefront | None = None, load_state: bool = True) -> FastAPI:
    """Build the application around ``storefront`` (a fresh engine when omitted)."""
    if storefront is None:
        with storefront_domain.domain_context():
            storefront = Storefront()
    engine = storefront

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        with storefront_domain.domain_context():
            if load_state:
                engine.load()
        logger.info("app.started")
        yield
        with storefront_domain.domain_context():
            engine.shutdown()
        logger.info("app.stopped")

    app = FastAPI(
        title="Storefront API",
        description="Cart, addresses, payment methods, orders and ratings for the mobile storefront",
        lifespan=lifespan,
    )
    app.state.storefront = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the storefront domain context for each request."""
        with storefront_domain.domain_context():
            return await call_next(request)

    @app.middleware("http")
    async def logging_context_middleware(request: Request, call_next):
        """Tag every log line of a request with its method and path."""
        clear_context()
        add_context(method=request.method, path=request.url.path)
        try:
            return await call_next(request)
        finally:
            clear_context()

    app.include_router(cart_router)
    app.include_router(address_router)
    app.include_router(payment_router)
    app.include_router(order_router)
    app.include_router(rating_router)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "cart_lines": len(engine.cart.lines),
                "orders": len(engine.orders()),
            }
        )

    return app


def main() -> None:
    import uvicorn

    configure_logging()
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
