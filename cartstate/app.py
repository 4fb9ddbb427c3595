"""
Cart Service - FastAPI Application

Exposes the cart state machine over HTTP.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cartstate.routers import cart_router
from cartstate.routers.deps import close_cart_machine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    yield
    # Shutdown: end the cart session so in-flight restores are discarded
    await close_cart_machine()


def create_app() -> FastAPI:
    app = FastAPI(title="Cart State Service", lifespan=lifespan)
    app.include_router(cart_router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    return app


app = create_app()
