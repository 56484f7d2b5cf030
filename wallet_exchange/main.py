from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import exchange, health
from .auth.models import ExchangeError
from .auth.service import build_exchange_service, set_exchange_service
from .config import settings
from .db.database import create_engine, create_session_factory, create_tables
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

logger = structlog.stdlib.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    engine = create_engine(settings.database_url)
    if settings.database_auto_create:
        await create_tables(engine)
    service = build_exchange_service(settings, session_factory=create_session_factory(engine))
    set_exchange_service(service)
    logger.info("wallet_exchange_started", token_strategy=service.minter.strategy)
    try:
        yield
    finally:
        client = getattr(service.minter, "client", None)
        if client is not None:
            await client.close()
        set_exchange_service(None)
        await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Wallet Exchange API",
        description="Exchanges signed wallet proofs for platform session tokens",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @app.exception_handler(ExchangeError)
    async def exchange_error_handler(request: Request, exc: ExchangeError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(health.router, tags=["Health"])
    app.include_router(exchange.router, tags=["Auth"])

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "Wallet Exchange API",
            "version": "0.1.0",
            "docs": "/docs",
            "health": "/healthz",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "wallet_exchange.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
