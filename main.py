"""
Main application entry point for the Tether API.
"""

import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.api.auth_routes import auth_router
from src.api.dashboard_routes import dashboard_router
from src.api.link_routes import link_router
from src.api.team_routes import team_router
from src.api.user_routes import user_router
from src.config import settings
from src.database.database import init_db
from src.errors import register_exception_handlers
from src.logger import configure_logging, get_logger

logger = get_logger("http")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    init_db()
    logger.info("Tether API started")

    yield

    logger.info("Tether API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Tether API",
        description="Meeting accountability for cross-functional product teams",
        version="1.0.0",
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(f"{request.method} {request.url.path} 500 {duration_ms:.1f}ms")
            raise
        duration_ms = (time.perf_counter() - start) * 1000

        message = f"{request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms"
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)
        return response

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
    app.include_router(team_router, prefix="/api/teams", tags=["Teams"])
    app.include_router(link_router, prefix="/api/links", tags=["Links"])
    app.include_router(user_router, prefix="/api/users", tags=["Users"])
    app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])

    @app.get("/")
    async def root():
        return {
            "message": "Tether API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    @app.get("/health")
    async def health_check():
        return {"status": "OK", "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=True
    )
