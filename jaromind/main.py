from contextlib import asynccontextmanager
from typing import Optional
import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorDatabase

from jaromind.auth.router import router as auth_router
from jaromind.auth.tokens import TokenService
from jaromind.config import Settings
from jaromind.courses.course_router import router as course_router
from jaromind.courses.enrollment_router import router as enrollment_router
from jaromind.database import create_client, create_indexes
from jaromind.errors import ServiceError, TRANSIENT_STORE_ERRORS, service_error_handler, store_error_handler
from jaromind.reviews.router import router as review_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, db: Optional[AsyncIOMotorDatabase] = None) -> FastAPI:
    """
    Build the API.
    ``db`` lets callers supply an already-open database (tests); otherwise a
    Motor client is created from ``settings`` and closed on shutdown.
    """
    settings = settings or Settings.from_env()
    settings.validate()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    client = None
    if db is None:
        client = create_client(settings)
        db = client[settings.db_name]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await create_indexes(app.state.db)
        logger.info("Jaromind API started (database=%s)", getattr(app.state.db, "name", settings.db_name))
        yield
        if client is not None:
            client.close()

    app = FastAPI(title="Jaromind Learning API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.token_service = TokenService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["Origin", "Content-Type", "Authorization", "Accept"],
        expose_headers=["Content-Length", "Authorization"],
        max_age=12 * 3600,
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    for error_type in TRANSIENT_STORE_ERRORS:
        app.add_exception_handler(error_type, store_error_handler)

    # ==================== ROUTER REGISTRATION ====================
    app.include_router(auth_router)
    app.include_router(course_router)
    app.include_router(review_router)
    app.include_router(enrollment_router)
    # ============================================================

    @app.get("/health")
    def health():
        return {"status": "healthy", "time": int(time.time())}

    return app


if __name__ == "__main__":
    import uvicorn
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
