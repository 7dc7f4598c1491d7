from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from fomi.api import assistant, auth, forms, health, responses
from fomi.core.config import settings, logger
from fomi.core.errors import FomiError
from fomi.core.middleware import (
    RequestContextMiddleware,
    fomi_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from fomi.db.database import Database
from fomi.services.assistant import AssistantStub


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if getattr(app.state, "db", None) is None:
        app.state.db = Database()
    await app.state.db.create_tables()
    logger.info(f"{settings.APP_NAME} API started ({settings.APP_ENV})")
    yield
    # Shutdown
    await app.state.db.dispose()


def create_app(database: Database = None) -> FastAPI:
    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Backend API for the Fomi form builder",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db = database
    app.state.assistant = AssistantStub()

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(FomiError, fomi_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(forms.router, prefix="/api/forms", tags=["Forms"])
    app.include_router(responses.router, prefix="/api/forms", tags=["Responses"])
    app.include_router(assistant.router, prefix="/api/assistant", tags=["Assistant"])
    app.include_router(health.router, prefix="", tags=["Health"])
    return app


app = create_app()
