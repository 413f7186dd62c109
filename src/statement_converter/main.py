"""FastAPI application for the statement converter."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from statement_converter.api.middleware.error_handler import (
    handle_generic_error,
    handle_statement_processing_error,
    handle_validation_error,
)
from statement_converter.api.middleware.logging import RequestLoggingMiddleware
from statement_converter.api.v1 import router as v1_router
from statement_converter.config import settings
from statement_converter.core.exceptions import StatementProcessingError
from statement_converter.extraction.external import get_tool_availability
from statement_converter.utils.logger import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: probe external tools once so the first request does not pay for it
    get_tool_availability()
    yield


def create_app() -> FastAPI:
    setup_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Convert UK bank statement PDFs into transactions and CSV",
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(StatementProcessingError, handle_statement_processing_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_generic_error)

    app.include_router(v1_router)

    return app


app = create_app()
