import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .db.dal import Database
from .routers import health, expenses
from .services.expense_service import ExpenseService

logger = logging.getLogger("expense_tracker")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the database handle for the lifetime of the application."""
    settings: Settings = app.state.settings
    try:
        database = Database(settings.db_path).open()
    except Exception:
        # Failing to open the DB is fatal; re-raise after logging
        logger.exception("failed to open database at %s", settings.db_path)
        raise
    app.state.database = database
    app.state.expense_service = ExpenseService(database)
    logger.info("database ready at %s", settings.db_path)
    try:
        yield
    finally:
        database.close()
        logger.info("database closed")


def create_app(settings_override: Settings | None = None) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    """
    settings = (settings_override or get_settings()).init_post_load()
    # Initialize logging early
    init_logging(debug=settings.debug)

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.not_found_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(expenses.router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "message": settings.app_name,
            "version": settings.version,
            "endpoints": {
                "health": "GET /health",
                "ping": "GET /api/ping",
                "expenses": {
                    "list": "GET /api/expenses",
                    "create": "POST /api/expenses",
                    "stats": "GET /api/expenses/stats",
                    "search": "GET /api/expenses/search",
                    "get": "GET /api/expenses/{id}",
                    "update": "PUT /api/expenses/{id}",
                    "edit": "PATCH /api/expenses/{id}",
                    "delete": "DELETE /api/expenses/{id}",
                },
            },
        }

    return app


app = create_app()
