import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from .api import create_database_routes, register_exception_handlers
from .config import Config
from .database import DatabaseInterface, initialize_database, is_database_initialized, get_database, reset_database
from .health_api import create_health_router
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .rate_limiter import limiter, rate_limit_exceeded_handler

# Apply the JSON logging configuration at the earliest point
setup_logging()

# Routers are built once, slowapi registers limits per decorated endpoint
database_router = create_database_routes()
health_router = create_health_router()


def create_app(database: Optional[DatabaseInterface] = None) -> FastAPI:
    """
    Build the table admin application.

    When ``database`` is given the application serves it and leaves its
    lifecycle to the caller. Otherwise the database is initialized from the
    environment on startup and disposed of on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.info("--- Table Admin Service Starting Up ---")

        owns_database = False
        if app.state.database is None:
            if is_database_initialized():
                app.state.database = get_database()
            else:
                config = Config.get_database_config()
                logging.info(f"Initializing {config.get('type')} database")
                app.state.database = initialize_database(config)
                owns_database = True

        yield

        logging.info("--- Table Admin Service Shutting Down ---")
        if owns_database:
            reset_database()
            app.state.database = None

    app = FastAPI(
        title="Table Admin",
        description="Generic browse and edit access to the tables of a relational database.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.database = database

    # Add CORS middleware to allow cross-origin requests from the admin client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # Writes are limited per client, reads are not
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    register_exception_handlers(app)

    app.include_router(database_router)
    app.include_router(health_router)

    @app.get("/", tags=["Root"])
    async def read_root():
        """
        A simple root endpoint to confirm the server is running.
        """
        return {"message": "Welcome to the Table Admin service"}

    return app


app = create_app()
