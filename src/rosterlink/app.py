"""Main FastAPI application module.

This module initializes the FastAPI application and registers all route handlers.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rosterlink.api.routes import accounts, children, class_route, records, session, students
from rosterlink.config import API_HOST, API_PORT, CORS_ALLOWED_ORIGINS
from rosterlink.core.database import init_db
from rosterlink.core.logging_config import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title="Roster Link API",
    description="Class rosters, guardian linking and co-administration for teachers.",
    version="1.0.0",
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route handlers
app.include_router(session.router)
app.include_router(accounts.router)
app.include_router(class_route.router)
app.include_router(students.router)
app.include_router(records.router)
app.include_router(children.router)


@app.on_event("startup")
def startup_tasks() -> None:
    """Create the document table if it does not exist yet."""
    init_db()
    logger.info("Document store ready")


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links.

    Returns:
        Dictionary with API information and documentation links.
    """
    return {
        "name": "Roster Link API",
        "version": "1.0.0",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok".
    """
    return {"status": "ok"}


def main() -> None:
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    logger.info("Starting Roster Link API at %s (docs: %s/docs)", server_url, server_url)
    uvicorn.run("rosterlink.app:app", host=API_HOST, port=API_PORT)


# --- Startup code for direct execution ---
if __name__ == "__main__":
    main()
