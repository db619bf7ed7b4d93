"""FastAPI application for sqlrev."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from sqlrev import __version__
from sqlrev.api.routers import vcs as vcs_router
from sqlrev.core.vcs import VersionControl, connect

logger = logging.getLogger(__name__)


def create_app(
    vcs: Optional[VersionControl] = None, project_dir: Optional[Path] = None
) -> FastAPI:
    """Build the API application.

    Args:
        vcs: VersionControl to serve; opened from the project on first use if None
        project_dir: Project directory used when ``vcs`` is None
    """
    holder = {"vcs": vcs}

    def get_vcs() -> VersionControl:
        if holder["vcs"] is None:
            holder["vcs"] = connect(project_dir)
        return holder["vcs"]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info(f"Starting sqlrev API v{__version__}")
        yield
        if holder["vcs"] is not None and vcs is None:
            holder["vcs"].close()
        logger.info("Shutting down sqlrev API")

    app = FastAPI(
        title="sqlrev API",
        description="Version control for database mutations",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.get_vcs = get_vcs

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(vcs_router.router, prefix="/api/vcs", tags=["vcs"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"name": "sqlrev API", "version": __version__, "status": "running"}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
