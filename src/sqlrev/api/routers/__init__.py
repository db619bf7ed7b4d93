"""API routers package."""

from sqlrev.api.routers import vcs

__all__ = ["vcs"]
