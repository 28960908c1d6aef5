"""FastAPI routers acting as controllers in the MVC architecture."""

from . import admin, analysis, auth, recordings, users

__all__ = ["admin", "analysis", "auth", "recordings", "users"]
