"""API router definitions for the market relay."""

from .routes import get_services, router as api_router

__all__ = ["api_router", "get_services"]
