"""FastAPI routers acting as controllers."""

from . import voice

__all__ = ["voice"]
