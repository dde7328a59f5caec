"""API routers."""
from .checks import router as checks_router
from .monitors import router as monitors_router
from .status import router as status_router

__all__ = ["checks_router", "monitors_router", "status_router"]
