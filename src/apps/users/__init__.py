"""Users app."""

from .routers.user_router import router as user_router
