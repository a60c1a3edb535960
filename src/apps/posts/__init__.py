"""Posts app."""

from .routers.post_router import router as post_router
