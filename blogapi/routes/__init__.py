from .auth import router as auth_router
from .blogs import router as blogs_router

__all__ = [
    "auth_router",
    "blogs_router",
]
