from operalog.api.auth import router as auth_router
from operalog.api.catalog import router as catalog_router
from operalog.api.health import router as health_router
from operalog.api.watched import router as watched_router
from operalog.api.wishlist import router as wishlist_router

__all__ = [
    "auth_router",
    "catalog_router",
    "health_router",
    "watched_router",
    "wishlist_router",
]
