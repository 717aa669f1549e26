# API Routes

from .cart import router as cart_router
from .music import router as music_router
from .tags import router as tags_router

__all__ = ["cart_router", "music_router", "tags_router"]
