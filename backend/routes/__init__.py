from .posts import router as posts_router
from .ai import router as ai_router
from .realtime import router as realtime_router

__all__ = ["posts_router", "ai_router", "realtime_router"]
