# Routers package
from . import notifications_router

__all__ = [
    "notifications_router",
]
