from . import auth, health, realtime

__all__ = [
    "auth",
    "health",
    "realtime",
]
