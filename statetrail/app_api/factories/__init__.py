from .build_app import build_statetrail_app

__all__ = [
    "build_statetrail_app",
]
