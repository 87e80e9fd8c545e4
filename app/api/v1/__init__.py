from app.api.v1 import revisions

__all__ = [
    "revisions",
]
