from . import admin, auth, blog, institutions, metrics, public, rankings, settings

__all__ = [
    "auth",
    "institutions",
    "metrics",
    "rankings",
    "blog",
    "settings",
    "admin",
    "public",
]
