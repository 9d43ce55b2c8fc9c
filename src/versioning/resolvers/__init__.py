"""Version resolvers for registry ecosystems."""

from .npm import NpmVersionResolver

__all__ = [
    "NpmVersionResolver",
]
