"""
Configuration package initialization.

``settings`` is a lazy proxy: the environment is read on first attribute
access, and again after ``Settings.reload()``.
"""

from typing import Any

from .settings import Settings, get_settings


class _LazySettings:
    def __getattr__(self, name: str) -> Any:
        return getattr(get_settings(), name)


settings = _LazySettings()

__all__ = [
    "Settings",
    "get_settings",
    "settings",
]
