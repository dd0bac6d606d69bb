"""
gtd-auth package initialization.

Authentication and credential lifecycle core for the personal productivity
backend:
- Login with per-account lockout
- Opaque server-side sessions
- Administrator-issued password reset tokens
"""

__version__ = "1.0.0"
__author__ = "GTD Backend Team"
__description__ = "Authentication and credential lifecycle service"

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__description__",
]
