from . import account, admin, auth

__all__ = ["account", "admin", "auth"]
