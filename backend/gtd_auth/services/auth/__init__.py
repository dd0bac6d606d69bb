"""
Authentication services.

- AuthenticationService: login with lockout, logout
- PasswordResetService: admin-issued, single-use reset tokens
- PasswordManager: bcrypt hashing behind the CredentialHasher interface
- LoginTracker: lockout transitions
"""

from .password import CredentialHasher, PasswordManager, PasswordPolicy
from .reset import PasswordResetService, ResetConfig, ResetTokenResult
from .service import AuthConfig, AuthenticationService, LoginResult
from .tracking import LoginTracker

__all__ = [
    # Services
    "AuthenticationService",
    "PasswordResetService",
    # Value objects
    "AuthConfig",
    "LoginResult",
    "ResetConfig",
    "ResetTokenResult",
    # Helpers
    "CredentialHasher",
    "PasswordManager",
    "PasswordPolicy",
    "LoginTracker",
]
