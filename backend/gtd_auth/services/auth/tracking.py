"""
Account lockout state machine.

The state lives entirely on the user record (``failed_login_count`` and
``lockout_until``); the tracker only computes the next update.
"""

from datetime import datetime, timedelta
from typing import Any, Dict

from gtd_auth.crud.base import UserUpdate
from gtd_auth.models.entities import User


class LoginTracker:
    """
    Computes lockout transitions.

    - ``threshold`` consecutive failures lock the account for ``lockout_duration``
    - a successful login clears the counter and the lockout
    """

    def __init__(self, threshold: int = 5, lockout_duration: timedelta = timedelta(minutes=15)) -> None:
        if threshold < 1:
            raise ValueError("threshold must be positive")
        self.threshold = threshold
        self.lockout_duration = lockout_duration

    def is_locked(self, user: User, now: datetime) -> bool:
        return user.lockout_until is not None and now < user.lockout_until

    def lockout_remaining(self, user: User, now: datetime) -> timedelta:
        if not self.is_locked(user, now):
            return timedelta(0)
        return user.lockout_until - now

    def failure_update(self, user: User, now: datetime) -> UserUpdate:
        """Update recording one more failed attempt, locking once the threshold is reached."""
        failed_login_count = user.failed_login_count + 1
        values: Dict[str, Any] = {"failed_login_count": failed_login_count}
        if failed_login_count >= self.threshold:
            values["lockout_until"] = now + self.lockout_duration
        return UserUpdate(**values)

    def success_update(self, now: datetime) -> UserUpdate:
        return UserUpdate(failed_login_count=0, lockout_until=None, last_login_at=now)
