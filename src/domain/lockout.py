"""
Account Lockout Policy

Pure state transitions for the failed-login counter. Persistence lives in the
user repository, which applies the same rules in a single UPDATE statement.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class LockoutState:
    failed_count: int = 0
    locked_until: Optional[datetime] = None

    @classmethod
    def of(cls, user) -> "LockoutState":
        return cls(
            failed_count=user.failed_login_attempts,
            locked_until=user.locked_until,
        )


class LockoutPolicy:
    """
    Brute-force mitigation via temporary account lockout.

    Business Rules:
    - Reaching max_attempts consecutive failures locks the account for
      lock_duration
    - Failures while locked are ignored (the lock is never extended)
    - A failure after a lock has expired starts a fresh count
    - Any success clears the counter and the lock
    """

    def __init__(self, max_attempts: int = 5, lock_duration: timedelta = timedelta(minutes=15)):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.lock_duration = lock_duration

    def is_locked(self, state: LockoutState, now: datetime) -> bool:
        return state.locked_until is not None and state.locked_until > now

    def on_failure(self, state: LockoutState, now: datetime) -> LockoutState:
        if self.is_locked(state, now):
            return state

        # locked_until set but not active means a previous lock ran out
        previous = 0 if state.locked_until is not None else state.failed_count
        failed_count = previous + 1

        locked_until = None
        if failed_count >= self.max_attempts:
            locked_until = self.lock_deadline(now)

        return LockoutState(failed_count=failed_count, locked_until=locked_until)

    def on_success(self, state: LockoutState) -> LockoutState:
        return LockoutState(failed_count=0, locked_until=None)

    def lock_deadline(self, now: datetime) -> datetime:
        return now + self.lock_duration

    def minutes_remaining(self, state: LockoutState, now: datetime) -> int:
        """Whole minutes until unlock, rounded up; 0 when not locked."""
        if not self.is_locked(state, now):
            return 0
        seconds = (state.locked_until - now).total_seconds()
        return max(1, math.ceil(seconds / 60))
