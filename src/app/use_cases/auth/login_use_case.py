"""
Login Use Case

Handles credential verification, account lockout and token issuance.
"""

import logging

from src.libs.result import Error, Result, Return
from src.api.utils.jwt import TokenService
from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_store import ITokenStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import normalize_email, utcnow
from src.domain.entities import AuditAction, AuditEvent
from src.domain.lockout import LockoutPolicy, LockoutState
from .dtos import AccountInfo, LoginResponse
from .tokens import issue_token_pair

logger = logging.getLogger(__name__)


class LoginUseCase:
    """
    Use case for user login and JWT issuance.

    Business Rules:
    - Unknown email and wrong password give the same error, and both
      spend one bcrypt verification
    - A locked account is rejected before the password is checked, with
      the remaining lock time in minutes
    - Wrong passwords are counted atomically in the database; reaching
      the threshold locks the account
    - Success clears the counter and the lock and records last_login_at
    - Each login starts a new refresh token family
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: PasswordHasher,
        tokens: TokenService,
        token_store: ITokenStore,
        lockout: LockoutPolicy,
    ):
        self.uow = uow
        self.hasher = hasher
        self.tokens = tokens
        self.token_store = token_store
        self.lockout = lockout

    @staticmethod
    def _invalid_credentials() -> Error:
        return Error("INVALID_CREDENTIALS", "Invalid email or password")

    async def execute(self, email: str, password: str) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: User email
            password: Plain text password

        Returns:
            Result with LoginResponse containing tokens and account info, or Error

        Errors:
            - INVALID_CREDENTIALS: Unknown email or wrong password
            - ACCOUNT_LOCKED: Too many failed attempts (details.minutes_left)
        """
        email = normalize_email(email)
        now = utcnow()

        async with self.uow:
            user = await self.uow.users.get_by_email(email)

            if user is None:
                await self.hasher.dummy_verify_async(password)
                await self.uow.audit_events.create(
                    AuditEvent(
                        action=AuditAction.login_failed.value,
                        event_metadata={"email": email, "reason": "unknown_email"},
                    )
                )
                await self.uow.commit()
                return Return.err(self._invalid_credentials())

            state = LockoutState.of(user)
            if self.lockout.is_locked(state, now):
                minutes_left = self.lockout.minutes_remaining(state, now)
                logger.warning(f"Login attempt on locked account {user.id}")
                return Return.err(
                    Error(
                        "ACCOUNT_LOCKED",
                        "Account is temporarily locked due to too many failed login attempts. "
                        f"Try again in {minutes_left} minutes or reset your password.",
                        details={"minutes_left": minutes_left},
                    )
                )

            if not await self.hasher.verify_async(password, user.password_hash):
                updated = await self.uow.users.record_failed_login(
                    user.id,
                    now,
                    self.lockout.max_attempts,
                    self.lockout.lock_deadline(now),
                )
                failed_count = updated.failed_login_attempts if updated else None

                await self.uow.audit_events.create(
                    AuditEvent(
                        user_id=user.id,
                        action=AuditAction.login_failed.value,
                        event_metadata={"reason": "wrong_password", "failed_attempts": failed_count},
                    )
                )

                # Not locked before this attempt, so a lock now means this attempt set it
                if updated is not None and self.lockout.is_locked(LockoutState.of(updated), now):
                    logger.warning(
                        f"Account {user.id} locked after {failed_count} failed login attempts"
                    )
                    await self.uow.audit_events.create(
                        AuditEvent(
                            user_id=user.id,
                            action=AuditAction.account_locked.value,
                            event_metadata={"locked_until": updated.locked_until.isoformat()},
                        )
                    )

                await self.uow.commit()
                return Return.err(self._invalid_credentials())

            cleared = self.lockout.on_success(state)
            user.failed_login_attempts = cleared.failed_count
            user.locked_until = cleared.locked_until
            user.last_failed_login_at = None
            user.last_login_at = now
            user = await self.uow.users.update(user)

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user.id,
                    action=AuditAction.login.value,
                    event_metadata={"email": email},
                )
            )
            await self.uow.commit()

        access_token, refresh_token = await issue_token_pair(
            self.tokens, self.token_store, user
        )

        return Return.ok(
            LoginResponse(
                access_token=access_token,
                refresh_token=refresh_token,
                account=AccountInfo.from_user(user),
            )
        )
