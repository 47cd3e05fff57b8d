"""
Token Issuer/Verifier

Signed, time-bounded bearer tokens (HS256 JWT). The payload is signed, not
encrypted: nothing secret may be put into it.
"""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from src.libs.result import Error, Result, Return
from src.api.error import ConfigurationError

ACCESS = "access"
REFRESH = "refresh"

REQUIRED_CLAIMS = ("sub", "email", "type", "jti", "iat", "exp")


class TokenSettings(BaseModel):
    """Signing configuration, built once at process start"""

    secret: Optional[str] = None
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)

    @classmethod
    def from_config(cls, config) -> "TokenSettings":
        return cls(
            secret=config.JWT_SECRET,
            algorithm=config.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=config.ACCESS_TOKEN_TTL_MINUTES),
            refresh_ttl=timedelta(days=config.REFRESH_TOKEN_TTL_DAYS),
        )


class TokenClaims(BaseModel):
    """Verified token payload"""

    subject_id: str
    email: str
    token_type: str
    jti: str
    family_id: Optional[str] = None
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Issues and verifies signed tokens.

    Business Rules:
    - One symmetric secret for every token; missing secret is fatal
    - TTL is per call so the same issuer mints access and refresh tokens
    - Every token gets a random jti, so two tokens are never identical
    - verify() distinguishes MALFORMED, BAD_SIGNATURE and EXPIRED
    """

    def __init__(self, settings: TokenSettings):
        if not settings.secret:
            raise ConfigurationError("JWT_SECRET must be configured before the service starts")
        self.settings = settings

    @property
    def access_ttl(self) -> timedelta:
        return self.settings.access_ttl

    @property
    def refresh_ttl(self) -> timedelta:
        return self.settings.refresh_ttl

    def issue(
        self,
        subject_id,
        email: str,
        ttl: timedelta,
        token_type: str = ACCESS,
        family_id: Optional[str] = None,
    ) -> str:
        """
        Issue a signed token.

        Args:
            subject_id: Account id (UUID or str)
            email: Account email
            ttl: Lifetime of the token
            token_type: "access" or "refresh"
            family_id: Refresh token family (refresh tokens only)

        Returns:
            Encoded JWT string
        """
        now = datetime.now(UTC)
        payload = {
            "sub": str(subject_id),
            "email": email,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + ttl,
        }
        if family_id is not None:
            payload["fam"] = family_id
        return jwt.encode(payload, self.settings.secret, algorithm=self.settings.algorithm)

    def issue_access(self, subject_id, email: str) -> str:
        return self.issue(subject_id, email, self.access_ttl, ACCESS)

    def issue_refresh(self, subject_id, email: str, family_id: str) -> str:
        return self.issue(subject_id, email, self.refresh_ttl, REFRESH, family_id)

    def verify(self, token: str, expected_type: Optional[str] = None) -> Result[TokenClaims]:
        """
        Verify signature and expiry of a token.

        Returns:
            Result with TokenClaims, or Error

        Errors:
            - MALFORMED: Token cannot be decoded or lacks required claims
            - BAD_SIGNATURE: Signature does not match
            - EXPIRED: Token is past its expiry
            - WRONG_TOKEN_TYPE: Token is valid but of another type
        """
        try:
            jwt.get_unverified_claims(token)
        except (JWTError, AttributeError):
            return Return.err(Error("MALFORMED", "Token is malformed"))

        try:
            payload = jwt.decode(
                token,
                self.settings.secret,
                algorithms=[self.settings.algorithm],
                options={"require_exp": True, "require_iat": True},
            )
        except ExpiredSignatureError:
            return Return.err(Error("EXPIRED", "Token has expired"))
        except JWTError:
            return Return.err(Error("BAD_SIGNATURE", "Token signature is invalid"))

        if any(claim not in payload for claim in REQUIRED_CLAIMS):
            return Return.err(Error("MALFORMED", "Token is missing required claims"))

        if expected_type is not None and payload["type"] != expected_type:
            return Return.err(Error("WRONG_TOKEN_TYPE", f"Expected a {expected_type} token"))

        return Return.ok(
            TokenClaims(
                subject_id=payload["sub"],
                email=payload["email"],
                token_type=payload["type"],
                jti=payload["jti"],
                family_id=payload.get("fam"),
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            )
        )
