"""External OAuth and STS token values with expiration tracking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

EXTERNAL_TOKEN_EXPIRATION_BUFFER = timedelta(minutes=3)
STS_TOKEN_EXPIRATION_BUFFER = timedelta(minutes=1)

# A statically provided external token is never refreshed
STATIC_TOKEN_LIFETIME = timedelta(days=100 * 365)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def compute_valid_until(issued_at: datetime, expires_in: timedelta, buffer: timedelta) -> datetime:
    """Compute when a token should be treated as expired.

    The buffer is subtracted from the lifetime so a token is refreshed before
    the server rejects it. Lifetimes no longer than the buffer use half the
    lifetime as buffer instead.

    Args:
        issued_at: Time the token was received
        expires_in: Lifetime reported by the issuer
        buffer: Default refresh buffer

    Returns:
        Expiry time with buffer applied
    """
    if expires_in <= buffer:
        buffer = expires_in / 2
    return issued_at + expires_in - buffer


@dataclass(frozen=True)
class ExternalOAuthToken:
    """Access token issued by the external identity provider."""

    access_token: str
    valid_until: datetime | None
    identity_pool_id: str
    token_url: str = ""
    client_id: str = ""
    client_secret: str = ""
    scope: str = ""
    token_type: str = ""
    expires_in_seconds: str = ""

    def is_valid(self, now: datetime | None = None) -> bool:
        """Check whether the token can still be used."""
        if self.valid_until is None:
            return False
        return (now or utcnow()) < self.valid_until

    @property
    def is_refreshable(self) -> bool:
        """Whether a new token can be requested from the token URL."""
        return bool(self.token_url)

    @classmethod
    def static(cls, access_token: str, identity_pool_id: str) -> ExternalOAuthToken:
        """Wrap a token that was fetched outside of the provider."""
        return cls(
            access_token=access_token,
            valid_until=utcnow() + STATIC_TOKEN_LIFETIME,
            identity_pool_id=identity_pool_id,
        )

    def __repr__(self) -> str:
        return (
            f"ExternalOAuthToken(identity_pool_id={self.identity_pool_id!r}, "
            f"token_url={self.token_url!r}, valid_until={self.valid_until!r})"
        )


@dataclass(frozen=True)
class STSToken:
    """Short-lived Confluent Cloud token exchanged for an external token."""

    access_token: str
    valid_until: datetime | None
    identity_pool_id: str
    token_type: str = ""
    issued_token_type: str = ""
    expires_in_seconds: str = ""

    def is_valid(self, now: datetime | None = None) -> bool:
        """Check whether the token can still be used."""
        if self.valid_until is None:
            return False
        return (now or utcnow()) < self.valid_until

    def __repr__(self) -> str:
        return (
            f"STSToken(identity_pool_id={self.identity_pool_id!r}, "
            f"valid_until={self.valid_until!r})"
        )


class TokenState(str, Enum):
    """Validity of a token pair."""

    NO_TOKEN = "no-token"
    EXTERNAL_VALID_STS_VALID = "external-valid-sts-valid"
    EXTERNAL_VALID_STS_EXPIRED = "external-valid-sts-expired"
    EXTERNAL_EXPIRED = "external-expired"


@dataclass(frozen=True)
class TokenSnapshot:
    """Immutable view of a token pair at the time it was validated."""

    external_token: ExternalOAuthToken
    sts_token: STSToken

    @property
    def access_token(self) -> str:
        return self.sts_token.access_token

    @property
    def identity_pool_id(self) -> str:
        return self.sts_token.identity_pool_id
