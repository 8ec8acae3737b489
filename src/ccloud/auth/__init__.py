"""Credentials and OAuth token management."""

from ccloud.auth.credentials import (
    BasicAuthCredential,
    BearerCredential,
    Credential,
    resolve_credential,
)
from ccloud.auth.oauth import OAuthTokenClient, TokenManager
from ccloud.auth.tokens import ExternalOAuthToken, STSToken, TokenSnapshot, TokenState

__all__ = [
    "BasicAuthCredential",
    "BearerCredential",
    "Credential",
    "resolve_credential",
    "OAuthTokenClient",
    "TokenManager",
    "ExternalOAuthToken",
    "STSToken",
    "TokenSnapshot",
    "TokenState",
]
