"""OAuth token issuance and the STS token lifecycle.

The provider authenticates against an external identity provider with a
client-credentials grant, then exchanges that external token for a
short-lived Confluent Cloud STS token. ``TokenManager`` owns one such pair
and refreshes it lazily at the point of use.
"""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import requests

from ccloud.auth.tokens import (
    EXTERNAL_TOKEN_EXPIRATION_BUFFER,
    STS_TOKEN_EXPIRATION_BUFFER,
    ExternalOAuthToken,
    STSToken,
    TokenSnapshot,
    TokenState,
    compute_valid_until,
    utcnow,
)
from ccloud.clients.http import RetryableSession, TooManyRequestsError
from ccloud.core.config import OAuthConfig
from ccloud.core.exceptions import OAuthTokenError
from ccloud.utils.logging import REDACTED, get_logger, log_error

logger = get_logger(__name__)

STS_ENDPOINT = "https://api.confluent.cloud/sts/v1/oauth2/token"

CLIENT_CREDENTIALS_GRANT_TYPE = "client_credentials"
TOKEN_EXCHANGE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:token-exchange"
JWT_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:jwt"
ACCESS_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:access_token"

FORM_HEADERS = {
    "content-type": "application/x-www-form-urlencoded",
    "accept": "application/json",
}


def _redact_form(form: dict[str, str]) -> dict[str, str]:
    return {
        key: REDACTED if key in ("client_secret", "subject_token") else value
        for key, value in form.items()
    }


def _parse_token_body(response: requests.Response, description: str) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as e:
        raise OAuthTokenError(f"{description} response is not valid JSON: {e}") from e
    if not isinstance(body, dict) or not isinstance(body.get("access_token"), str):
        raise OAuthTokenError(f"{description} response has no access_token")
    return body


def _parse_expires_in(body: dict[str, Any], description: str) -> timedelta | None:
    expires_in = body.get("expires_in")
    if expires_in is None:
        return None
    try:
        return timedelta(seconds=float(expires_in))
    except (TypeError, ValueError) as e:
        raise OAuthTokenError(f"{description} response has invalid expires_in: {expires_in!r}") from e


class OAuthTokenClient:
    """Requests external OAuth tokens and exchanges them for STS tokens."""

    def __init__(
        self,
        session: RetryableSession,
        sts_endpoint: str = STS_ENDPOINT,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize the token client.

        Args:
            session: HTTP session used for both token endpoints
            sts_endpoint: Confluent Cloud STS token endpoint
            clock: Source of the current time
        """
        self.session = session
        self.sts_endpoint = sts_endpoint
        self.clock = clock

    def _post_form(self, url: str, form: dict[str, str], description: str) -> requests.Response:
        logger.debug("token_request", description=description, url=url, form=_redact_form(form))
        try:
            response = self.session.post(url, data=form, headers=FORM_HEADERS)
        except (requests.RequestException, TooManyRequestsError) as e:
            log_error(logger, e, operation="token_request", description=description, url=url)
            raise OAuthTokenError(f"{description} request failed: {e}") from e

        logger.debug("token_response", description=description, status_code=response.status_code)
        if response.status_code != 200:
            raise OAuthTokenError(
                f"{description} request failed: HTTP {response.status_code} {response.reason or ''}".rstrip()
            )
        return response

    def request_external_token(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        scope: str,
        identity_pool_id: str,
    ) -> ExternalOAuthToken:
        """Request a new external token with a client-credentials grant.

        Args:
            token_url: Token endpoint of the identity provider
            client_id: OAuth client ID
            client_secret: OAuth client secret
            scope: Optional scope
            identity_pool_id: Identity pool the token will be exchanged for

        Returns:
            New external token

        Raises:
            OAuthTokenError: If the request fails or the response is unusable
        """
        description = "exchange external token"
        form = {
            "grant_type": CLIENT_CREDENTIALS_GRANT_TYPE,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        if scope:
            form["scope"] = scope

        issued_at = self.clock()
        response = self._post_form(token_url, form, description)
        body = _parse_token_body(response, description)
        expires_in = _parse_expires_in(body, description)

        token = ExternalOAuthToken(
            access_token=body["access_token"],
            valid_until=(
                compute_valid_until(issued_at, expires_in, EXTERNAL_TOKEN_EXPIRATION_BUFFER)
                if expires_in is not None
                else None
            ),
            identity_pool_id=identity_pool_id,
            token_url=token_url,
            client_id=client_id,
            client_secret=client_secret,
            scope=str(body.get("scope", scope) or ""),
            token_type=str(body.get("token_type", "")),
            expires_in_seconds=str(body.get("expires_in", "")),
        )
        logger.info("external_oauth_token_issued", valid_until=str(token.valid_until))
        return token

    def request_sts_token(
        self, subject_token: str, identity_pool_id: str, expires_in: str = ""
    ) -> STSToken:
        """Exchange an external token for a Confluent Cloud STS token.

        Args:
            subject_token: External access token
            identity_pool_id: Identity pool to assume
            expires_in: Requested lifetime in seconds (server default if empty)

        Returns:
            New STS token

        Raises:
            OAuthTokenError: If the exchange fails or the response is unusable
        """
        description = "STS token exchange"
        form = {
            "grant_type": TOKEN_EXCHANGE_GRANT_TYPE,
            "subject_token": subject_token,
            "identity_pool_id": identity_pool_id,
            "subject_token_type": JWT_TOKEN_TYPE,
            "requested_token_type": ACCESS_TOKEN_TYPE,
        }
        if expires_in:
            form["expires_in"] = expires_in

        issued_at = self.clock()
        response = self._post_form(self.sts_endpoint, form, description)
        body = _parse_token_body(response, description)
        lifetime = _parse_expires_in(body, description)

        token = STSToken(
            access_token=body["access_token"],
            valid_until=(
                compute_valid_until(issued_at, lifetime, STS_TOKEN_EXPIRATION_BUFFER)
                if lifetime is not None
                else None
            ),
            identity_pool_id=identity_pool_id,
            token_type=str(body.get("token_type", "")),
            issued_token_type=str(body.get("issued_token_type", "")),
            expires_in_seconds=str(body.get("expires_in", "")),
        )
        logger.info("sts_token_issued", identity_pool_id=identity_pool_id, valid_until=str(token.valid_until))
        return token


class TokenManager:
    """Owns one external/STS token pair and keeps it fresh.

    Every read and refresh happens under a lock, and callers receive
    immutable snapshots, so resource operations running in parallel can share
    one manager. A refresh is committed only after every exchange it needs has
    succeeded.
    """

    def __init__(
        self,
        oauth_config: OAuthConfig,
        client: OAuthTokenClient,
        external_token: ExternalOAuthToken | None = None,
        sts_token: STSToken | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize the manager.

        Args:
            oauth_config: OAuth block of the provider configuration
            client: Token endpoint client
            external_token: Current external token, if any
            sts_token: Current STS token, if any
            clock: Source of the current time
        """
        self.oauth_config = oauth_config
        self.client = client
        self.clock = clock
        self._external_token = external_token
        self._sts_token = sts_token
        self._lock = threading.Lock()

    @classmethod
    def initialize(
        cls,
        oauth_config: OAuthConfig,
        client: OAuthTokenClient,
        clock: Callable[[], datetime] = utcnow,
    ) -> "TokenManager":
        """Create a manager and obtain the initial token pair.

        A statically provided external token is wrapped as-is and only the
        STS exchange is performed; such a token is never refreshed.

        Args:
            oauth_config: OAuth block of the provider configuration
            client: Token endpoint client
            clock: Source of the current time

        Returns:
            TokenManager holding a valid pair

        Raises:
            OAuthTokenError: If either token cannot be obtained
        """
        logger.info("initializing_oauth", identity_pool_id=oauth_config.identity_pool_id)
        external_token = None
        if oauth_config.uses_static_token:
            logger.warning(
                "static_external_token_used",
                message="The external token and the STS tokens derived from it are not "
                "refreshed automatically; replace the token manually before it expires",
            )
            external_token = ExternalOAuthToken.static(
                oauth_config.external_access_token, oauth_config.identity_pool_id
            )

        manager = cls(oauth_config, client, external_token=external_token, clock=clock)
        manager.ensure_valid()
        return manager

    def _state(self, now: datetime) -> TokenState:
        if self._external_token is None or self._sts_token is None:
            return TokenState.NO_TOKEN
        if self._sts_token.is_valid(now):
            return TokenState.EXTERNAL_VALID_STS_VALID
        if self._external_token.is_valid(now):
            return TokenState.EXTERNAL_VALID_STS_EXPIRED
        return TokenState.EXTERNAL_EXPIRED

    @property
    def state(self) -> TokenState:
        """Current validity of the token pair."""
        with self._lock:
            return self._state(self.clock())

    @property
    def external_token(self) -> ExternalOAuthToken | None:
        with self._lock:
            return self._external_token

    @property
    def sts_token(self) -> STSToken | None:
        with self._lock:
            return self._sts_token

    def _new_external_token(self) -> ExternalOAuthToken:
        config = self.oauth_config
        if not config.external_token_url:
            raise OAuthTokenError(
                "external access token expired and cannot be refreshed without "
                "oauth.external_token_url"
            )
        return self.client.request_external_token(
            token_url=config.external_token_url,
            client_id=config.external_client_id,
            client_secret=config.external_client_secret,
            scope=config.external_token_scope,
            identity_pool_id=config.identity_pool_id,
        )

    def _new_sts_token(self, external_token: ExternalOAuthToken) -> STSToken:
        return self.client.request_sts_token(
            subject_token=external_token.access_token,
            identity_pool_id=self.oauth_config.identity_pool_id,
            expires_in=self.oauth_config.sts_token_expired_in_seconds,
        )

    def ensure_valid(self) -> TokenSnapshot:
        """Make sure both tokens are valid and return them.

        - STS token still valid: nothing is requested.
        - External token still valid: only a new STS token is exchanged.
        - Otherwise: a new external token is requested and then exchanged for
          a new STS token.

        Returns:
            Snapshot of the valid pair

        Raises:
            OAuthTokenError: If any exchange fails; the previous pair is kept
        """
        with self._lock:
            now = self.clock()
            state = self._state(now)
            if state == TokenState.EXTERNAL_VALID_STS_VALID:
                assert self._external_token is not None and self._sts_token is not None
                return TokenSnapshot(self._external_token, self._sts_token)

            external_token = self._external_token
            if external_token is None or not external_token.is_valid(now):
                logger.info(
                    "external_oauth_token_expired",
                    valid_until=str(external_token.valid_until) if external_token else None,
                )
                external_token = self._new_external_token()
            else:
                logger.info(
                    "sts_token_expired",
                    valid_until=str(self._sts_token.valid_until) if self._sts_token else None,
                )

            sts_token = self._new_sts_token(external_token)

            self._external_token = external_token
            self._sts_token = sts_token
            return TokenSnapshot(external_token, sts_token)

    def ensure_external_valid(self) -> ExternalOAuthToken:
        """Make sure the external token is valid and return it.

        Data-plane clients (Kafka REST, Schema Registry, Catalog, Flink)
        authenticate with the external token directly.

        Returns:
            Valid external token

        Raises:
            OAuthTokenError: If the refresh fails; the previous token is kept
        """
        with self._lock:
            external_token = self._external_token
            if external_token is not None and external_token.is_valid(self.clock()):
                return external_token

            logger.info(
                "external_oauth_token_expired",
                valid_until=str(external_token.valid_until) if external_token else None,
            )
            external_token = self._new_external_token()
            self._external_token = external_token
            return external_token
