"""HTTP transport shared by every Confluent Cloud client."""

from typing import Any

import requests

from ccloud import __version__
from ccloud.core.exceptions import CCloudError
from ccloud.utils.logging import get_logger
from ccloud.utils.retry import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_WAIT,
    DEFAULT_MIN_WAIT,
    http_retrying,
)

logger = get_logger(__name__)

TERRAFORM_PROVIDER_USER_AGENT = "terraform-provider-confluent"
USER_AGENT_SUFFIX = "(https://confluent.cloud; support@confluent.io)"


class TooManyRequestsError(CCloudError):
    """Requests kept being throttled after every retry was spent."""

    def __init__(self, response: requests.Response):
        self.response = response
        request = response.request
        url = request.url if request is not None else ""
        method = request.method if request is not None else ""
        super().__init__(f"received HTTP 429 Too Many Requests (URL: {url}, Method: {method})")


def build_user_agent(version: str = __version__, additional_user_agent: str = "") -> str:
    """Build the User-Agent header value.

    Args:
        version: Provider version
        additional_user_agent: Optional product token placed in front

    Returns:
        User-Agent header value
    """
    user_agent = f"{TERRAFORM_PROVIDER_USER_AGENT}/{version} {USER_AGENT_SUFFIX}"
    if additional_user_agent:
        return f"{additional_user_agent} {user_agent}"
    return user_agent


class RetryableSession:
    """requests session that retries throttled and failed exchanges.

    429 and 5xx responses other than 501 are retried with exponential backoff;
    any other response is returned to the caller to interpret.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        min_wait: float = DEFAULT_MIN_WAIT,
        max_wait: float = DEFAULT_MAX_WAIT,
        user_agent: str = "",
    ):
        """Initialize the session.

        Args:
            session: Underlying requests session (created if omitted)
            max_retries: Retries after the first attempt
            min_wait: Minimum backoff (seconds)
            max_wait: Maximum backoff (seconds)
            user_agent: User-Agent header sent with every request
        """
        self.session = session or requests.Session()
        self.max_retries = max_retries
        self.min_wait = min_wait
        self.max_wait = max_wait
        if user_agent:
            self.session.headers["User-Agent"] = user_agent

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Perform one HTTP exchange with retries.

        Args:
            method: HTTP method
            url: Absolute URL
            **kwargs: Passed through to ``requests.Session.request``

        Returns:
            Final response

        Raises:
            TooManyRequestsError: If the final response is still a 429
            requests.RequestException: If the last attempt failed in transport
        """
        retrying = http_retrying(self.max_retries, self.min_wait, self.max_wait)
        response = retrying(self.session.request, method, url, **kwargs)
        if response.status_code == 429:
            logger.error("http_retries_exhausted", method=method, url=url, status_code=429)
            raise TooManyRequestsError(response)
        return response

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("DELETE", url, **kwargs)


def create_retryable_session(
    max_retries: int = DEFAULT_MAX_RETRIES, user_agent: str = ""
) -> RetryableSession:
    """Create the session used by a provider instance.

    Args:
        max_retries: Retries after the first attempt
        user_agent: User-Agent header value (defaults to the provider's own)

    Returns:
        RetryableSession
    """
    logger.debug("retryable_session_created", max_retries=max_retries)
    return RetryableSession(max_retries=max_retries, user_agent=user_agent or build_user_agent())
