import logging
from typing import Dict, Optional

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from .constants import (
    DEFAULT_MAX_RETRY_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    RETRY_WAIT_MAX,
    RETRY_WAIT_MIN,
)
from .errors import (
    NetworkConnectionError,
    RequestBuildError,
    RequestFailedError,
    RequestTimeoutError,
    ServerError,
    TooManyRequestsError,
    TransportError,
)

logger = logging.getLogger(__name__)


class ResilientSender:
    """
    Posts request bodies to the collector, retrying transient failures.

    Connection errors, timeouts, HTTP 429 and HTTP 5xx are retried with
    exponential backoff. The request is tried once and then retried up to
    ``max_retry_attempts`` times before the last error is raised. Any other
    response, including 4xx, is returned to the caller untouched.
    """

    def __init__(
        self,
        max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
        retry_wait_min: float = RETRY_WAIT_MIN,
        retry_wait_max: float = RETRY_WAIT_MAX,
    ):
        """
        Args:
            max_retry_attempts: Retries after the first attempt.
            timeout: Per request timeout in seconds.
            http_client: Client to send with. When given, the caller owns it
                and ``close()`` leaves it open.
            retry_wait_min: Initial backoff in seconds.
            retry_wait_max: Backoff ceiling in seconds.
        """
        self.max_retry_attempts = max_retry_attempts
        self.timeout = timeout
        self.retry_wait_min = retry_wait_min
        self.retry_wait_max = retry_wait_max

        self._owns_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=timeout)

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_retry_attempts + 1),
            wait=wait_exponential_jitter(
                initial=self.retry_wait_min, max=self.retry_wait_max, jitter=self.retry_wait_min
            ),
            reraise=True,
            retry=retry_if_exception_type(TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

    def post(self, url: str, content: bytes, headers: Dict[str, str]) -> httpx.Response:
        """
        Send ``content`` to ``url``.

        Raises:
            RequestBuildError: The request cannot be built, never retried.
            RequestFailedError: The response cannot be read, never retried.
            TransportError: The last transient failure once retries are exhausted.
        """
        for attempt in self._retrying():
            with attempt:
                return self._post_once(url, content, headers)

        # Unreachable, tenacity either returns or re-raises
        raise TransportError()

    def _post_once(self, url: str, content: bytes, headers: Dict[str, str]) -> httpx.Response:
        try:
            response = self._http_client.post(
                url, content=content, headers=headers, timeout=self.timeout
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise RequestBuildError(reason=str(e)) from e
        except httpx.TimeoutException as e:
            raise RequestTimeoutError() from e
        except httpx.TransportError as e:
            raise NetworkConnectionError(reason=str(e)) from e
        except httpx.HTTPError as e:
            # Decoding errors, redirect loops; not retried
            raise RequestFailedError(reason=str(e)) from e

        if response.status_code == 429:
            logger.warning("Rate limit exceeded")
            raise TooManyRequestsError(reason=response.text)
        if response.is_server_error:
            logger.warning(f"Server error {response.status_code}")
            raise ServerError(status_code=response.status_code, reason=response.text)

        return response

    def close(self) -> None:
        if self._owns_client:
            self._http_client.close()
            logger.debug("HTTP client closed")
