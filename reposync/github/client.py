"""Thin GitHub REST client."""

import time
from collections.abc import Iterator
from typing import Any

import httpx

from reposync import __version__
from reposync.core.exceptions.errors import GitHubAPIError
from reposync.core.logger.logger import get_logger, register_secret

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"

# A POST that reached the server may have taken effect, so it is only
# retried when the connection was never established.
RETRY_METHODS = frozenset({"GET", "PATCH"})


class GitHubClient:
    """Synchronous GitHub REST client.

    Provides authentication headers, retries with exponential backoff for
    transport failures and 5xx responses (GET and PATCH only; POST only
    on connection failures), error mapping, and Link-header
    pagination.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: GitHub token sent as a Bearer credential.
            base_url: API base URL.
            timeout: Request timeout in seconds.
            max_retries: Retries after the first attempt.
            retry_delay: Base delay between retries (exponential backoff).
            transport: Custom httpx transport.
        """
        register_secret(token)
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=self._get_default_headers(token),
            timeout=timeout,
            transport=transport,
        )

    def _get_default_headers(self, token: str) -> dict[str, str]:
        """Get default headers for requests.

        Returns:
            Dictionary of headers.
        """
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"reposync/{__version__}",
        }

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make an HTTP request with retries.

        Args:
            method: HTTP method.
            url: Path relative to the base URL, or an absolute URL.
            params: Query parameters.
            json_data: JSON body.

        Returns:
            Successful response.

        Raises:
            GitHubAPIError: On a >= 400 response or after exhausting retries.
        """
        attempts = self.max_retries + 1
        retryable = method.upper() in RETRY_METHODS
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                logger.debug(f"Request: {method} {url} (attempt {attempt})")
                response = self._client.request(method, url, params=params, json=json_data)
            except httpx.RequestError as e:
                last_error = e
                if not retryable and not isinstance(e, httpx.ConnectError):
                    raise GitHubAPIError(f"Request failed: {method} {url}: {e}", url=url) from e
                logger.warning(f"Request failed (attempt {attempt}/{attempts}): {e}")
            else:
                if response.status_code < 500 or attempt == attempts or not retryable:
                    return self._handle_response(response)
                logger.warning(f"HTTP {response.status_code} from {method} {url} (attempt {attempt}/{attempts})")

            if attempt < attempts:
                delay = self.retry_delay * (2 ** (attempt - 1))
                logger.debug(f"Retrying in {delay:.1f}s...")
                time.sleep(delay)

        raise GitHubAPIError(
            f"Request failed after {attempts} attempts: {last_error}",
            url=url,
        )

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Map error responses to GitHubAPIError.

        Args:
            response: httpx response object.

        Returns:
            The response when successful.

        Raises:
            GitHubAPIError: On HTTP errors.
        """
        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.reason_phrase)
            except ValueError:
                message = response.text[:500] or response.reason_phrase
            raise GitHubAPIError(
                f"GitHub API error {response.status_code}: {message}",
                status_code=response.status_code,
                url=str(response.request.url),
            )
        return response

    def get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET and decode JSON."""
        return self.request("GET", url, params=params).json()

    def post(self, url: str, json_data: dict[str, Any] | None = None) -> Any:
        """POST and decode JSON."""
        return self.request("POST", url, json_data=json_data).json()

    def patch(self, url: str, json_data: dict[str, Any] | None = None) -> Any:
        """PATCH and decode JSON."""
        return self.request("PATCH", url, json_data=json_data).json()

    def paginate(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        item_key: str | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Iterate over every item of a paginated endpoint.

        Follows the ``Link: <...>; rel="next"`` header until it is absent.

        Args:
            url: First page URL.
            params: Query parameters for the first page.
            item_key: Key holding the items (e.g. ``items`` for search);
                the body itself is the item list when omitted.

        Yields:
            Items, in page order.
        """
        next_url: str | None = url
        next_params = params
        while next_url:
            response = self.request("GET", next_url, params=next_params)
            body = response.json()
            items = body.get(item_key, []) if item_key else body
            yield from items

            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            next_params = None
