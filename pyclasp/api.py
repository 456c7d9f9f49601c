"""API client for remote script projects."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Iterable
from typing import Any

import httpx

from .config import config
from .exceptions import (
    ConfigurationError,
    ScriptAPIError,
    ScriptAuthenticationError,
    ScriptInvalidResponseError,
    ScriptNetworkError,
    ScriptNotFoundError,
    ScriptPermissionError,
    ScriptRateLimitError,
)
from .models import RemoteFile

logger = logging.getLogger(__name__)


class ScriptClient:
    """Client for the content endpoints of the script API."""

    def __init__(
        self,
        access_token: str | None = None,
        api_url: str | None = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
    ):
        """Initialize the API client.

        Args:
            access_token: Optional OAuth access token (uses config if not provided)
            api_url: Optional API URL (uses config if not provided)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
        """
        self.access_token = access_token or config.access_token
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        if not self.access_token:
            raise ConfigurationError(
                "Access token not configured. Please set PYCLASP_ACCESS_TOKEN "
                "or run 'pyclasp init'."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> ScriptClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False
        return isinstance(exception, (ScriptNetworkError, ScriptRateLimitError))

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    @staticmethod
    def _error_message(response: httpx.Response) -> str | None:
        """Extract the error message from an API error body."""
        try:
            if not response.content:
                return None
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        error = data.get("error")
        if isinstance(error, dict):
            return error.get("message")
        return data.get("message") or (error if isinstance(error, str) else None)

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Handle HTTP errors and determine if retry should occur.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code
        detail = self._error_message(e.response)

        if status_code == 401:
            raise ScriptAuthenticationError(
                "Invalid or expired access token"
            ) from e
        elif status_code == 403:
            message = "Access forbidden - check your permissions"
            if detail:
                message = f"{message}: {detail}"
            raise ScriptPermissionError(message) from e
        elif status_code == 404:
            raise ScriptNotFoundError(detail or "Script project not found") from e
        elif status_code == 429:
            error = ScriptRateLimitError("Rate limit exceeded - please try again later")
            return (error, attempt < self.max_retries)

        error_msg = f"API request failed with status {status_code}"
        if detail:
            error_msg = f"{error_msg}: {detail}"
        error = ScriptAPIError(error_msg)
        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (error, should_retry)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            ScriptAPIError: If the request fails after all retries
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()

                content_type = response.headers.get("Content-Type", "")
                if response.content and "application/json" not in content_type:
                    if "text/html" in content_type:
                        raise ScriptAuthenticationError(
                            "Server returned HTML instead of JSON - "
                            "check your access token"
                        )
                    raise ScriptInvalidResponseError(
                        f"Unexpected response type: {content_type}"
                    )

                if response.content:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise ScriptInvalidResponseError(
                            "Invalid JSON response from server"
                        ) from e
                return {}

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    if isinstance(error, ScriptRateLimitError):
                        retry_after = e.response.headers.get("Retry-After")
                        if retry_after and retry_after.isdigit():
                            delay = float(retry_after)
                        else:
                            delay = self._calculate_retry_delay(attempt)
                    else:
                        delay = self._calculate_retry_delay(attempt)
                    logger.debug(
                        "%s %s failed (%s), retrying in %.1fs",
                        method,
                        endpoint,
                        error,
                        delay,
                    )
                    time.sleep(delay)
                    continue
                raise error from e
            except ScriptAPIError:
                raise
            except httpx.RequestError as e:
                error = ScriptNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    delay = self._calculate_retry_delay(attempt)
                    logger.debug("Network error, retrying in %.1fs: %s", delay, e)
                    time.sleep(delay)
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise ScriptAPIError("Request failed after all retry attempts")

    # =========================
    # Content Operations
    # =========================

    def get_content(
        self, script_id: str, version_number: int | None = None
    ) -> list[RemoteFile]:
        """Fetch the files of a script project.

        Args:
            script_id: Script project ID
            version_number: Version to fetch (default: latest, HEAD)

        Returns:
            List of remote files

        Raises:
            ScriptInvalidResponseError: If the response holds no file list
        """
        params: dict[str, Any] = {}
        if version_number is not None:
            params["versionNumber"] = version_number

        data = self._request("GET", f"/projects/{script_id}/content", params=params)
        files = data.get("files") if isinstance(data, dict) else None
        if not isinstance(files, list):
            raise ScriptInvalidResponseError(
                f"No files returned for script {script_id}"
            )
        logger.debug("Fetched %d remote file(s) for %s", len(files), script_id)
        return [RemoteFile.from_dict(item) for item in files]

    def update_content(self, script_id: str, files: Iterable[RemoteFile]) -> Any:
        """Replace all files of a script project.

        The list order is preserved; the server replaces the whole project
        content with it.

        Args:
            script_id: Script project ID
            files: Files to upload, in push order

        Returns:
            API response
        """
        payload = {
            "scriptId": script_id,
            "files": [f.to_dict() for f in files],
        }
        logger.debug(
            "Updating content of %s with %d file(s)",
            script_id,
            len(payload["files"]),
        )
        return self._request(
            "PUT", f"/projects/{script_id}/content", json=payload
        )
