"""Zendesk API client with authentication, pagination and request handling."""

import base64
import json
import logging
import math
import os
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Config file location
CONFIG_PATH = Path.home() / ".config" / "ticket-metrics" / "config.json"

# Default timeout for API requests
DEFAULT_TIMEOUT = 30.0

# Cursor pagination page size (Zendesk maximum)
PAGE_SIZE = 100

# Attempts on HTTP 429 before giving up
MAX_RETRIES = 5

# Seconds to wait on 429 when Retry-After is absent or unparsable
DEFAULT_RETRY_AFTER = 2.0

# Upper bound on a server-supplied Retry-After
MAX_RETRY_AFTER = 60.0

API_PATH = "/api/v2"


class ZendeskClientError(Exception):
    """Base exception for Zendesk client errors."""


class ZendeskAuthError(ZendeskClientError):
    """Missing or invalid credentials."""


class ZendeskAPIError(ZendeskClientError):
    """API request error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _load_config_from_file() -> dict[str, str]:
    """Load configuration from config file."""
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def _get_credentials() -> tuple[str, str, str]:
    """Get credentials from environment variables or config file.

    Returns:
        Tuple of (url, email, token)

    Raises:
        ZendeskAuthError: If required credentials are missing
    """
    # Try environment variables first
    url = os.environ.get("ZENDESK_URL")
    email = os.environ.get("ZENDESK_EMAIL")
    token = os.environ.get("ZENDESK_TOKEN")

    # Fall back to config file
    if not all([url, email, token]):
        config = _load_config_from_file()
        url = url or config.get("url")
        email = email or config.get("email")
        token = token or config.get("token")

    # Validate
    missing = []
    if not url:
        missing.append("url (ZENDESK_URL)")
    if not email:
        missing.append("email (ZENDESK_EMAIL)")
    if not token:
        missing.append("token (ZENDESK_TOKEN)")

    if missing:
        raise ZendeskAuthError(
            f"Missing Zendesk credentials: {', '.join(missing)}. "
            f"Set environment variables or create config at {CONFIG_PATH}"
        )

    return url, email, token


def _build_base_url(url: str) -> str:
    """Turn an instance URL into the REST API base URL.

    Raises:
        ZendeskAuthError: If the URL is not http(s)
    """
    url = url.strip().rstrip("/")
    if not url.startswith(("https://", "http://")):
        raise ZendeskAuthError(
            f"Invalid Zendesk URL {url!r}: expected e.g. https://company.zendesk.com"
        )
    if url.endswith(API_PATH):
        return url
    return url + API_PATH


def _build_auth_header(email: str, token: str) -> str:
    """Build Basic auth header for Zendesk API.

    Zendesk uses email/token auth: {email}/token:{token}
    """
    auth_string = f"{email}/token:{token}"
    encoded = base64.b64encode(auth_string.encode()).decode()
    return f"Basic {encoded}"


def _retry_after(response: httpx.Response) -> float:
    """Seconds to wait from Retry-After, clamped to [0, MAX_RETRY_AFTER]."""
    value = response.headers.get("retry-after")
    try:
        wait = float(value)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER
    if not math.isfinite(wait):
        return DEFAULT_RETRY_AFTER
    return min(max(wait, 0.0), MAX_RETRY_AFTER)


class ZendeskClient:
    """Synchronous HTTP client for the Zendesk API."""

    def __init__(
        self,
        url: str | None = None,
        email: str | None = None,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        If credentials are not provided, they will be loaded from
        environment variables or config file.
        """
        if url and email and token:
            self.url = url
            self.email = email
            self.token = token
        else:
            self.url, self.email, self.token = _get_credentials()

        self.timeout = timeout
        self.base_url = _build_base_url(self.url)
        self._auth_header = _build_auth_header(self.email, self.token)
        self._http = httpx.Client(
            headers=self._get_headers(),
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "ZendeskClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying connection pool."""
        self._http.close()

    def _get_headers(self) -> dict[str, str]:
        """Get headers for API requests."""
        return {
            "Authorization": self._auth_header,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("https://", "http://")):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Make an API request to Zendesk.

        Rate-limited requests are retried after the server's Retry-After delay.

        Args:
            method: HTTP method
            endpoint: API endpoint (without base URL) or an absolute next-page URL
            params: Query parameters
            timeout: Request timeout override

        Returns:
            Parsed JSON response

        Raises:
            ZendeskAPIError: On API errors
        """
        url = self._url(endpoint)

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = self._http.request(
                    method=method,
                    url=url,
                    params=params,
                    timeout=timeout or self.timeout,
                )
                if response.status_code == 429 and attempt < MAX_RETRIES:
                    wait = _retry_after(response)
                    logger.warning(
                        "Rate limited by Zendesk, retrying in %.1fs (attempt %d/%d)",
                        wait, attempt, MAX_RETRIES,
                    )
                    time.sleep(wait)
                    continue
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                error_msg = self._format_http_error(e)
                raise ZendeskAPIError(error_msg, e.response.status_code) from e
            except httpx.TimeoutException as e:
                raise ZendeskAPIError(
                    "Request timed out. The Zendesk API may be slow or unavailable."
                ) from e
            except httpx.RequestError as e:
                raise ZendeskAPIError(f"Request failed: {e}") from e

        # Only reachable with MAX_RETRIES < 1
        raise ZendeskAPIError("Rate limit exceeded. Please wait before making more requests.", 429)

    def _format_http_error(self, error: httpx.HTTPStatusError) -> str:
        """Format HTTP error into user-friendly message."""
        status = error.response.status_code

        # Try to extract error details from response
        try:
            data = error.response.json()
            if "error" in data:
                detail = data.get("description", data["error"])
            elif "errors" in data:
                detail = "; ".join(str(e) for e in data["errors"])
            else:
                detail = str(data)
        except ValueError:
            detail = error.response.text[:200] if error.response.text else ""

        if status == 401:
            return "Authentication failed. Check your Zendesk email and API token."
        elif status == 403:
            return f"Permission denied. You don't have access to this resource. {detail}"
        elif status == 404:
            return f"Resource not found. {detail}"
        elif status == 422:
            return f"Invalid request: {detail}"
        elif status == 429:
            return "Rate limit exceeded. Please wait before making more requests."
        elif status >= 500:
            return f"Zendesk server error ({status}). Try again later. {detail}"
        else:
            return f"API error ({status}): {detail}"

    def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Make a GET request."""
        return self.request("GET", endpoint, params=params, timeout=timeout)

    def paginate(
        self,
        endpoint: str,
        key: str,
        params: dict[str, Any] | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield items under ``key`` from every page of a list endpoint.

        Uses cursor pagination (``links.next`` while ``meta.has_more``) and
        falls back to offset pagination's ``next_page``. Pages are fetched
        only as the caller consumes items.
        """
        page_params = {"page[size]": PAGE_SIZE, **(params or {})}
        next_url: str | None = endpoint
        pages = 0

        while next_url:
            # Next-page links already carry the query string
            data = self.get(next_url, params=page_params if pages == 0 else None)
            pages += 1
            logger.debug("Fetched page %d of %s", pages, endpoint)

            yield from data.get(key) or []

            meta = data.get("meta") or {}
            links = data.get("links") or {}
            if "has_more" in meta:
                next_url = links.get("next") if meta["has_more"] else None
            else:
                next_url = data.get("next_page")

    def iter_tickets(self) -> Iterator[dict[str, Any]]:
        """Every ticket in the account, in no guaranteed order."""
        return self.paginate("tickets.json", "tickets")

    def iter_ticket_audits(self, ticket_id: int | str) -> Iterator[dict[str, Any]]:
        """Audits of one ticket, oldest first."""
        return self.paginate(f"tickets/{ticket_id}/audits.json", "audits")

    def get_user(self, user_id: int | str) -> dict[str, Any]:
        """Get a user record by ID."""
        return self.get(f"users/{user_id}.json").get("user", {})

    def validate(self) -> dict[str, Any]:
        """Check the session by fetching the authenticated user.

        Returns:
            Dict with user info: id, name, email, role

        Raises:
            ZendeskAPIError: If the service cannot be reached or rejects the credentials
        """
        user = self.get("users/me.json").get("user", {})
        return {
            "id": user.get("id"),
            "name": user.get("name"),
            "email": user.get("email"),
            "role": user.get("role"),
        }
