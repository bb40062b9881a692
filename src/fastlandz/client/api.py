"""HTTP client for the remote row store.

This module provides:
- RestStoreClient: PostgREST-style row API client (select/insert/update/delete)
- Mapping of HTTP statuses and transport failures onto ErrorKind

Every call returns a StoreResult. Transport failures and error statuses
are reported as StoreError values, never raised.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from fastlandz.client.store import (
    ErrorKind,
    Filters,
    Row,
    StoreError,
    StoreResult,
)
from fastlandz.core.config import StoreConfig

logger = logging.getLogger(__name__)


def _filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _error_kind(status_code: int) -> ErrorKind:
    if status_code in (401, 403):
        return ErrorKind.AUTH
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 409:
        return ErrorKind.CONFLICT
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code >= 500:
        return ErrorKind.SERVER
    return ErrorKind.VALIDATION


class RestStoreClient:
    """HTTP client for the remote row store."""

    def __init__(self, config: StoreConfig) -> None:
        """Initialize the store client.

        Args:
            config: Store URL, keys and timeout.
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.rest_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers={
                "apikey": config.api_key,
                "Authorization": f"Bearer {config.bearer_token}",
                "Content-Type": "application/json",
            },
        )

    @property
    def config(self) -> StoreConfig:
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> RestStoreClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        returning: bool = True,
    ) -> StoreResult:
        """Send one request and convert the outcome into a StoreResult."""
        headers = {"Prefer": "return=representation"} if returning else None
        try:
            response = self._client.request(
                method, f"/{table}", params=params, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.warning("Store request timed out: %s %s", method, table)
            return StoreResult.failure(StoreError(ErrorKind.TIMEOUT, str(e) or "Request timed out"))
        except httpx.RequestError as e:
            logger.warning("Store unreachable: %s %s: %s", method, table, e)
            return StoreResult.failure(StoreError(ErrorKind.NETWORK, str(e) or "Network error"))
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> StoreResult:
        """Map an HTTP response onto rows or a StoreError."""
        if response.status_code >= 400:
            message = response.reason_phrase or "Unknown error"
            code = None
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                message = body.get("message") or body.get("detail") or message
                code = body.get("code")
            error = StoreError(
                kind=_error_kind(response.status_code),
                message=message,
                status_code=response.status_code,
                code=code,
            )
            logger.debug("Store returned error %s", error)
            return StoreResult.failure(error)

        if not response.content:
            return StoreResult.success()
        try:
            data = response.json()
        except ValueError:
            # Proxies and captive portals answer 200 with HTML
            logger.warning("Store returned a non-JSON body (status %d)", response.status_code)
            return StoreResult.failure(
                StoreError(
                    kind=ErrorKind.SERVER,
                    message="Unreadable response body",
                    status_code=response.status_code,
                )
            )
        if isinstance(data, dict):
            data = [data]
        return StoreResult.success(data)

    @staticmethod
    def _params(filters: Filters | None) -> dict[str, str]:
        return {column: f"eq.{_filter_value(value)}" for column, value in (filters or {}).items()}

    # === Health check ===

    def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if the store answered without a server error.
        """
        try:
            response = self._client.get(self._config.health_url)
            return response.status_code < 500
        except httpx.RequestError:
            return False

    # === Row operations ===

    def select(
        self,
        table: str,
        filters: Filters | None = None,
        columns: str = "*",
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> StoreResult:
        """Select rows matching all equality filters.

        Args:
            table: Table name.
            filters: Column -> value equality predicates.
            columns: Comma separated column list.
            order: Optional column to sort by.
            descending: Sort direction for ``order``.
            limit: Maximum number of rows.

        Returns:
            StoreResult with matching rows (possibly empty).
        """
        params = {"select": columns, **self._params(filters)}
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)
        return self._request("GET", table, params=params, returning=False)

    def insert(self, table: str, rows: Row | list[Row]) -> StoreResult:
        """Insert one row or a batch of rows.

        Returns:
            StoreResult with the inserted rows.
        """
        return self._request("POST", table, json=rows)

    def update(self, table: str, values: Row, filters: Filters) -> StoreResult:
        """Update rows matching the filters.

        Returns:
            StoreResult with the updated rows (empty when nothing matched).
        """
        return self._request("PATCH", table, params=self._params(filters), json=values)

    def delete(self, table: str, filters: Filters) -> StoreResult:
        """Delete rows matching the filters.

        Returns:
            StoreResult with the deleted rows.
        """
        return self._request("DELETE", table, params=self._params(filters))
