"""Shared configuration classes for fastlandz.

This module defines configuration classes used by the store client,
the sync engine and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass

# Sync policy defaults
MAX_RETRIES = 3
SYNC_INTERVAL = 30.0  # seconds
HEALTH_CHECK_INTERVAL = 5.0  # seconds


@dataclass
class StoreConfig:
    """Configuration for connecting to the remote row store.

    Attributes:
        url: Base URL of the store (e.g., "https://abc.supabase.co").
        api_key: Project API key, sent with every request.
        access_token: Optional user access token (falls back to api_key).
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    url: str
    api_key: str
    access_token: str | None = None
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize store URL."""
        self.url = self.url.rstrip("/")

    @property
    def rest_url(self) -> str:
        """Get the base URL of the REST row API."""
        return f"{self.url}/rest/v1"

    @property
    def health_url(self) -> str:
        """Get the URL used for reachability checks."""
        return f"{self.url}/rest/v1/"

    @property
    def bearer_token(self) -> str:
        """Token sent in the Authorization header."""
        return self.access_token or self.api_key

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if store uses HTTPS.
        """
        return self.url.startswith("https://")


@dataclass
class SyncSettings:
    """Retry and scheduling policy for the offline queue.

    Attributes:
        max_retries: Attempts before a queued operation is dropped.
        sync_interval: Seconds between periodic drain checks.
        health_check_interval: Seconds between reachability probes.
    """

    max_retries: int = MAX_RETRIES
    sync_interval: float = SYNC_INTERVAL
    health_check_interval: float = HEALTH_CHECK_INTERVAL

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.sync_interval <= 0:
            raise ValueError("sync_interval must be positive")
        if self.health_check_interval <= 0:
            raise ValueError("health_check_interval must be positive")
