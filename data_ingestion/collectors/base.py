"""
Data Ingestion - Base Collector.

============================================================
PURPOSE
============================================================
Abstract base class for the exchange collectors.

============================================================
DESIGN PRINCIPLES
============================================================
- Fetch only - no parsing or persistence
- One attempt per call; retry is the scheduler's concern
- Explicit timeout on every request
- Every transport failure surfaces as FetchError

============================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar
from uuid import uuid4

import httpx

from core.exceptions import FetchError
from data_ingestion.types import CollectorConfig


T = TypeVar("T")  # Type of the fetched payload


class BaseCollector(ABC, Generic[T]):
    """
    Abstract base class for data collectors.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    - Issue the HTTP request with the configured timeout
    - Map transport errors to FetchError
    - Decode the response into the collector's payload type

    ============================================================
    LIFECYCLE
    ============================================================
    1. Initialize with config (and optionally a shared client)
    2. Call fetch() once per pipeline run

    ============================================================
    """

    def __init__(
        self,
        config: CollectorConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the collector.

        Args:
            config: Collector configuration
            client: Optional client (tests inject a mock transport)
        """
        self._config = config
        self._client = client
        self._logger = logging.getLogger(f"collector.{config.source_name}")
        self._collector_instance = f"{config.source_name}_{uuid4().hex[:8]}"

    @property
    def source_name(self) -> str:
        """Get the source name."""
        return self._config.source_name

    @property
    def url(self) -> str:
        return self._config.url

    @property
    def is_enabled(self) -> bool:
        """Check if collector is enabled."""
        return self._config.enabled

    # =========================================================
    # ABSTRACT METHODS - Must be implemented by subclasses
    # =========================================================

    @abstractmethod
    def decode(self, response: httpx.Response) -> T:
        """
        Decode a successful response.

        Raises:
            FetchError: If the body is not in the expected format
        """
        pass

    # =========================================================
    # FETCH
    # =========================================================

    async def fetch(self) -> T:
        """
        Fetch and decode the source document.

        Raises:
            FetchError: On network, timeout, HTTP status or decode errors
        """
        self._logger.info(f"Fetching {self.url}")

        try:
            if self._client is not None:
                response = await self._get(self._client)
            else:
                async with httpx.AsyncClient(
                    timeout=self._config.timeout_seconds,
                    follow_redirects=True,
                ) as client:
                    response = await self._get(client)
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            raise FetchError(
                message=f"Fetch error: HTTP {e.response.status_code}",
                recoverable=e.response.status_code >= 500 or e.response.status_code == 429,
                context={"status_code": e.response.status_code, "url": self.url},
            ) from e
        except httpx.TimeoutException as e:
            raise FetchError(
                message=f"Fetch error: request timed out after {self._config.timeout_seconds}s",
                context={"url": self.url},
                cause=e,
            ) from e
        except httpx.RequestError as e:
            raise FetchError(
                message=f"Fetch error: {e}",
                context={"url": self.url},
                cause=e,
            ) from e

        self._logger.info(
            f"Fetched {self.url}: status={response.status_code} bytes={len(response.content)}"
        )
        return self.decode(response)

    async def _get(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.get(
            self.url,
            headers={"User-Agent": self._config.user_agent},
            timeout=self._config.timeout_seconds,
        )

    def get_health_status(self) -> Dict[str, Any]:
        return {
            "source": self.source_name,
            "url": self.url,
            "enabled": self.is_enabled,
            "version": self._config.version,
            "collector_instance": self._collector_instance,
        }
