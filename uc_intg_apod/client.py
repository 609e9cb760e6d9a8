"""
NASA APOD API client.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import logging
import ssl
from typing import Optional

import aiohttp
import certifi

from uc_intg_apod.config import APOD_URL, Config
from uc_intg_apod.models import HttpResponse, HttpResult, NoResponse, RequestError

_LOG = logging.getLogger(__name__)


class ApodClient:
    """
    APOD API client.

    Every call returns an HttpResult; transport failures are never raised.
    There are no retries: one call is one request.
    """

    def __init__(self, config: Config, url: str = APOD_URL, timeout: Optional[aiohttp.ClientTimeout] = None):
        """Initialize APOD client."""
        self._config = config
        self._url = url
        self._timeout = timeout or aiohttp.ClientTimeout(total=15, connect=5, sock_read=10)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session exists with SSL verification."""
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            ssl_context.check_hostname = True
            ssl_context.verify_mode = ssl.CERT_REQUIRED

            connector = aiohttp.TCPConnector(
                ssl=ssl_context,
                limit=1,
                enable_cleanup_closed=True
            )

            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=connector
            )

            _LOG.info("NASA HTTP session created with SSL verification")

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def get_apod(self) -> HttpResult:
        """Fetch today's APOD entry."""
        await self._ensure_session()
        params = {"api_key": self._config.api_key}

        try:
            _LOG.debug("Making request to %s", self._url)

            async with self._session.get(self._url, params=params) as response:
                _LOG.debug("Response: HTTP %s from %s", response.status, self._url)
                body = await response.text()
                return HttpResponse(status=response.status, body=body)

        except asyncio.TimeoutError:
            _LOG.debug("Timeout for %s", self._url)
            return NoResponse("timeout")
        except aiohttp.ClientConnectionError as ex:
            _LOG.debug("Connection error for %s: %s", self._url, ex)
            return NoResponse(str(ex) or type(ex).__name__)
        except aiohttp.ClientError as ex:
            _LOG.debug("Client error for %s: %s", self._url, ex)
            return RequestError(str(ex) or type(ex).__name__)
        except ValueError as ex:
            _LOG.error("Unexpected error for %s: %s", self._url, ex)
            return RequestError(str(ex))
