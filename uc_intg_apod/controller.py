"""
Fetch controller: owns the current APOD outcome.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import json
import logging
from typing import Callable, List, Optional

from uc_intg_apod.client import ApodClient
from uc_intg_apod.models import (
    ApodRecord,
    Failure,
    HttpResponse,
    HttpResult,
    Idle,
    Loading,
    NetworkUnreachable,
    NoResponse,
    NotFound,
    RequestOutcome,
    ServerError,
    Success,
    Unauthorized,
    Unexpected,
    outcome_name,
)

_LOG = logging.getLogger(__name__)

MSG_UNAUTHORIZED = "Error 401: La API Key es incorrecta o no autorizada."
MSG_NOT_FOUND = "Error 404: No se encontró el recurso en la API."
MSG_SERVER_ERROR = "Error del servidor: {code}"
MSG_NETWORK = "Error de red: No se pudo conectar a la API de la NASA."
MSG_UNEXPECTED = "Error inesperado: {detail}"

OutcomeListener = Callable[[RequestOutcome], None]


def unexpected(detail: str) -> Failure:
    """Failure for anything outside the known HTTP and network cases."""
    return Failure(message=MSG_UNEXPECTED.format(detail=detail), kind=Unexpected(detail))


def classify_result(result: HttpResult) -> RequestOutcome:
    """Map one HTTP client result to a terminal outcome."""
    if isinstance(result, HttpResponse):
        if result.ok:
            try:
                record = ApodRecord.from_json(json.loads(result.body))
            except ValueError as ex:
                return unexpected(str(ex))
            return Success(record)
        if result.status == 401:
            return Failure(message=MSG_UNAUTHORIZED, kind=Unauthorized())
        if result.status == 404:
            return Failure(message=MSG_NOT_FOUND, kind=NotFound())
        return Failure(message=MSG_SERVER_ERROR.format(code=result.status), kind=ServerError(result.status))

    if isinstance(result, NoResponse):
        return Failure(message=MSG_NETWORK, kind=NetworkUnreachable())

    return unexpected(result.detail)


class FetchController:
    """
    Holds the single current RequestOutcome and notifies listeners on change.

    Only this class writes the outcome, always from the event loop.
    Overlapping fetches join the one in flight instead of issuing a second
    request.
    """

    def __init__(self, client: ApodClient):
        """Initialize fetch controller."""
        self._client = client
        self._outcome: RequestOutcome = Idle()
        self._listeners: List[OutcomeListener] = []
        self._inflight: Optional[asyncio.Task] = None
        self._initial_fetch: Optional[asyncio.Task] = None
        self._refresh: Optional[asyncio.Task] = None

    @property
    def outcome(self) -> RequestOutcome:
        """Get current outcome."""
        return self._outcome

    @property
    def loading(self) -> bool:
        """True while a fetch is in flight."""
        return self._inflight is not None

    def add_listener(self, listener: OutcomeListener) -> None:
        """Register a callback for outcome changes."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: OutcomeListener) -> None:
        """Unregister an outcome callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_outcome(self, outcome: RequestOutcome) -> None:
        self._outcome = outcome
        _LOG.debug("Outcome: %s", outcome_name(outcome))

        for listener in list(self._listeners):
            try:
                listener(outcome)
            except Exception as ex:
                _LOG.error("Outcome listener failed: %s", ex, exc_info=True)

    async def fetch_apod(self) -> RequestOutcome:
        """Fetch APOD and publish Loading, then the terminal outcome."""
        if self._inflight is not None:
            _LOG.debug("APOD request in progress, joining it")
            return await asyncio.shield(self._inflight)

        self._inflight = asyncio.ensure_future(self._request())
        self._set_outcome(Loading())
        return await asyncio.shield(self._inflight)

    async def _request(self) -> RequestOutcome:
        _LOG.info("Fetching APOD from NASA API...")

        try:
            result = await self._client.get_apod()
            outcome = classify_result(result)
        except Exception as ex:
            _LOG.error("APOD fetch failed: %s", ex, exc_info=True)
            outcome = unexpected(str(ex) or type(ex).__name__)
        finally:
            self._inflight = None

        if isinstance(outcome, Success):
            _LOG.info("APOD data fetched: %s", outcome.payload.title[:30])
        else:
            _LOG.warning("APOD fetch failed: %s", outcome.message)

        self._set_outcome(outcome)
        return outcome

    async def retry(self) -> Optional[RequestOutcome]:
        """User retry; only honoured in the error state."""
        if not isinstance(self._outcome, Failure):
            _LOG.debug("Ignoring retry while %s", outcome_name(self._outcome))
            return None
        return await self.fetch_apod()

    def start(self) -> Optional[asyncio.Task]:
        """Schedule the one automatic fetch made at initialization."""
        if self._initial_fetch is not None:
            return None
        self._initial_fetch = asyncio.ensure_future(self.fetch_apod())
        return self._initial_fetch

    def refresh(self) -> asyncio.Task:
        """Schedule a fetch outside the user retry path, e.g. after re-setup."""
        if self._refresh is None or self._refresh.done():
            self._refresh = asyncio.ensure_future(self.fetch_apod())
            self._refresh.add_done_callback(self._refresh_done)
        return self._refresh

    @staticmethod
    def _refresh_done(task: asyncio.Task) -> None:
        if task.cancelled():
            _LOG.debug("APOD refresh cancelled")
        elif task.exception() is not None:
            _LOG.error("APOD refresh failed: %s", task.exception())

    async def shutdown(self) -> None:
        """Cancel a fetch in flight."""
        task = self._inflight
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._inflight = None
