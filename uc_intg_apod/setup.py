"""
Setup flow for NASA Daily Universe integration with API key validation.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List

import ucapi

from uc_intg_apod.client import ApodClient
from uc_intg_apod.config import DEMO_API_KEY, Config
from uc_intg_apod.controller import classify_result
from uc_intg_apod.models import Failure

_LOG = logging.getLogger(__name__)


class ApodSetup:
    """APOD integration setup handler."""

    def __init__(self, config: Config, client: ApodClient, setup_complete_callback: Callable[[], Awaitable[None]]):
        """Initialize setup handler."""
        self._config = config
        self._client = client
        self._setup_complete_callback = setup_complete_callback

    async def setup_handler(self, driver_setup_request: ucapi.SetupDriver) -> ucapi.SetupAction:
        """
        Handle driver setup requests.

        :param driver_setup_request: setup request from Remote Two
        :return: setup action response
        """
        _LOG.debug("Setup handler called: %s", type(driver_setup_request).__name__)

        if isinstance(driver_setup_request, ucapi.DriverSetupRequest):
            if driver_setup_request.setup_data and "api_key" in driver_setup_request.setup_data:
                return await self._handle_api_key_input(driver_setup_request.setup_data)
            return self._api_key_form()
        elif isinstance(driver_setup_request, ucapi.UserDataResponse):
            return await self._handle_api_key_input(driver_setup_request.input_values)
        elif isinstance(driver_setup_request, ucapi.UserConfirmationResponse):
            return await self._handle_user_confirmation_response(driver_setup_request)
        elif isinstance(driver_setup_request, ucapi.AbortDriverSetup):
            _LOG.debug("Setup aborted: %s", driver_setup_request.error)
            return ucapi.SetupError(driver_setup_request.error)
        else:
            _LOG.error("Unknown setup request type: %s", type(driver_setup_request))
            return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)

    def _api_key_form(self, error: str | None = None, api_key: str | None = None) -> ucapi.RequestUserInput:
        """Form asking for the NASA API key; shows the last error if any."""
        if api_key is None:
            api_key = self._config.stored_api_key

        settings: List[Dict[str, Any]] = [
            {
                "id": "api_key",
                "label": {"en": f"⚠️ {error}\n\nTry a different API key or leave empty:" if error
                          else f"NASA API Key (leave empty to use {DEMO_API_KEY} with 30 req/hour limit)"},
                "field": {"text": {"value": api_key, "placeholder": "Get free key at api.nasa.gov"}},
            }
        ]
        if error:
            settings.append({
                "id": "force_setup",
                "label": {"en": "Force setup completion (ignore API errors)"},
                "field": {"checkbox": {"value": False}},
            })

        title = "NASA API Connection Issue" if error else "NASA Daily Universe Configuration"
        return ucapi.RequestUserInput(title=title, settings=settings)

    async def _handle_api_key_input(self, values: Dict[str, Any]) -> ucapi.SetupAction:
        """Save the submitted key and validate it with one APOD request."""
        api_key = str(values.get("api_key") or "").strip()
        force_setup = values.get("force_setup") in (True, "true", "True")

        # Empty stays empty so the environment key or DEMO_KEY applies
        self._config.update({"api_key": api_key})

        if force_setup:
            _LOG.info("Setup forced by user - bypassing API validation")
            return await self._complete()

        outcome = classify_result(await self._client.get_apod())
        if isinstance(outcome, Failure):
            _LOG.warning("API validation failed: %s", outcome.message)
            return self._api_key_form(error=outcome.message, api_key=api_key)

        _LOG.info("Setup validation passed: %s", outcome.payload.title[:40])
        return await self._complete()

    async def _handle_user_confirmation_response(self, response: ucapi.UserConfirmationResponse) -> ucapi.SetupAction:
        """Handle user confirmation response."""
        _LOG.debug("User confirmation: %s", response.confirm)

        if response.confirm:
            return await self._complete()
        return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)

    async def _complete(self) -> ucapi.SetupAction:
        if self._setup_complete_callback:
            await self._setup_complete_callback()
        return ucapi.SetupComplete()
