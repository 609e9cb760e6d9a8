"""Tests for the driver setup flow."""

import ucapi

from tests.conftest import FakeClient, ok_response
from uc_intg_apod.config import Config
from uc_intg_apod.controller import MSG_UNAUTHORIZED
from uc_intg_apod.models import HttpResponse
from uc_intg_apod.setup import ApodSetup


class CompletionSpy:
    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1


def make_setup(config: Config, *results):
    client = FakeClient(*results)
    spy = CompletionSpy()
    return ApodSetup(config, client, spy), client, spy


class TestApodSetup:
    async def test_initial_form(self, config: Config) -> None:
        setup, client, spy = make_setup(config, ok_response())
        action = await setup.setup_handler(ucapi.DriverSetupRequest(reconfigure=False, setup_data={}))

        assert isinstance(action, ucapi.RequestUserInput)
        assert [s["id"] for s in action.settings] == ["api_key"]
        assert client.calls == 0
        assert spy.calls == 0

    async def test_valid_key_completes(self, config: Config) -> None:
        setup, client, spy = make_setup(config, ok_response())
        action = await setup.setup_handler(
            ucapi.DriverSetupRequest(reconfigure=False, setup_data={"api_key": " my-key "})
        )

        assert isinstance(action, ucapi.SetupComplete)
        assert config.api_key == "my-key"
        assert client.calls == 1
        assert spy.calls == 1

    async def test_empty_key_uses_demo_key(self, config: Config) -> None:
        setup, _, _ = make_setup(config, ok_response())
        await setup.setup_handler(ucapi.DriverSetupRequest(reconfigure=False, setup_data={"api_key": ""}))
        assert config.api_key == "DEMO_KEY"

    async def test_rejected_key_asks_again_once(self, config: Config) -> None:
        setup, client, spy = make_setup(config, HttpResponse(status=401, body=""))
        action = await setup.setup_handler(ucapi.UserDataResponse(input_values={"api_key": "bad"}))

        assert isinstance(action, ucapi.RequestUserInput)
        assert MSG_UNAUTHORIZED in action.settings[0]["label"]["en"]
        assert [s["id"] for s in action.settings] == ["api_key", "force_setup"]
        assert client.calls == 1
        assert spy.calls == 0

    async def test_force_setup_skips_validation(self, config: Config) -> None:
        setup, client, spy = make_setup(config, HttpResponse(status=401, body=""))
        action = await setup.setup_handler(
            ucapi.UserDataResponse(input_values={"api_key": "bad", "force_setup": "true"})
        )

        assert isinstance(action, ucapi.SetupComplete)
        assert client.calls == 0
        assert spy.calls == 1

    async def test_abort(self, config: Config) -> None:
        setup, _, _ = make_setup(config, ok_response())
        action = await setup.setup_handler(ucapi.AbortDriverSetup(error=ucapi.IntegrationSetupError.TIMEOUT))
        assert isinstance(action, ucapi.SetupError)
