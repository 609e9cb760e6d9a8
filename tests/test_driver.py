"""Tests for the driver's setup-complete wiring."""

from __future__ import annotations

import asyncio

import pytest
import ucapi

from tests.conftest import FakeClient, ok_response
from uc_intg_apod import driver
from uc_intg_apod.config import Config
from uc_intg_apod.controller import FetchController
from uc_intg_apod.media_player import ApodMediaPlayer


class FakeEntities:
    def __init__(self) -> None:
        self.entities: list[ucapi.Entity] = []

    def add(self, entity: ucapi.Entity) -> bool:
        self.entities.append(entity)
        return True

    def contains(self, entity_id: str) -> bool:
        return False


class FakeApi:
    def __init__(self) -> None:
        self.available_entities = FakeEntities()
        self.configured_entities = FakeEntities()
        self.device_states: list[ucapi.DeviceStates] = []

    async def set_device_state(self, state: ucapi.DeviceStates) -> None:
        self.device_states.append(state)


class CountingController(FetchController):
    def __init__(self, client: FakeClient) -> None:
        super().__init__(client)
        self.tasks: list[asyncio.Task] = []
        self.start_calls = 0
        self.refresh_calls = 0

    def start(self):
        self.start_calls += 1
        task = super().start()
        if task is not None:
            self.tasks.append(task)
        return task

    def refresh(self):
        self.refresh_calls += 1
        task = super().refresh()
        self.tasks.append(task)
        return task


@pytest.fixture
def wiring(monkeypatch: pytest.MonkeyPatch, config: Config):
    api = FakeApi()
    client = FakeClient(ok_response())
    controller = CountingController(client)
    monkeypatch.setattr(driver, "api", api)
    monkeypatch.setattr(driver, "controller", controller)
    monkeypatch.setattr(driver, "apod_config", config)
    monkeypatch.setattr(driver, "media_player", None)
    return api, controller, client


class TestOnSetupComplete:
    async def test_first_completion_creates_entity_and_fetches_once(self, wiring) -> None:
        api, controller, client = wiring

        await driver.on_setup_complete()
        await asyncio.gather(*controller.tasks)

        assert len(api.available_entities.entities) == 1
        player = api.available_entities.entities[0]
        assert isinstance(player, ApodMediaPlayer)
        assert driver.media_player is player
        assert player._api is api
        assert controller.start_calls == 1
        assert controller.refresh_calls == 0
        assert client.calls == 1
        assert api.device_states == [ucapi.DeviceStates.CONNECTED]

    async def test_second_completion_refetches_without_new_entity(self, wiring) -> None:
        api, controller, client = wiring

        await driver.on_setup_complete()
        await asyncio.gather(*controller.tasks)
        await driver.on_setup_complete()
        await asyncio.gather(*controller.tasks)

        assert len(api.available_entities.entities) == 1
        assert controller.start_calls == 1
        assert controller.refresh_calls == 1
        assert client.calls == 2
        assert api.device_states == [ucapi.DeviceStates.CONNECTED, ucapi.DeviceStates.CONNECTED]

    async def test_without_controller_reports_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        api = FakeApi()
        monkeypatch.setattr(driver, "api", api)
        monkeypatch.setattr(driver, "controller", None)
        monkeypatch.setattr(driver, "media_player", None)

        await driver.on_setup_complete()

        assert api.available_entities.entities == []
        assert api.device_states == [ucapi.DeviceStates.ERROR]
