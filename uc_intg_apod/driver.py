#!/usr/bin/env python3
"""
NASA Daily Universe integration driver.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""
import asyncio
import logging
import os
import signal
from typing import Optional

import ucapi

from uc_intg_apod.client import ApodClient
from uc_intg_apod.config import Config
from uc_intg_apod.controller import FetchController
from uc_intg_apod.media_player import ApodMediaPlayer
from uc_intg_apod.setup import ApodSetup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)8s | %(name)s | %(message)s"
)
logging.getLogger("aiohttp").setLevel(logging.WARNING)

_LOG = logging.getLogger(__name__)

loop = asyncio.new_event_loop()
asyncio.set_event_loop(loop)
api: Optional[ucapi.IntegrationAPI] = None
apod_client: Optional[ApodClient] = None
apod_config: Optional[Config] = None
controller: Optional[FetchController] = None
media_player: Optional[ApodMediaPlayer] = None


async def on_setup_complete():
    """Callback executed when driver setup is complete."""
    global media_player
    _LOG.info("Setup complete. Creating entities...")

    if not api or not controller:
        _LOG.error("Cannot create entities: API or controller not initialized.")
        if api:
            await api.set_device_state(ucapi.DeviceStates.ERROR)
        return

    try:
        if media_player:
            _LOG.info("Media player exists, fetching APOD with the new configuration")
            controller.refresh()
        else:
            _LOG.info("Creating NASA Daily Universe media player entity")
            media_player = ApodMediaPlayer(apod_config, controller)
            media_player.attach(api)
            api.available_entities.add(media_player)
            _LOG.info("Added media player entity: %s", media_player.id)

            # The one automatic fetch at startup
            controller.start()

        await api.set_device_state(ucapi.DeviceStates.CONNECTED)

    except Exception as e:
        _LOG.error("Error creating entities: %s", e, exc_info=True)
        await api.set_device_state(ucapi.DeviceStates.ERROR)


async def on_r2_connect():
    """Handle Remote connection."""
    _LOG.info("Remote connected.")

    if api and media_player:
        await api.set_device_state(ucapi.DeviceStates.CONNECTED)
    else:
        _LOG.info("Integration not configured yet.")


async def on_disconnect():
    """Handle Remote disconnection."""
    _LOG.info("Remote disconnected.")

    if media_player:
        await media_player.shutdown()


async def on_subscribe_entities(entity_ids: list[str]):
    """Handle entity subscription."""
    _LOG.info("Entities subscribed: %s. Initializing entities...", entity_ids)

    for entity_id in entity_ids:
        if media_player and entity_id == media_player.id:
            try:
                await media_player.push_initial_state()
                _LOG.info("NASA Daily Universe media player ready")
            except Exception as ex:
                _LOG.error("Error initializing media player: %s", ex, exc_info=True)


async def on_unsubscribe_entities(entity_ids: list[str]):
    """Handle entity unsubscription from Remote."""
    _LOG.info("Remote unsubscribed from entities: %s", entity_ids)

    for entity_id in entity_ids:
        if media_player and entity_id == media_player.id:
            await media_player.shutdown()


async def init_integration():
    """Initialize the integration objects and API."""
    global api, apod_client, apod_config, controller

    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    driver_json_path = os.path.join(project_root, "driver.json")

    if not os.path.exists(driver_json_path):
        driver_json_path = "driver.json"
        if not os.path.exists(driver_json_path):
            _LOG.error("Cannot find driver.json at %s", driver_json_path)
            raise FileNotFoundError("driver.json not found")

    _LOG.info("Using driver.json from: %s", driver_json_path)

    api = ucapi.IntegrationAPI(loop)

    config_path = os.path.join(api.config_dir_path, "config.json")
    _LOG.info("Using config file: %s", config_path)
    apod_config = Config(config_path)

    apod_client = ApodClient(apod_config)
    controller = FetchController(apod_client)

    setup_handler = ApodSetup(apod_config, apod_client, on_setup_complete)

    await api.init(driver_json_path, setup_handler.setup_handler)

    api.add_listener(ucapi.Events.CONNECT, on_r2_connect)
    api.add_listener(ucapi.Events.DISCONNECT, on_disconnect)
    api.add_listener(ucapi.Events.SUBSCRIBE_ENTITIES, on_subscribe_entities)
    api.add_listener(ucapi.Events.UNSUBSCRIBE_ENTITIES, on_unsubscribe_entities)

    _LOG.info("Integration API initialized successfully")


async def main():
    """Main entry point."""
    _LOG.info("Starting NASA Daily Universe Integration Driver")

    try:
        await init_integration()

        # DEMO_KEY fallback means there is always a usable key
        await on_setup_complete()

        _LOG.info("Integration is running. Press Ctrl+C to stop.")

    except Exception as e:
        _LOG.error("Failed to start integration: %s", e, exc_info=True)
        if api:
            await api.set_device_state(ucapi.DeviceStates.ERROR)
        raise


def shutdown_handler(signum, frame):
    """Handle termination signals for graceful shutdown."""
    _LOG.warning("Received signal %s. Shutting down...", signum)

    async def cleanup():
        try:
            if media_player:
                _LOG.info("Shutting down media player...")
                await media_player.shutdown()

            if controller:
                await controller.shutdown()

            if apod_client:
                _LOG.info("Closing APOD client...")
                await apod_client.close()

            _LOG.info("Cancelling remaining tasks...")
            tasks = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
            for task in tasks:
                task.cancel()

            await asyncio.gather(*tasks, return_exceptions=True)

        except Exception as e:
            _LOG.error("Error during cleanup: %s", e)
        finally:
            _LOG.info("Stopping event loop...")
            loop.stop()

    loop.create_task(cleanup())


def run():
    """Run the driver until stopped by a signal."""
    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)

    try:
        loop.run_until_complete(main())
        loop.run_forever()
    except (KeyboardInterrupt, asyncio.CancelledError):
        _LOG.info("Driver stopped.")
    finally:
        if loop and not loop.is_closed():
            _LOG.info("Closing event loop...")
            loop.close()


if __name__ == "__main__":
    run()
