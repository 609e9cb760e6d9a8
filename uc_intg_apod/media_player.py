"""
NASA Daily Universe media player entity.

The entity is the screen: it renders the current view instruction into
media player attributes and offers a retry command in the error state.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import base64
import html
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import ucapi
from ucapi import StatusCodes

from uc_intg_apod.config import Config
from uc_intg_apod.controller import FetchController
from uc_intg_apod.models import Failure, Idle, RequestOutcome
from uc_intg_apod.presentation import ContentView, ErrorView, ViewInstruction, select_view

_LOG = logging.getLogger(__name__)

CommandHandler = Callable[[ucapi.Entity, str, dict[str, Any] | None], Awaitable[StatusCodes]]

CMD_RETRY = "RETRY"

SUMMARY_LENGTH = 28


def create_svg_icon(emoji: str, color: str, text: str) -> str:
    """Create SVG icon as base64 data URL."""
    svg_content = f'''<svg width="400" height="300" xmlns="http://www.w3.org/2000/svg">
        <rect width="100%" height="100%" fill="{color}"/>
        <text x="50%" y="35%" font-family="Arial" font-size="60" fill="#fff" text-anchor="middle" dy=".3em">{emoji}</text>
        <text x="50%" y="70%" font-family="Arial" font-size="16" fill="#c9d1d9" text-anchor="middle" dy=".3em">{html.escape(text)}</text>
    </svg>'''

    b64_svg = base64.b64encode(svg_content.encode('utf-8')).decode('utf-8')
    return f"data:image/svg+xml;base64,{b64_svg}"


def summarize_explanation(explanation: str, limit: int = SUMMARY_LENGTH) -> str:
    """First sentence of the explanation, cut at a word boundary."""
    sentences = explanation.replace("Explanation:", "").strip().split('. ')
    first_sentence = sentences[0] if sentences else ""
    if len(first_sentence) <= limit:
        return first_sentence

    short_desc = ""
    for word in first_sentence.split():
        if len(short_desc + " " + word) <= limit:
            short_desc += (" " + word if short_desc else word)
        else:
            break
    return short_desc + "..." if short_desc else first_sentence[:limit] + "..."


def render_attributes(view: ViewInstruction) -> Dict[str, Any]:
    """Media player attributes for a view instruction."""
    attrs = ucapi.media_player.Attributes
    states = ucapi.media_player.States

    if isinstance(view, ErrorView):
        return {
            attrs.STATE: states.ON,
            attrs.MEDIA_IMAGE_URL: create_svg_icon("🚀", "#0d1117", view.headline),
            attrs.MEDIA_TITLE: view.headline,
            attrs.MEDIA_ARTIST: view.message,
            attrs.MEDIA_ALBUM: view.retry_label,
        }

    if isinstance(view, ContentView):
        artist = f"{view.date} • {view.attribution}" if view.attribution else view.date
        if view.image_url:
            image_url = view.image_url
            album = summarize_explanation(view.explanation)
        else:
            image_url = create_svg_icon("🎬", "#0b3d91", view.notice or "")
            album = view.notice or ""
        return {
            attrs.STATE: states.PLAYING,
            attrs.MEDIA_IMAGE_URL: image_url,
            attrs.MEDIA_TITLE: view.title,
            attrs.MEDIA_ARTIST: artist,
            attrs.MEDIA_ALBUM: album,
        }

    return {
        attrs.STATE: states.BUFFERING,
        attrs.MEDIA_IMAGE_URL: create_svg_icon("🌌", "#1a1a2e", view.text),
        attrs.MEDIA_TITLE: view.text,
        attrs.MEDIA_ARTIST: "",
        attrs.MEDIA_ALBUM: "",
    }


class ApodMediaPlayer(ucapi.MediaPlayer):
    """NASA Daily Universe media player."""

    def __init__(
        self,
        config: Config,
        controller: FetchController,
        cmd_handler: CommandHandler | None = None,
    ):
        """Initialize the APOD Media Player entity."""
        self._config = config
        self._controller = controller
        self._api: Optional[ucapi.IntegrationAPI] = None
        self._powered_off = False
        self._retry_task: Optional[asyncio.Task] = None

        features = [
            ucapi.media_player.Features.ON_OFF,
            ucapi.media_player.Features.MEDIA_IMAGE_URL,
            ucapi.media_player.Features.MEDIA_TITLE,
            ucapi.media_player.Features.MEDIA_ARTIST,
            ucapi.media_player.Features.MEDIA_ALBUM,
        ]

        attributes = render_attributes(select_view(controller.outcome))

        super().__init__(
            identifier=config.device_id,
            name=config.device_name,
            features=features,
            attributes=attributes,
            device_class=ucapi.media_player.DeviceClasses.STREAMING_BOX,
            options={ucapi.media_player.Options.SIMPLE_COMMANDS: [CMD_RETRY]},
            cmd_handler=cmd_handler or self.handle_command,
        )

        controller.add_listener(self._on_outcome)
        _LOG.info("APOD Media Player initialized")

    def attach(self, api: ucapi.IntegrationAPI) -> None:
        """Set the integration API used to push attribute updates."""
        self._api = api

    async def handle_command(
        self,
        entity: ucapi.Entity,
        cmd_id: str,
        params: dict[str, Any] | None = None,
        websocket: Any = None,
    ) -> StatusCodes:
        """Handle media player commands."""
        _LOG.debug("COMMAND: %s", cmd_id)

        try:
            if cmd_id == CMD_RETRY:
                return self._cmd_retry()
            elif cmd_id == ucapi.media_player.Commands.ON:
                return self._cmd_on()
            elif cmd_id == ucapi.media_player.Commands.OFF:
                return self._cmd_off()
            else:
                _LOG.warning("Unexpected command: %s", cmd_id)
                return StatusCodes.NOT_IMPLEMENTED

        except Exception as ex:
            _LOG.error("Error handling command %s: %s", cmd_id, ex)
            return StatusCodes.SERVER_ERROR

    def _cmd_retry(self) -> StatusCodes:
        """Retry is only available on the error screen."""
        if not isinstance(self._controller.outcome, Failure):
            _LOG.info("Retry ignored: no error to retry")
            return StatusCodes.BAD_REQUEST

        self._retry_task = asyncio.create_task(self._controller.retry())
        return StatusCodes.OK

    def _cmd_on(self) -> StatusCodes:
        """Turn on."""
        self._powered_off = False
        self._render(self._controller.outcome)
        if isinstance(self._controller.outcome, Idle):
            self._controller.start()
        return StatusCodes.OK

    def _cmd_off(self) -> StatusCodes:
        """Turn off."""
        self._powered_off = True
        self.attributes[ucapi.media_player.Attributes.STATE] = ucapi.media_player.States.OFF
        self._push_update()
        return StatusCodes.OK

    def _on_outcome(self, outcome: RequestOutcome) -> None:
        self._render(outcome)

    def _render(self, outcome: RequestOutcome) -> None:
        """Render an outcome and push it to the remote."""
        new_attributes = render_attributes(select_view(outcome))
        if self._powered_off:
            new_attributes.pop(ucapi.media_player.Attributes.STATE)

        self.attributes.update(new_attributes)
        _LOG.info("UPDATE: %s", self.attributes[ucapi.media_player.Attributes.MEDIA_TITLE])
        self._push_update()

    def _push_update(self) -> None:
        """Push state update to the remote."""
        try:
            if self._api and self._api.configured_entities.contains(self.id):
                self._api.configured_entities.update_attributes(self.id, self.attributes)
        except Exception as ex:
            _LOG.error("Error pushing update: %s", ex)

    async def push_initial_state(self) -> None:
        """Push initial state."""
        _LOG.debug("Pushing initial state to remote")
        self._controller.add_listener(self._on_outcome)
        self._render(self._controller.outcome)

    async def shutdown(self) -> None:
        """Shutdown the media player and cleanup."""
        _LOG.debug("Shutting down APOD media player")
        self._controller.remove_listener(self._on_outcome)
        if self._retry_task and not self._retry_task.done():
            self._retry_task.cancel()
