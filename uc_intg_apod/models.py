"""
Data model for APOD fetch outcomes.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union


class MediaType(Enum):
    """Provider classification of the day's content."""

    IMAGE = "image"
    VIDEO = "video"

    @classmethod
    def from_provider(cls, value: Any) -> "MediaType":
        """Anything other than "image" is shown as a video."""
        return cls.IMAGE if value == "image" else cls.VIDEO


@dataclass(frozen=True)
class ApodRecord:
    """Astronomy Picture of the Day entry as received from NASA."""

    title: str
    date: str
    media_type: MediaType
    url: Optional[str]
    explanation: str
    copyright: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> "ApodRecord":
        """
        Build a record from the decoded APOD response.

        :raises ValueError: if the payload does not have the APOD shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        for field in ("title", "date", "explanation"):
            if not isinstance(data.get(field), str):
                raise ValueError(f"missing or invalid field '{field}'")

        datetime.strptime(data["date"], "%Y-%m-%d")

        media_type = MediaType.from_provider(data.get("media_type"))
        url = data.get("url")
        if url is not None and not isinstance(url, str):
            raise ValueError("invalid field 'url'")
        if media_type is MediaType.IMAGE and not url:
            raise ValueError("image entry without 'url'")

        copyright_ = data.get("copyright")
        if copyright_ is not None and not isinstance(copyright_, str):
            raise ValueError("invalid field 'copyright'")
        if copyright_ is not None:
            copyright_ = copyright_.strip() or None

        return cls(
            title=data["title"],
            date=data["date"],
            media_type=media_type,
            url=url or None,
            explanation=data["explanation"],
            copyright=copyright_,
        )


# Error kinds

@dataclass(frozen=True)
class Unauthorized:
    """HTTP 401."""


@dataclass(frozen=True)
class NotFound:
    """HTTP 404."""


@dataclass(frozen=True)
class ServerError:
    """Any other non-2xx HTTP status."""

    code: int


@dataclass(frozen=True)
class NetworkUnreachable:
    """Request was sent but no response came back."""


@dataclass(frozen=True)
class Unexpected:
    """Any other failure, including a malformed body."""

    detail: str


ErrorKind = Union[Unauthorized, NotFound, ServerError, NetworkUnreachable, Unexpected]


# Request outcomes

@dataclass(frozen=True)
class Idle:
    """No fetch has been started yet."""


@dataclass(frozen=True)
class Loading:
    """A fetch is in flight."""


@dataclass(frozen=True)
class Success:
    payload: ApodRecord


@dataclass(frozen=True)
class Failure:
    message: str
    kind: ErrorKind


RequestOutcome = Union[Idle, Loading, Success, Failure]


# HTTP client results

@dataclass(frozen=True)
class HttpResponse:
    """A response was received, whatever its status."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class NoResponse:
    """Transport failure with no response (DNS, refused, timeout)."""

    detail: str


@dataclass(frozen=True)
class RequestError:
    """Local failure while issuing or reading the request."""

    detail: str


HttpResult = Union[HttpResponse, NoResponse, RequestError]


def outcome_name(outcome: RequestOutcome) -> str:
    """Short name of an outcome for logging."""
    return type(outcome).__name__.lower()
