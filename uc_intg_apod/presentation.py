"""
View selection for APOD outcomes.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

from dataclasses import dataclass
from typing import Optional, Union

from uc_intg_apod.models import Failure, MediaType, RequestOutcome, Success

LOADING_TEXT = "Cargando imagen del día..."
ERROR_HEADLINE = "Houston, tenemos un problema 🚀"
RETRY_LABEL = "Reintentar"
VIDEO_NOTICE = "El contenido de hoy es un video, no se puede mostrar aquí."


@dataclass(frozen=True)
class ProgressView:
    text: str = LOADING_TEXT


@dataclass(frozen=True)
class ErrorView:
    message: str
    headline: str = ERROR_HEADLINE
    retry_label: str = RETRY_LABEL


@dataclass(frozen=True)
class ContentView:
    """
    Day's entry ready for display.

    Exactly one of image_url and notice is set.
    """

    title: str
    date: str
    explanation: str
    image_url: Optional[str] = None
    notice: Optional[str] = None
    attribution: Optional[str] = None


ViewInstruction = Union[ProgressView, ErrorView, ContentView]


def select_view(outcome: RequestOutcome) -> ViewInstruction:
    """Pick what to show for an outcome. Total and side-effect free."""
    if isinstance(outcome, Failure):
        return ErrorView(message=outcome.message)

    if isinstance(outcome, Success):
        record = outcome.payload
        is_image = record.media_type is MediaType.IMAGE
        return ContentView(
            title=record.title,
            date=record.date,
            explanation=record.explanation,
            image_url=record.url if is_image else None,
            notice=None if is_image else VIDEO_NOTICE,
            attribution=f"© {record.copyright}" if record.copyright else None,
        )

    return ProgressView()
