from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable

from sellfast.core.config import settings
from sellfast.core.telemetry import setup_wizard_telemetry
from sellfast.wizard.geolocation import LocationService, PositionProvider, ReverseGeocoder
from sellfast.wizard.persistence import FilePersistence, ProgressPersistence, RedisPersistence
from sellfast.wizard.transport import HttpClient, MarketplaceHttpClient

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str
    name: str | None = None
    session_token: str | None = None


AuthListener = Callable[[SessionUser | None], Awaitable[None] | None]


class AuthEvents:
    """The host pushes login/logout here; the wizard subscribes."""

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def publish(self, user: SessionUser | None) -> None:
        for listener in list(self._listeners):
            res = listener(user)
            if inspect.isawaitable(res):
                await res


@dataclass
class WizardContext:
    """Everything the wizard needs from its host, passed in explicitly."""

    http: HttpClient
    persistence: ProgressPersistence
    location: LocationService | None = None
    auth: AuthEvents = field(default_factory=AuthEvents)
    current_user: SessionUser | None = None

    auto_advance_delay: float = settings.auto_advance_delay_seconds
    max_image_bytes: int = settings.max_image_bytes
    max_images: int = settings.max_images


def _location_service(provider: PositionProvider | None) -> LocationService:
    key = settings.google_api_key.get_secret_value() if settings.google_api_key else None
    return LocationService(provider, ReverseGeocoder(key))


def page_context(
    *,
    storage_dir: str | Path,
    session_token: str | None = None,
    current_user: SessionUser | None = None,
    position_provider: PositionProvider | None = None,
) -> WizardContext:
    """Full-page host: cookie session, progress kept in a local file."""
    setup_wizard_telemetry()
    return WizardContext(
        http=MarketplaceHttpClient(base_url=settings.api_base_url, auth_mode="cookie", session_token=session_token),
        persistence=FilePersistence(storage_dir),
        location=_location_service(position_provider),
        current_user=current_user,
    )


def widget_context(
    *,
    owner: str,
    session_token: str | None = None,
    current_user: SessionUser | None = None,
    position_provider: PositionProvider | None = None,
) -> WizardContext:
    """Embedded widget host: bearer token, progress in the shared Redis store."""
    setup_wizard_telemetry()
    return WizardContext(
        http=MarketplaceHttpClient(base_url=settings.api_base_url, auth_mode="bearer", session_token=session_token),
        persistence=RedisPersistence(settings.redis_url, owner=owner),
        location=_location_service(position_provider),
        current_user=current_user,
    )
