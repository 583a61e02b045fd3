"""
Interfaces for the collaborators a version check depends on.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Mapping, Optional, Protocol

from .models import HttpResponse, UserChoice

if TYPE_CHECKING:
    from .presentation import UpdatePrompt


class HttpClient(Protocol):
    """Perform one request against the config endpoint.

    Implementations raise ``NetworkFailure`` on transport errors and may raise
    ``CheckCancelled`` when the host aborts the request.
    """

    def fetch(
        self,
        url: str,
        headers: Mapping[str, str],
        method: str = "POST",
        params: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        ...


class StateStore(Protocol):
    """Get/set access to the persisted check state."""

    def get_last_check_timestamp(self) -> Optional[datetime]:
        ...

    def set_last_check_timestamp(self, value: datetime) -> None:
        ...

    def get_skipped_version(self) -> Optional[str]:
        ...

    def set_skipped_version(self, value: Optional[str]) -> None:
        ...


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class Presenter(Protocol):
    """Render an update prompt and report the user's choice."""

    def present(self, prompt: "UpdatePrompt") -> UserChoice:
        ...
