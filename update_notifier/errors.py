"""
Exceptions raised by the updater.

Every exception carries the ``ErrorKind`` it maps to, so a check cycle can turn
it into a ``CheckOutcome`` without a lookup table.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .models import ErrorKind


class UpdaterError(RuntimeError):
    """Base class for all updater failures."""

    kind: ErrorKind = ErrorKind.NETWORK_FAILURE


class InvalidFormat(UpdaterError, ValueError):
    """A version string could not be parsed."""

    kind = ErrorKind.INVALID_FORMAT

    def __init__(self, value: object, reason: str = "") -> None:
        self.value = value
        message = f"Invalid version string: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class MalformedRemotePayload(UpdaterError):
    """The remote config payload is missing required fields or mistyped."""

    kind = ErrorKind.MALFORMED_REMOTE_PAYLOAD


class NetworkFailure(UpdaterError):
    """Transport error or a non-200 response from the config endpoint."""

    kind = ErrorKind.NETWORK_FAILURE

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class StorageFailure(UpdaterError):
    """The state store could not be read or written."""

    kind = ErrorKind.STORAGE_FAILURE


class ConfigurationMissing(UpdaterError):
    """Required configuration is absent; raised before any network access."""

    kind = ErrorKind.CONFIGURATION_MISSING

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class CheckAlreadyInProgress(UpdaterError):
    kind = ErrorKind.CHECK_ALREADY_IN_PROGRESS

    def __init__(self) -> None:
        super().__init__("A version check is already in progress")


class CheckCancelled(UpdaterError):
    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Version check was cancelled") -> None:
        super().__init__(message)
