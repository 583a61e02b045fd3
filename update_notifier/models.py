"""
Core data models for the update notifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .semver import SemanticVersion


class AlertPolicy(str, Enum):
    """How the user is alerted about an available update."""

    FORCE = "force"      # one button, cannot be dismissed
    OPTION = "option"    # update now or next time
    SKIP = "skip"        # update now, next time, or skip this version
    SILENT = "silent"    # no dialog, only a message for the caller's own UI


class VersionDelta(str, Enum):
    """Severity tier of the difference between two versions."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    REVISION = "revision"
    OLDER = "older"  # remote is not newer than installed

    @property
    def is_update(self) -> bool:
        return self is not VersionDelta.OLDER


class CheckFrequency(IntEnum):
    """Minimum number of calendar days between two remote checks."""

    IMMEDIATE = 0
    DAILY = 1
    WEEKLY = 7


class ErrorKind(str, Enum):
    INVALID_FORMAT = "invalid_format"
    MALFORMED_REMOTE_PAYLOAD = "malformed_remote_payload"
    NETWORK_FAILURE = "network_failure"
    CONFIGURATION_MISSING = "configuration_missing"
    CHECK_ALREADY_IN_PROGRESS = "check_already_in_progress"
    CANCELLED = "cancelled"
    STORAGE_FAILURE = "storage_failure"


class CheckState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    EVALUATING = "evaluating"
    DECIDING = "deciding"
    DONE = "done"
    FAILED = "failed"


class OutcomeStatus(str, Enum):
    UPDATE_REQUIRED = "update_required"
    NO_UPDATE_AVAILABLE = "no_update_available"
    VERSION_SKIPPED = "version_skipped"
    CHECK_SKIPPED_RECENTLY = "check_skipped_recently"
    FAILED = "failed"


class UserChoice(str, Enum):
    UPDATE = "update"
    SKIP = "skip"
    CANCEL = "cancel"


class EventType(str, Enum):
    DIALOG_SHOWN = "dialog_shown"
    USER_LAUNCHED_STORE = "user_launched_store"
    USER_SKIPPED = "user_skipped"
    USER_CANCELLED = "user_cancelled"
    CHECK_FAILED = "check_failed"
    UPDATE_DETECTED_WITHOUT_ALERT = "update_detected_without_alert"
    CHECK_COMPLETED_WITH_DATA = "check_completed_with_data"


@dataclass(frozen=True)
class HttpResponse:
    """Raw answer from the HTTP collaborator."""

    status_code: int
    body: bytes


@dataclass(frozen=True)
class RemoteVersionInfo:
    """Versions published by the remote config endpoint for one platform."""

    force_upgrade_version: Optional["SemanticVersion"] = None
    recommended_version: Optional["SemanticVersion"] = None
    status_code: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.force_upgrade_version is None and self.recommended_version is None


@dataclass(frozen=True)
class PersistedState:
    """Snapshot of the persisted state taken at the start of a check cycle."""

    last_check: Optional[datetime] = None
    skipped_version: Optional["SemanticVersion"] = None


@dataclass(frozen=True)
class UpdateDecision:
    """Result of the policy engine when an update exists."""

    delta: VersionDelta
    policy: AlertPolicy
    target_version: "SemanticVersion"
    forced: bool = False


@dataclass(frozen=True)
class CheckOutcome:
    """Terminal result of exactly one check cycle."""

    status: OutcomeStatus
    delta: Optional[VersionDelta] = None
    policy: Optional[AlertPolicy] = None
    version: Optional["SemanticVersion"] = None
    forced: bool = False
    error_kind: Optional[ErrorKind] = None
    error: Optional[BaseException] = field(default=None, compare=False)

    @classmethod
    def update_required(cls, decision: UpdateDecision) -> "CheckOutcome":
        return cls(
            status=OutcomeStatus.UPDATE_REQUIRED,
            delta=decision.delta,
            policy=decision.policy,
            version=decision.target_version,
            forced=decision.forced,
        )

    @classmethod
    def no_update(cls) -> "CheckOutcome":
        return cls(status=OutcomeStatus.NO_UPDATE_AVAILABLE)

    @classmethod
    def version_skipped(cls, decision: UpdateDecision) -> "CheckOutcome":
        return cls(
            status=OutcomeStatus.VERSION_SKIPPED,
            delta=decision.delta,
            policy=decision.policy,
            version=decision.target_version,
        )

    @classmethod
    def skipped_recently(cls) -> "CheckOutcome":
        return cls(status=OutcomeStatus.CHECK_SKIPPED_RECENTLY)

    @classmethod
    def failed(cls, kind: ErrorKind, error: Optional[BaseException] = None) -> "CheckOutcome":
        return cls(status=OutcomeStatus.FAILED, error_kind=kind, error=error)

    @property
    def is_failure(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "delta": self.delta.value if self.delta else None,
            "policy": self.policy.value if self.policy else None,
            "version": str(self.version) if self.version is not None else None,
            "forced": self.forced,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": str(self.error) if self.error is not None else None,
        }


@dataclass(frozen=True)
class UpdaterEvent:
    """Notification surfaced to the host application."""

    type: EventType
    policy: Optional[AlertPolicy] = None
    version: Optional["SemanticVersion"] = None
    message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[BaseException] = field(default=None, compare=False)
    payload: Optional[Dict[str, Any]] = field(default=None, compare=False)
