"""
Update Policy Notifier

Compares the installed application version with the versions published on a
remote config endpoint and decides whether, and how, to prompt for an upgrade.
"""

__version__ = "0.1.0"

from .config import UpdaterConfig
from .models import (
    AlertPolicy,
    CheckFrequency,
    CheckOutcome,
    ErrorKind,
    EventType,
    OutcomeStatus,
    UpdaterEvent,
    UserChoice,
    VersionDelta,
)
from .orchestrator import VersionChecker
from .policy import TierPolicies, evaluate
from .scheduler import is_due
from .semver import SemanticVersion, classify, compare

__all__ = [
    "AlertPolicy",
    "CheckFrequency",
    "CheckOutcome",
    "ErrorKind",
    "EventType",
    "OutcomeStatus",
    "SemanticVersion",
    "TierPolicies",
    "UpdaterConfig",
    "UpdaterEvent",
    "UserChoice",
    "VersionChecker",
    "VersionDelta",
    "classify",
    "compare",
    "evaluate",
    "is_due",
]
