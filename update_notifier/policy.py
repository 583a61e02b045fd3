"""
Update policy engine: decide whether an update exists and how to alert.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import MalformedRemotePayload
from .models import AlertPolicy, RemoteVersionInfo, UpdateDecision, VersionDelta
from .semver import SemanticVersion, classify


logger = logging.getLogger(__name__)


@dataclass
class TierPolicies:
    """Alert policy per version tier.

    ``set_global_policy`` overwrites all four tiers at once; a per-tier value
    set earlier does not survive it.
    """

    major: AlertPolicy = AlertPolicy.OPTION
    minor: AlertPolicy = AlertPolicy.OPTION
    patch: AlertPolicy = AlertPolicy.OPTION
    revision: AlertPolicy = AlertPolicy.OPTION

    @classmethod
    def uniform(cls, policy: AlertPolicy) -> "TierPolicies":
        return cls(major=policy, minor=policy, patch=policy, revision=policy)

    def set_global_policy(self, policy: AlertPolicy) -> None:
        self.major = policy
        self.minor = policy
        self.patch = policy
        self.revision = policy

    def for_tier(self, delta: VersionDelta) -> AlertPolicy:
        if delta is VersionDelta.MAJOR:
            return self.major
        if delta is VersionDelta.MINOR:
            return self.minor
        if delta is VersionDelta.PATCH:
            return self.patch
        if delta is VersionDelta.REVISION:
            return self.revision
        raise ValueError(f"No alert policy for tier: {delta}")


def evaluate(
    installed: SemanticVersion,
    remote: RemoteVersionInfo,
    tier_policies: TierPolicies,
    override: Optional[AlertPolicy] = None,
) -> Optional[UpdateDecision]:
    """Evaluate remote version info against the installed version.

    A force-upgrade version newer than ``installed`` wins and always alerts
    with ``FORCE``. Otherwise a newer recommended version is alerted with the
    tier policy, or with ``override`` when one is configured. Returns ``None``
    when neither remote version is newer.

    Raises:
        MalformedRemotePayload: if the payload carried no version at all.
    """
    if remote.is_empty:
        raise MalformedRemotePayload("Remote payload contains no version information")

    if remote.force_upgrade_version is not None:
        delta = classify(installed, remote.force_upgrade_version)
        if delta.is_update:
            logger.debug(
                "Force upgrade %s -> %s (%s)",
                installed, remote.force_upgrade_version, delta.value,
            )
            return UpdateDecision(
                delta=delta,
                policy=AlertPolicy.FORCE,
                target_version=remote.force_upgrade_version,
                forced=True,
            )

    if remote.recommended_version is not None:
        delta = classify(installed, remote.recommended_version)
        if delta.is_update:
            policy = override or tier_policies.for_tier(delta)
            logger.debug(
                "Recommended upgrade %s -> %s (%s, %s)",
                installed, remote.recommended_version, delta.value, policy.value,
            )
            return UpdateDecision(
                delta=delta,
                policy=policy,
                target_version=remote.recommended_version,
            )

    return None
