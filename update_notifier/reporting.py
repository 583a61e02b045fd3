"""
Reporting and export utilities.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from .models import CheckOutcome


logger = logging.getLogger(__name__)


def print_summary(
    bundle_id: str,
    installed_version: str,
    frequency: str,
    outcome: CheckOutcome,
) -> None:
    logger.info("=" * 60)
    logger.info("VERSION CHECK")
    logger.info("=" * 60)
    logger.info("Bundle: %s", bundle_id)
    logger.info("Installed: %s", installed_version)
    logger.info("Frequency: %s", frequency)
    logger.info("-" * 60)
    logger.info("Outcome: %s", outcome.status.value)
    if outcome.version is not None:
        logger.info("Remote version: %s (%s)", outcome.version, outcome.delta.value)
        logger.info("Alert: %s%s", outcome.policy.value, " (forced)" if outcome.forced else "")
    if outcome.is_failure:
        logger.info("Error: %s: %s", outcome.error_kind.value, outcome.error)
    logger.info("=" * 60)


def outcome_record(
    bundle_id: str,
    outcome: CheckOutcome,
    checked_at: Optional[datetime] = None,
) -> Dict:
    record = {"bundle_id": bundle_id}
    record.update(outcome.to_dict())
    if checked_at is not None:
        record["checked_at"] = checked_at.isoformat()
    return record


def save_outcome_json(
    outcome: CheckOutcome,
    output_dir: Path,
    bundle_id: str,
    checked_at: Optional[datetime] = None,
) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    outcome_file = output_dir / f"{bundle_id}_outcome.json"
    with open(outcome_file, 'w') as f:
        json.dump(outcome_record(bundle_id, outcome, checked_at), f, indent=2, default=str)
    return outcome_file
