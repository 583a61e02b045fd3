"""
Decoding of the remote config payload.

Expected shape::

    {
      "status": {"code": 200},
      "data": {
        "app": {
          "appUpgrade": {
            "iOS": {"forceUpgradeVersion": "2.0.0", "recommendedVersion": "1.3.0"}
          }
        }
      }
    }
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from .errors import InvalidFormat, MalformedRemotePayload
from .models import RemoteVersionInfo
from .semver import SemanticVersion


logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = "iOS"

FORCE_UPGRADE_KEY = "forceUpgradeVersion"
RECOMMENDED_KEY = "recommendedVersion"


def decode_body(body: bytes) -> Dict[str, Any]:
    """Decode a response body into a JSON object."""
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedRemotePayload(f"Response body is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedRemotePayload(
            f"Expected a JSON object, got {type(data).__name__}"
        )
    return data


def _optional_object(container: Dict[str, Any], key: str, path: str) -> Optional[Dict[str, Any]]:
    value = container.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise MalformedRemotePayload(f"'{path}' must be an object")
    return value


def _version_field(block: Dict[str, Any], key: str) -> Optional[SemanticVersion]:
    raw = block.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise MalformedRemotePayload(f"'{key}' must be a string, got {type(raw).__name__}")
    if not raw.strip():
        return None
    try:
        return SemanticVersion.parse(raw.strip())
    except InvalidFormat as e:
        raise MalformedRemotePayload(f"'{key}' is not a valid version: {raw!r}") from e


def parse_remote_payload(payload: Dict[str, Any], platform: str = DEFAULT_PLATFORM) -> RemoteVersionInfo:
    """Extract the force-upgrade and recommended versions for ``platform``.

    A payload without an ``app.appUpgrade.<platform>`` block, or whose block
    names neither version, yields an empty ``RemoteVersionInfo``. Missing
    status/data sections or mistyped fields raise ``MalformedRemotePayload``.
    """
    status = payload.get("status")
    if not isinstance(status, dict):
        raise MalformedRemotePayload("'status' must be an object")
    code = status.get("code")
    if not isinstance(code, int) or isinstance(code, bool):
        raise MalformedRemotePayload("'status.code' must be an integer")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise MalformedRemotePayload("'data' must be an object")

    app = _optional_object(data, "app", "data.app")
    upgrade = _optional_object(app, "appUpgrade", "data.app.appUpgrade") if app else None
    block = (
        _optional_object(upgrade, platform, f"data.app.appUpgrade.{platform}")
        if upgrade else None
    )
    if block is None:
        logger.debug("No upgrade block for platform %s", platform)
        return RemoteVersionInfo(status_code=code)

    return RemoteVersionInfo(
        force_upgrade_version=_version_field(block, FORCE_UPGRADE_KEY),
        recommended_version=_version_field(block, RECOMMENDED_KEY),
        status_code=code,
    )
