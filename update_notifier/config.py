"""
Updater configuration supplied by the host application.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationMissing
from .models import AlertPolicy
from .payload import DEFAULT_PLATFORM
from .semver import SemanticVersion
from .transport import DEFAULT_TIMEOUT


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("bundle_id", "protocol", "host", "path")

JSON_HEADERS = {
    "Content-Type": "application/json; charset=utf-8",
    "Accept": "application/json",
}


@dataclass
class UpdaterConfig:
    """Read-only inputs for a version check.

    Either ``installed_version`` or ``distribution`` (an installed Python
    distribution whose version is looked up) must be given.
    """

    bundle_id: str = ""
    protocol: str = ""
    host: str = ""
    path: str = ""
    installed_version: Optional[str] = None
    distribution: Optional[str] = None
    app_name: str = ""
    country_code: Optional[str] = None
    forced_alert_policy: Optional[AlertPolicy] = None
    platform: str = DEFAULT_PLATFORM
    method: str = "POST"
    timeout: float = DEFAULT_TIMEOUT
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.forced_alert_policy, str):
            self.forced_alert_policy = AlertPolicy(self.forced_alert_policy.lower())
        if not self.app_name:
            self.app_name = self.bundle_id

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UpdaterConfig":
        known = {f.name for f in fields(cls)}
        ignored = sorted(k for k in data if k not in known)
        if ignored:
            logger.debug("Ignoring unknown config keys: %s", ", ".join(ignored))
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def load(cls, path: Path) -> "UpdaterConfig":
        """Load configuration from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        logger.info("Loaded updater config from %s", path)
        return cls.from_mapping(data)

    def validate(self) -> None:
        """Raise ``ConfigurationMissing`` if any required field is empty."""
        missing = [name for name in REQUIRED_FIELDS if not getattr(self, name)]
        if not self.installed_version and not self.distribution:
            missing.append("installed_version")
        if missing:
            raise ConfigurationMissing(missing)

    def endpoint_url(self) -> str:
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        return f"{self.protocol}://{self.host}{path}"

    def request_headers(self) -> Dict[str, str]:
        headers = dict(self.headers)
        headers.update(JSON_HEADERS)
        return headers

    def query_params(self) -> Optional[Dict[str, str]]:
        if self.country_code:
            return {"country": self.country_code}
        return None

    def resolve_installed_version(self) -> SemanticVersion:
        """Return the installed version as a ``SemanticVersion``.

        An explicit ``installed_version`` is parsed strictly; a version read
        from an installed distribution is reduced to its numeric release.
        """
        if self.installed_version:
            return SemanticVersion.parse(self.installed_version)
        if self.distribution:
            try:
                raw = importlib_metadata.version(self.distribution)
            except importlib_metadata.PackageNotFoundError as e:
                raise ConfigurationMissing(["installed_version"]) from e
            logger.debug("Installed version of %s is %s", self.distribution, raw)
            return SemanticVersion.coerce(raw)
        raise ConfigurationMissing(["installed_version"])
