"""
HTTP collaborator backed by requests.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

import requests

from .errors import NetworkFailure
from .models import HttpResponse


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class RequestsHttpClient:
    """Send config requests through a shared ``requests.Session``."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(
        self,
        url: str,
        headers: Mapping[str, str],
        method: str = "POST",
        params: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        logger.info("Requesting version config from %s", url)
        try:
            with self.session.request(
                method,
                url,
                headers=dict(headers),
                params=dict(params) if params else None,
                timeout=self.timeout,
            ) as response:
                return HttpResponse(status_code=response.status_code, body=response.content)
        except requests.RequestException as e:
            raise NetworkFailure(f"Request to {url} failed: {e}") from e
