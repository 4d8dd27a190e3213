"""Client for the Bundler Dependency API.

``GET /api/v1/dependencies.json?gems=a,b`` answers for many gems at once
with a flat JSON list of release records:

    [{"name": "rack", "number": "2.2.3", "platform": "ruby",
      "dependencies": [["webrick", ">= 1.0, < 2"]]}]

rubygems.org no longer serves this endpoint, but mirrors implementing the
Bundler API still do.
"""

from typing import Any, Iterable, Optional
from urllib.parse import quote

import requests

from ..exceptions import RegistryError
from ..http_client import DEFAULT_TIMEOUT, create_session
from ..logging_config import logger
from .._crawl.models import UNIVERSAL_PLATFORM, Release

DEPENDENCY_API_BASE = "https://bundler.rubygems.org"
DEPENDENCY_API_PATH = "/api/v1/dependencies.json"


def parse_dependency_record(record: dict[str, Any]) -> Release:
    """
    Convert one Dependency API record into a Release.

    Requirement strings are split into their comma-separated clauses.
    """
    dependencies = tuple(
        (name, tuple(clause.strip() for clause in requirement.split(",") if clause.strip()))
        for name, requirement in record.get("dependencies") or []
    )
    return Release(
        name=record["name"],
        version=record["number"],
        platform=record.get("platform") or UNIVERSAL_PLATFORM,
        dependencies=dependencies,
    )


class DependencyApiClient:
    """
    Registry client for the Bundler Dependency API.

    Batch mode is native: one request answers for every requested gem.
    """

    name = "bundler dependency api"

    def __init__(
        self,
        base_url: str = DEPENDENCY_API_BASE,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else create_session(accept="application/json")
        self.timeout = timeout

    def fetch_releases(self, gem_name: str) -> list[Release]:
        return self.fetch_releases_batch([gem_name])

    def fetch_releases_batch(self, names: Iterable[str]) -> list[Release]:
        names = list(names)
        if not names:
            return []

        gems = ",".join(quote(name, safe="") for name in names)
        url = f"{self.base_url}{DEPENDENCY_API_PATH}?gems={gems}"
        logger.debug(f"Fetching dependency records for {len(names)} gem(s)")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise RegistryError(f"Timeout fetching dependency records for {len(names)} gem(s)") from e
        except requests.exceptions.RequestException as e:
            raise RegistryError(f"Error fetching dependency records: {e}") from e

        if response.status_code != 200:
            raise RegistryError(f"Failed to fetch dependency records: HTTP {response.status_code}")

        try:
            records = response.json()
        except ValueError as e:
            raise RegistryError(f"JSON decode error for dependency records: {e}") from e

        try:
            return [parse_dependency_record(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            raise RegistryError(f"Malformed dependency record: {e}") from e
