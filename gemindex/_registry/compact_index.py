"""RubyGems compact index client.

The compact index serves one plain-text file per gem at ``/info/<name>``:

    created_at: 2024-01-01T00:00:00Z
    ---
    1.0.0 |checksum:abc123
    1.1.0 rack:>= 1.0&< 3,rake:>= 0|checksum:def456,ruby:>= 2.5
    1.1.0-java rack:>= 1.0|checksum:0789ab

Each release line is ``VERSION[-PLATFORM] DEPENDENCIES|METADATA``.
Dependencies are ``name:clause&clause`` items separated by commas; the
metadata section carries the checksum and the ``ruby`` / ``rubygems``
version requirements.
"""

from typing import Iterable, Optional
from urllib.parse import quote

import requests

from ..exceptions import RegistryError
from ..http_client import DEFAULT_TIMEOUT, create_session
from ..logging_config import logger
from .._crawl.models import (
    PACKAGE_MANAGER_PSEUDO_PACKAGE,
    RUNTIME_PSEUDO_PACKAGE,
    UNIVERSAL_PLATFORM,
    Release,
)

COMPACT_INDEX_BASE = "https://rubygems.org"

_METADATA_REQUIREMENTS = (RUNTIME_PSEUDO_PACKAGE, PACKAGE_MANAGER_PSEUDO_PACKAGE)


def _split_clauses(requirement: str) -> tuple[str, ...]:
    return tuple(clause.strip() for clause in requirement.split("&") if clause.strip())


def parse_release_line(gem_name: str, line: str, include_metadata_requirements: bool = False) -> Release:
    """
    Parse one compact index release line.

    Args:
        gem_name: Gem that owns the info file
        line: Release line, e.g. ``1.1.0 rack:>= 1.0&< 3|checksum:abc``
        include_metadata_requirements: Also report the ruby/rubygems
            requirements as dependencies on those pseudo-packages

    Returns:
        Release record
    """
    version_part, _, rest = line.strip().partition(" ")
    version, _, platform = version_part.partition("-")
    dependency_part, _, metadata_part = rest.partition("|")

    dependencies: list[tuple[str, tuple[str, ...]]] = []
    for item in dependency_part.split(","):
        if not item.strip():
            continue
        name, _, requirement = item.partition(":")
        dependencies.append((name.strip(), _split_clauses(requirement)))

    if include_metadata_requirements:
        for item in metadata_part.split(","):
            key, _, requirement = item.partition(":")
            if key.strip() in _METADATA_REQUIREMENTS:
                dependencies.append((key.strip(), _split_clauses(requirement)))

    return Release(
        name=gem_name,
        version=version,
        platform=platform or UNIVERSAL_PLATFORM,
        dependencies=tuple(dependencies),
    )


def parse_info_file(gem_name: str, text: str, include_metadata_requirements: bool = False) -> list[Release]:
    """Parse a whole ``/info/<name>`` document into release records."""
    lines = text.splitlines()
    if "---" in lines:
        lines = lines[lines.index("---") + 1 :]
    return [parse_release_line(gem_name, line, include_metadata_requirements) for line in lines if line.strip()]


class CompactIndexClient:
    """
    Registry client for the RubyGems compact index.

    Queries one gem per request; batch mode is a loop over single queries.
    """

    name = "rubygems compact index"

    def __init__(
        self,
        base_url: str = COMPACT_INDEX_BASE,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT,
        include_metadata_requirements: bool = False,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else create_session(accept="text/plain")
        self.timeout = timeout
        self.include_metadata_requirements = include_metadata_requirements

    def fetch_releases(self, gem_name: str) -> list[Release]:
        url = f"{self.base_url}/info/{quote(gem_name, safe='')}"
        logger.debug(f"Fetching compact index for: {gem_name}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise RegistryError(f"Timeout fetching compact index for {gem_name}") from e
        except requests.exceptions.RequestException as e:
            raise RegistryError(f"Error fetching compact index for {gem_name}: {e}") from e

        if response.status_code == 404:
            logger.warning(f"Gem not found in compact index: {gem_name}")
            return []
        if response.status_code != 200:
            raise RegistryError(f"Failed to fetch compact index for {gem_name}: HTTP {response.status_code}")

        return parse_info_file(gem_name, response.text, self.include_metadata_requirements)

    def fetch_releases_batch(self, names: Iterable[str]) -> list[Release]:
        releases: list[Release] = []
        for gem_name in names:
            releases.extend(self.fetch_releases(gem_name))
        return releases
