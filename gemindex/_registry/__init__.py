"""RubyGems registry clients.

Supported APIs:
- compact-index: ``/info/<name>`` text files (rubygems.org default)
- dependency-api: Bundler ``/api/v1/dependencies.json`` batch endpoint
"""

from typing import Optional

from ..exceptions import ConfigurationError
from ..http_client import DEFAULT_TIMEOUT
from .._crawl.protocol import RegistryClient
from .compact_index import COMPACT_INDEX_BASE, CompactIndexClient, parse_info_file, parse_release_line
from .dependency_api import DEPENDENCY_API_BASE, DependencyApiClient, parse_dependency_record

COMPACT_INDEX = "compact-index"
DEPENDENCY_API = "dependency-api"
REGISTRY_APIS = (COMPACT_INDEX, DEPENDENCY_API)


def create_client(
    api: str = COMPACT_INDEX,
    base_url: Optional[str] = None,
    timeout: int = DEFAULT_TIMEOUT,
    include_metadata_requirements: bool = False,
) -> RegistryClient:
    """
    Create the registry client for an API kind.

    Args:
        api: One of REGISTRY_APIS
        base_url: Registry root; defaults to the API's public host
        timeout: Request timeout in seconds
        include_metadata_requirements: Report ruby/rubygems requirements as
            dependencies (compact index only)

    Raises:
        ConfigurationError: If the API kind is unknown
    """
    if api == COMPACT_INDEX:
        return CompactIndexClient(
            base_url=base_url or COMPACT_INDEX_BASE,
            timeout=timeout,
            include_metadata_requirements=include_metadata_requirements,
        )
    if api == DEPENDENCY_API:
        return DependencyApiClient(base_url=base_url or DEPENDENCY_API_BASE, timeout=timeout)
    raise ConfigurationError(f"Unknown registry API '{api}'. Expected one of: {', '.join(REGISTRY_APIS)}")


__all__ = [
    "create_client",
    "CompactIndexClient",
    "DependencyApiClient",
    "parse_info_file",
    "parse_release_line",
    "parse_dependency_record",
    "COMPACT_INDEX",
    "DEPENDENCY_API",
    "REGISTRY_APIS",
    "COMPACT_INDEX_BASE",
    "DEPENDENCY_API_BASE",
]
