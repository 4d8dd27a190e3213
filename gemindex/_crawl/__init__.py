"""Transitive dependency discovery through a package registry.

Example usage:
    from gemindex._crawl import crawl
    from gemindex._registry import CompactIndexClient

    specs = crawl({"rails"}, denylist={"rubocop"}, client=CompactIndexClient())
    print(f"Collected {len(specs)} release specs")
"""

from .crawler import PSEUDO_PACKAGES, ClosureCrawler, crawl
from .host import StaticHostVersions, SubprocessHostVersions
from .models import (
    PACKAGE_MANAGER_PSEUDO_PACKAGE,
    RUNTIME_PSEUDO_PACKAGE,
    UNIVERSAL_PLATFORM,
    CrawlState,
    Release,
    Spec,
)
from .protocol import HostVersionProvider, RegistryClient

__all__ = [
    # Main API
    "crawl",
    "ClosureCrawler",
    # Host versions
    "StaticHostVersions",
    "SubprocessHostVersions",
    # Models
    "CrawlState",
    "Release",
    "Spec",
    "PSEUDO_PACKAGES",
    "RUNTIME_PSEUDO_PACKAGE",
    "PACKAGE_MANAGER_PSEUDO_PACKAGE",
    "UNIVERSAL_PLATFORM",
    # Protocols
    "RegistryClient",
    "HostVersionProvider",
]
