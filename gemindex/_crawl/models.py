"""Data models for the dependency crawl."""

from dataclasses import dataclass, field

# Platform tag of architecture-independent releases
UNIVERSAL_PLATFORM = "ruby"

# Pseudo-packages answered from the host instead of the registry
RUNTIME_PSEUDO_PACKAGE = "ruby"
PACKAGE_MANAGER_PSEUDO_PACKAGE = "rubygems"

DependencyList = tuple[tuple[str, tuple[str, ...]], ...]


@dataclass(frozen=True)
class Release:
    """One release record as published by the registry.

    Attributes:
        name: Gem that owns the release
        version: Raw version string, no assumed structure
        platform: Platform tag; "ruby" marks a universal release
        dependencies: (dependency name, requirement clauses) pairs in
            registry order
    """

    name: str
    version: str
    platform: str = UNIVERSAL_PLATFORM
    dependencies: DependencyList = ()

    @property
    def is_universal(self) -> bool:
        return self.platform == UNIVERSAL_PLATFORM


@dataclass(frozen=True)
class Spec:
    """Crawler output unit: a kept release with its filtered dependencies."""

    name: str
    version: str
    dependencies: DependencyList = ()

    @property
    def dependency_names(self) -> list[str]:
        return [name for name, _ in self.dependencies]


@dataclass
class CrawlState:
    """Mutable state owned by a single crawl invocation.

    Attributes:
        known: Every name discovered so far (seeds included)
        visited: Names already processed, queried or skipped
        specs: Accumulated crawler output
        passes: Number of completed passes
    """

    known: set[str]
    visited: set[str] = field(default_factory=set)
    specs: list[Spec] = field(default_factory=list)
    passes: int = 0

    @property
    def frontier(self) -> list[str]:
        """Discovered but unprocessed names in a deterministic order."""
        return sorted(self.known - self.visited, key=lambda name: (name.lower(), name))
