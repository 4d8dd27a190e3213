"""Aggregate crawled specs into the normalized index.

The aggregation is independent of the order specs were crawled in, apart
from the documented "first occurrence wins" tie-breaks, which the crawler
keeps deterministic by emitting specs in frontier order.
"""

from dataclasses import dataclass, field
from itertools import groupby
from types import MappingProxyType
from typing import Iterable, Mapping

from ._coercion import CoercionKind, coerce_dependencies, coerce_version_detailed, semver_key
from ._crawl.models import Spec
from .logging_config import logger


@dataclass(frozen=True)
class IndexEntry:
    """One normalized release: coerced version and coerced requirements.

    ``dependencies`` is wrapped in a read-only mapping on creation.
    """

    name: str
    version: str
    dependencies: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependencies", MappingProxyType(dict(self.dependencies)))

    def to_dict(self) -> dict:
        return {"name": self.name, "version": self.version, "dependencies": dict(self.dependencies)}


Index = dict[str, tuple[IndexEntry, ...]]


def _unique(items: Iterable, key) -> list:
    seen = set()
    kept = []
    for item in items:
        marker = key(item)
        if marker in seen:
            continue
        seen.add(marker)
        kept.append(item)
    return kept


def _entry_for(spec: Spec) -> IndexEntry:
    coercion = coerce_version_detailed(spec.version)
    if coercion.kind is not CoercionKind.UNCHANGED:
        logger.debug(f"{spec.name}: version {coercion.raw!r} -> {coercion.value!r} ({coercion.kind.value})")
    return IndexEntry(
        name=spec.name,
        version=coercion.value,
        dependencies=coerce_dependencies(spec.dependencies),
    )


def aggregate(specs: Iterable[Spec]) -> Index:
    """
    Build the index from crawled specs.

    1. Drop repeated (name, raw version) pairs, keeping the first.
    2. Stable-sort by name, case-insensitively, and group by name.
    3. Coerce versions and requirements; releases whose raw versions
       coerce to the same semver collapse onto the first one.
    4. Order each group by semver precedence.

    Args:
        specs: Crawler output

    Returns:
        Mapping of gem name to its entries, keys in case-insensitive order
    """
    unique_specs = _unique(specs, key=lambda s: (s.name, s.version))
    unique_specs.sort(key=lambda s: (s.name.lower(), s.name))

    index: Index = {}
    for name, group in groupby(unique_specs, key=lambda s: s.name):
        entries = [_entry_for(spec) for spec in group]
        kept = _unique(entries, key=lambda e: e.version)
        if len(kept) < len(entries):
            logger.debug(f"{name}: {len(entries) - len(kept)} release(s) collapsed onto an existing version")
        index[name] = tuple(sorted(kept, key=lambda e: semver_key(e.version)))

    logger.info(f"Aggregated {len(unique_specs)} spec(s) into {len(index)} gem(s)")
    return index


def index_stats(index: Index) -> dict[str, int]:
    """Count gems, releases and dependency edges in an index."""
    return {
        "gems": len(index),
        "releases": sum(len(entries) for entries in index.values()),
        "dependencies": sum(len(entry.dependencies) for entries in index.values() for entry in entries),
    }
