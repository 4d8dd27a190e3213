"""Transitive closure crawler over a package registry.

The crawl is a breadth-first fixed-point closure over a dependency graph
that is only discovered while it is walked. Each pass queries every name
that is known but not yet visited, adds the dependency targets of the
kept releases to the known set, and the crawl stops after a pass that
discovers nothing new. Names are processed at most once, so cycles and
self-dependencies terminate.

The deny-list bounds the graph: a denied name is never queried and is
removed from every dependency list before its edges are followed.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Mapping, Optional

from ..logging_config import logger
from .host import SubprocessHostVersions
from .models import (
    PACKAGE_MANAGER_PSEUDO_PACKAGE,
    RUNTIME_PSEUDO_PACKAGE,
    CrawlState,
    Release,
    Spec,
)
from .protocol import HostVersionProvider, RegistryClient

PSEUDO_PACKAGES = (RUNTIME_PSEUDO_PACKAGE, PACKAGE_MANAGER_PSEUDO_PACKAGE)


class ClosureCrawler:
    """
    Discover every release reachable from a seed set.

    Example:
        crawler = ClosureCrawler(CompactIndexClient(), denylist={"rails"})
        specs = crawler.crawl({"capybara"})

    Args:
        client: Registry client queried for release records
        denylist: Names that are neither queried nor followed
        deny_versions: Per-name raw versions to drop from the output
        host: Provider for the ruby/rubygems pseudo-package versions
        workers: Number of concurrent registry queries per pass
        batch_size: If set, query the registry in batches of this many names
    """

    def __init__(
        self,
        client: RegistryClient,
        denylist: Iterable[str] = (),
        deny_versions: Optional[Mapping[str, Iterable[str]]] = None,
        host: Optional[HostVersionProvider] = None,
        workers: int = 1,
        batch_size: Optional[int] = None,
    ) -> None:
        self.client = client
        self.denylist = frozenset(denylist)
        self.deny_versions = {name: frozenset(versions) for name, versions in (deny_versions or {}).items()}
        self.host = host if host is not None else SubprocessHostVersions()
        self.workers = max(1, workers)
        self.batch_size = batch_size

    def crawl(self, seeds: Iterable[str]) -> list[Spec]:
        """
        Crawl the closure of ``seeds`` and return the collected specs.

        Raises:
            RegistryError: If any registry query fails; nothing is returned
        """
        state = CrawlState(known=set(seeds))
        logger.info(f"Crawling {self.client.name} from {len(state.known)} seed(s)")

        while True:
            size = len(state.known)
            self._run_pass(state)
            logger.info(
                f"Pass {state.passes}: {len(state.visited)} visited, "
                f"{len(state.known) - size} new name(s), {len(state.specs)} spec(s)"
            )
            if len(state.known) == size:
                break

        return state.specs

    def _run_pass(self, state: CrawlState) -> None:
        frontier = state.frontier
        state.passes += 1
        logger.debug(f"Pass {state.passes} frontier: {', '.join(frontier)}")

        to_query = [name for name in frontier if name not in self.denylist and name not in PSEUDO_PACKAGES]
        releases = self._fetch(to_query)

        for name in frontier:
            state.visited.add(name)
            if name in self.denylist:
                logger.debug(f"Skipping denied gem: {name}")
                continue
            if name in PSEUDO_PACKAGES:
                state.specs.append(self._host_spec(name))
                continue
            for release in releases.get(name, []):
                spec = self._admit(name, release)
                if spec is None:
                    continue
                state.specs.append(spec)
                state.known.update(spec.dependency_names)

    def _host_spec(self, name: str) -> Spec:
        if name == RUNTIME_PSEUDO_PACKAGE:
            version = self.host.current_runtime_version()
        else:
            version = self.host.current_package_manager_version()
        logger.debug(f"Synthesized {name} {version} from host")
        return Spec(name=name, version=version)

    def _admit(self, name: str, release: Release) -> Optional[Spec]:
        """Apply the platform and deny filters to one release."""
        if not release.is_universal:
            logger.debug(f"Skipping {name} {release.version}: platform {release.platform}")
            return None
        if release.version in self.deny_versions.get(name, ()):
            logger.debug(f"Skipping denied version {name} {release.version}")
            return None
        dependencies = tuple((dep, reqs) for dep, reqs in release.dependencies if dep not in self.denylist)
        return Spec(name=name, version=release.version, dependencies=dependencies)

    def _fetch(self, names: list[str]) -> dict[str, list[Release]]:
        """
        Fetch releases for ``names`` grouped by owning name.

        Result order inside each group is the registry's; groups are read
        back in frontier order, so completion order never leaks out.
        """
        if not names:
            return {}

        fetch: Callable[[list[str]], list[Release]]
        if self.batch_size:
            units = [names[i : i + self.batch_size] for i in range(0, len(names), self.batch_size)]
            fetch = self.client.fetch_releases_batch
        else:
            units = [[name] for name in names]
            fetch = self._fetch_one

        if self.workers == 1 or len(units) == 1:
            results = [fetch(unit) for unit in units]
        else:
            results = self._fetch_concurrently(fetch, units)

        grouped: dict[str, list[Release]] = {name: [] for name in names}
        for unit_releases in results:
            for release in unit_releases:
                if release.name in grouped:
                    grouped[release.name].append(release)
                else:
                    logger.debug(f"Ignoring unrequested record {release.name} {release.version}")
        return grouped

    def _fetch_one(self, unit: list[str]) -> list[Release]:
        return self.client.fetch_releases(unit[0])

    def _fetch_concurrently(
        self, fetch: Callable[[list[str]], list[Release]], units: list[list[str]]
    ) -> list[list[Release]]:
        results: list[list[Release]] = [[] for _ in units]
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {executor.submit(fetch, unit): index for index, unit in enumerate(units)}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return results


def crawl(
    seeds: Iterable[str],
    denylist: Iterable[str] = (),
    deny_versions: Optional[Mapping[str, Iterable[str]]] = None,
    *,
    client: RegistryClient,
    host: Optional[HostVersionProvider] = None,
    workers: int = 1,
    batch_size: Optional[int] = None,
) -> list[Spec]:
    """Crawl the dependency closure of ``seeds``; see ClosureCrawler."""
    crawler = ClosureCrawler(
        client,
        denylist=denylist,
        deny_versions=deny_versions,
        host=host,
        workers=workers,
        batch_size=batch_size,
    )
    return crawler.crawl(seeds)
