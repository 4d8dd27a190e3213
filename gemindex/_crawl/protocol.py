"""Protocol definitions for the crawl's external collaborators."""

from typing import Iterable, Protocol

from .models import Release


class RegistryClient(Protocol):
    """Protocol for package registry clients.

    A client answers "which releases does this gem have?" either one name at
    a time or for a batch of names. The crawler treats both modes as
    equivalent sources of raw records.

    Example:
        class InMemoryRegistry:
            name = "memory"

            def fetch_releases(self, gem_name: str) -> list[Release]:
                return self._data.get(gem_name, [])

            def fetch_releases_batch(self, names: Iterable[str]) -> list[Release]:
                return [r for n in names for r in self.fetch_releases(n)]
    """

    @property
    def name(self) -> str:
        """Human-readable name of this client, used for logging."""
        ...

    def fetch_releases(self, gem_name: str) -> list[Release]:
        """Fetch all published releases of one gem.

        Args:
            gem_name: Gem to look up

        Returns:
            Release records, empty if the registry does not know the gem.

        Raises:
            RegistryError: If the registry cannot be queried.
        """
        ...

    def fetch_releases_batch(self, names: Iterable[str]) -> list[Release]:
        """Fetch releases for several gems at once.

        Each returned record carries its owning gem in ``Release.name``.
        """
        ...


class HostVersionProvider(Protocol):
    """Protocol for looking up the versions of the host toolchain."""

    def current_runtime_version(self) -> str:
        """Version of the running Ruby interpreter."""
        ...

    def current_package_manager_version(self) -> str:
        """Version of the running RubyGems."""
        ...
