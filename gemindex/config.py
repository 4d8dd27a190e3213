"""Run configuration for gemindex.

Settings come from three layers, highest precedence first: CLI options,
environment variables (wired through click), and an optional JSON config
file, typically named 'gemindex.json' in the working directory.

Example config file:
{
    "seeds": ["rails", "capybara", "bundler"],
    "denylist": ["rubocop"],
    "deny_versions": {"json": ["1.1.1", "1.1.2"]}
}

List values from the file and from the CLI are merged; scalar CLI values
win over the file.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional
from urllib.parse import urlparse

from ._registry import COMPACT_INDEX, REGISTRY_APIS
from .exceptions import ConfigurationError
from .http_client import DEFAULT_TIMEOUT
from .logging_config import logger
from .serialization import DEFAULT_OUTPUT_FILE

DEFAULT_CONFIG_FILE = "gemindex.json"
DEFAULT_SEEDS = ("rails", "capybara", "bundler")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_NAME_SEPARATOR = re.compile(r"[\s,]+")


@dataclass
class Config:
    """Configuration settings for one index build."""

    seeds: list[str] = field(default_factory=lambda: list(DEFAULT_SEEDS))
    denylist: list[str] = field(default_factory=list)
    deny_versions: dict[str, list[str]] = field(default_factory=dict)
    output_file: str = DEFAULT_OUTPUT_FILE
    pretty: bool = True
    date_stamp: bool = False
    registry_api: str = COMPACT_INDEX
    registry_url: Optional[str] = None
    batch_size: Optional[int] = None
    workers: int = 1
    timeout: int = DEFAULT_TIMEOUT
    include_metadata_requirements: bool = False
    ruby_version: Optional[str] = None
    rubygems_version: Optional[str] = None
    log_level: str = "INFO"
    structured_logs: bool = False

    def validate(self) -> None:
        """
        Validate configuration settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.seeds:
            raise ConfigurationError("No seed gems configured")
        if all(seed in self.denylist for seed in self.seeds):
            raise ConfigurationError("Every seed gem is on the deny-list")
        if self.registry_api not in REGISTRY_APIS:
            raise ConfigurationError(
                f"Unknown registry API '{self.registry_api}'. Expected one of: {', '.join(REGISTRY_APIS)}"
            )
        if self.workers < 1:
            raise ConfigurationError("Workers must be at least 1")
        if self.batch_size is not None and self.batch_size < 1:
            raise ConfigurationError("Batch size must be at least 1")
        if self.timeout < 1:
            raise ConfigurationError("Timeout must be at least 1 second")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level '{self.log_level}'")
        if self.registry_url:
            self._validate_registry_url()

    def _validate_registry_url(self) -> None:
        """
        Validate and normalize the registry base URL.

        Raises:
            ConfigurationError: If URL format is invalid
        """
        parsed = urlparse(self.registry_url)

        if not parsed.scheme or parsed.scheme not in ("http", "https"):
            raise ConfigurationError("Registry URL must start with http:// or https://")
        if not parsed.netloc:
            raise ConfigurationError("Registry URL must include a valid hostname")
        if parsed.scheme == "http":
            logger.warning("Using HTTP (not HTTPS) for registry access - consider using HTTPS")

        self.registry_url = self.registry_url.rstrip("/")


def parse_name_list(values: Iterable[str]) -> list[str]:
    """Split comma/whitespace separated names, dropping blanks and repeats."""
    names: list[str] = []
    for value in values:
        for name in _NAME_SEPARATOR.split(value.strip()):
            if name and name not in names:
                names.append(name)
    return names


def parse_deny_versions(values: Iterable[str]) -> dict[str, list[str]]:
    """
    Parse ``name:version`` pairs into a name -> versions mapping.

    Raises:
        ConfigurationError: If a pair has no colon or an empty side
    """
    deny_versions: dict[str, list[str]] = {}
    for value in parse_name_list(values):
        name, sep, version = value.partition(":")
        if not sep or not name or not version:
            raise ConfigurationError(f"Invalid deny-version '{value}'. Expected format: 'name:version'")
        deny_versions.setdefault(name, []).append(version)
    return deny_versions


def _string_list(data: dict[str, Any], key: str, source: Path) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"'{key}' in {source} must be a list of strings")
    return value


def load_config_file(config_path: Optional[str] = None) -> dict[str, Any]:
    """
    Read seeds and deny-lists from a JSON config file.

    Args:
        config_path: Explicit file; if not given, DEFAULT_CONFIG_FILE in the
            working directory is used when it exists

    Returns:
        Dict with "seeds", "denylist" and "deny_versions" keys (possibly empty)

    Raises:
        ConfigurationError: If an explicit file is missing or any file is invalid
    """
    if config_path:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {config_path}")
    else:
        path = Path.cwd() / DEFAULT_CONFIG_FILE
        if not path.is_file():
            return {"seeds": [], "denylist": [], "deny_versions": {}}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    deny_versions = data.get("deny_versions", {})
    if not isinstance(deny_versions, dict) or not all(
        isinstance(versions, list) and all(isinstance(v, str) for v in versions) for versions in deny_versions.values()
    ):
        raise ConfigurationError(f"'deny_versions' in {path} must map gem names to lists of versions")

    logger.info(f"Loaded config file: {path}")
    return {
        "seeds": _string_list(data, "seeds", path),
        "denylist": _string_list(data, "denylist", path),
        "deny_versions": {name: list(versions) for name, versions in deny_versions.items()},
    }


def merge_deny_versions(*sources: dict[str, list[str]]) -> dict[str, list[str]]:
    """Merge deny-version mappings, keeping each version once."""
    merged: dict[str, list[str]] = {}
    for source in sources:
        for name, versions in source.items():
            bucket = merged.setdefault(name, [])
            bucket.extend(v for v in versions if v not in bucket)
    return merged
