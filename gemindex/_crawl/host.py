"""Host toolchain version lookup for the ruby and rubygems pseudo-packages."""

import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional

from ..exceptions import HostVersionError
from ..logging_config import logger

RUBY_VERSION_COMMAND = ["ruby", "-e", "print RUBY_VERSION"]
RUBYGEMS_VERSION_COMMAND = ["gem", "--version"]
COMMAND_TIMEOUT = 30


@dataclass(frozen=True)
class StaticHostVersions:
    """Host versions known up front (configuration or tests)."""

    runtime_version: str
    package_manager_version: str

    def current_runtime_version(self) -> str:
        return self.runtime_version

    def current_package_manager_version(self) -> str:
        return self.package_manager_version


class SubprocessHostVersions:
    """
    Look up host versions by running ``ruby`` and ``gem``.

    Explicit overrides skip the corresponding command. Results are cached
    for the lifetime of the instance.
    """

    def __init__(self, runtime_version: Optional[str] = None, package_manager_version: Optional[str] = None) -> None:
        self._runtime_version = runtime_version
        self._package_manager_version = package_manager_version

    def current_runtime_version(self) -> str:
        if self._runtime_version is None:
            self._runtime_version = _run_version_command(RUBY_VERSION_COMMAND)
        return self._runtime_version

    def current_package_manager_version(self) -> str:
        if self._package_manager_version is None:
            self._package_manager_version = _run_version_command(RUBYGEMS_VERSION_COMMAND)
        return self._package_manager_version


def _run_version_command(cmd: list[str]) -> str:
    """
    Run a version command and return its trimmed stdout.

    Raises:
        HostVersionError: If the tool is missing, fails or times out
    """
    if shutil.which(cmd[0]) is None:
        raise HostVersionError(f"{cmd[0]} command not found; set the version explicitly instead")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            check=True,
            text=True,
            shell=False,
            timeout=COMMAND_TIMEOUT,
        )
    except subprocess.CalledProcessError as e:
        raise HostVersionError(f"{cmd[0]} exited with code {e.returncode}: {e.stderr.strip()}") from e
    except subprocess.TimeoutExpired as e:
        raise HostVersionError(f"{cmd[0]} version check timed out") from e

    version = result.stdout.strip()
    if not version:
        raise HostVersionError(f"{cmd[0]} printed no version")
    logger.debug(f"Host {cmd[0]} version: {version}")
    return version
