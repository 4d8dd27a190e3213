"""Tests for host toolchain version lookup."""

import subprocess
import unittest
from unittest.mock import Mock, patch

from gemindex._crawl.host import (
    RUBY_VERSION_COMMAND,
    RUBYGEMS_VERSION_COMMAND,
    StaticHostVersions,
    SubprocessHostVersions,
)
from gemindex.exceptions import HostVersionError


class TestStaticHostVersions(unittest.TestCase):
    def test_returns_configured_versions(self):
        host = StaticHostVersions(runtime_version="3.2.2", package_manager_version="3.4.10")

        self.assertEqual(host.current_runtime_version(), "3.2.2")
        self.assertEqual(host.current_package_manager_version(), "3.4.10")


@patch("gemindex._crawl.host.shutil.which", return_value="/usr/bin/tool")
@patch("gemindex._crawl.host.subprocess.run")
class TestSubprocessHostVersions(unittest.TestCase):
    def test_runs_ruby_for_runtime_version(self, mock_run, mock_which):
        mock_run.return_value = Mock(stdout="3.3.0")

        self.assertEqual(SubprocessHostVersions().current_runtime_version(), "3.3.0")
        mock_run.assert_called_once_with(
            RUBY_VERSION_COMMAND, capture_output=True, check=True, text=True, shell=False, timeout=30
        )

    def test_runs_gem_for_package_manager_version(self, mock_run, mock_which):
        mock_run.return_value = Mock(stdout="3.5.3\n")

        self.assertEqual(SubprocessHostVersions().current_package_manager_version(), "3.5.3")
        self.assertEqual(mock_run.call_args[0][0], RUBYGEMS_VERSION_COMMAND)

    def test_result_is_cached(self, mock_run, mock_which):
        mock_run.return_value = Mock(stdout="3.3.0")
        host = SubprocessHostVersions()

        host.current_runtime_version()
        host.current_runtime_version()

        mock_run.assert_called_once()

    def test_overrides_skip_commands(self, mock_run, mock_which):
        host = SubprocessHostVersions(runtime_version="2.7.8", package_manager_version="3.1.6")

        self.assertEqual(host.current_runtime_version(), "2.7.8")
        self.assertEqual(host.current_package_manager_version(), "3.1.6")
        mock_run.assert_not_called()

    def test_missing_tool(self, mock_run, mock_which):
        mock_which.return_value = None

        with self.assertRaises(HostVersionError) as ctx:
            SubprocessHostVersions().current_runtime_version()

        self.assertIn("ruby command not found", str(ctx.exception))
        mock_run.assert_not_called()

    def test_failing_command(self, mock_run, mock_which):
        mock_run.side_effect = subprocess.CalledProcessError(1, RUBYGEMS_VERSION_COMMAND, stderr="boom\n")

        with self.assertRaises(HostVersionError) as ctx:
            SubprocessHostVersions().current_package_manager_version()

        self.assertIn("exited with code 1: boom", str(ctx.exception))

    def test_timeout(self, mock_run, mock_which):
        mock_run.side_effect = subprocess.TimeoutExpired(RUBY_VERSION_COMMAND, 30)

        with self.assertRaises(HostVersionError):
            SubprocessHostVersions().current_runtime_version()

    def test_empty_output(self, mock_run, mock_which):
        mock_run.return_value = Mock(stdout="  \n")

        with self.assertRaises(HostVersionError):
            SubprocessHostVersions().current_runtime_version()


if __name__ == "__main__":
    unittest.main()
