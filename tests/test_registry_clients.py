"""Tests for the RubyGems registry clients."""

from unittest.mock import Mock

import pytest
import requests

from gemindex._crawl.models import Release
from gemindex._registry import (
    COMPACT_INDEX,
    COMPACT_INDEX_BASE,
    DEPENDENCY_API,
    DEPENDENCY_API_BASE,
    CompactIndexClient,
    DependencyApiClient,
    create_client,
    parse_dependency_record,
    parse_info_file,
    parse_release_line,
)
from gemindex.exceptions import ConfigurationError, RegistryError

INFO_FILE = """created_at: 2024-01-01T00:00:00Z
---
1.0.0 |checksum:abc123
1.1.0 rack:>= 1.0&< 3,rake:>= 0|checksum:def456,ruby:>= 2.5
1.1.0-java rack:>= 1.0|checksum:0789ab
"""


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    return Mock(spec=requests.Session)


def _response(status_code=200, text="", json_data=None):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = json_data
    return response


class TestParseReleaseLine:
    def test_dependencies_and_clauses(self):
        release = parse_release_line("capybara", "1.1.0 rack:>= 1.0&< 3,rake:>= 0|checksum:def456,ruby:>= 2.5")

        assert release == Release(
            name="capybara",
            version="1.1.0",
            platform="ruby",
            dependencies=(("rack", (">= 1.0", "< 3")), ("rake", (">= 0",))),
        )

    def test_release_without_dependencies(self):
        release = parse_release_line("capybara", "1.0.0 |checksum:abc123")

        assert release.version == "1.0.0"
        assert release.dependencies == ()

    def test_bare_version(self):
        assert parse_release_line("capybara", "0.1.0") == Release(name="capybara", version="0.1.0")

    def test_platform_suffix(self):
        release = parse_release_line("nokogiri", "1.15.0-x86_64-linux racc:~> 1.4|checksum:abc")

        assert release.version == "1.15.0"
        assert release.platform == "x86_64-linux"
        assert not release.is_universal

    def test_metadata_requirements_are_ignored_by_default(self):
        release = parse_release_line("a", "1.0 rack:>= 1|checksum:x,ruby:>= 2.5,rubygems:>= 3.0")

        assert [name for name, _ in release.dependencies] == ["rack"]

    def test_metadata_requirements_become_dependencies(self):
        release = parse_release_line(
            "a", "1.0 rack:>= 1|checksum:x,ruby:>= 2.5&< 4,rubygems:>= 3.0", include_metadata_requirements=True
        )

        assert release.dependencies == (
            ("rack", (">= 1",)),
            ("ruby", (">= 2.5", "< 4")),
            ("rubygems", (">= 3.0",)),
        )


class TestParseInfoFile:
    def test_skips_header(self):
        releases = parse_info_file("capybara", INFO_FILE)

        assert [(r.version, r.platform) for r in releases] == [
            ("1.0.0", "ruby"),
            ("1.1.0", "ruby"),
            ("1.1.0", "java"),
        ]

    def test_without_header(self):
        releases = parse_info_file("capybara", "1.0.0 |checksum:abc\n\n2.0.0 |checksum:def\n")

        assert [r.version for r in releases] == ["1.0.0", "2.0.0"]

    def test_empty_document(self):
        assert parse_info_file("capybara", "---\n") == []


class TestCompactIndexClient:
    def test_name(self, mock_session):
        assert CompactIndexClient(session=mock_session).name == "rubygems compact index"

    def test_fetch_success(self, mock_session):
        mock_session.get.return_value = _response(text=INFO_FILE)
        client = CompactIndexClient(session=mock_session)

        releases = client.fetch_releases("capybara")

        assert len(releases) == 3
        assert all(r.name == "capybara" for r in releases)
        mock_session.get.assert_called_once_with("https://rubygems.org/info/capybara", timeout=30)

    def test_url_uses_base_and_quotes_name(self, mock_session):
        mock_session.get.return_value = _response(text="")
        client = CompactIndexClient(base_url="https://mirror.example.com/", session=mock_session, timeout=5)

        client.fetch_releases("odd/name")

        mock_session.get.assert_called_once_with("https://mirror.example.com/info/odd%2Fname", timeout=5)

    def test_not_found_returns_empty(self, mock_session):
        mock_session.get.return_value = _response(status_code=404)

        assert CompactIndexClient(session=mock_session).fetch_releases("ghost") == []

    def test_server_error_raises(self, mock_session):
        mock_session.get.return_value = _response(status_code=500)

        with pytest.raises(RegistryError, match="HTTP 500"):
            CompactIndexClient(session=mock_session).fetch_releases("rack")

    def test_timeout_raises(self, mock_session):
        mock_session.get.side_effect = requests.exceptions.Timeout()

        with pytest.raises(RegistryError, match="Timeout"):
            CompactIndexClient(session=mock_session).fetch_releases("rack")

    def test_connection_error_raises(self, mock_session):
        mock_session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(RegistryError, match="refused"):
            CompactIndexClient(session=mock_session).fetch_releases("rack")

    def test_metadata_requirements_flag(self, mock_session):
        mock_session.get.return_value = _response(text=INFO_FILE)
        client = CompactIndexClient(session=mock_session, include_metadata_requirements=True)

        releases = client.fetch_releases("capybara")

        assert [name for name, _ in releases[1].dependencies] == ["rack", "rake", "ruby"]

    def test_batch_queries_each_name(self, mock_session):
        mock_session.get.side_effect = [
            _response(text="1.0.0 |checksum:a\n"),
            _response(status_code=404),
            _response(text="2.0.0 |checksum:b\n"),
        ]
        client = CompactIndexClient(session=mock_session)

        releases = client.fetch_releases_batch(["a", "missing", "c"])

        assert [(r.name, r.version) for r in releases] == [("a", "1.0.0"), ("c", "2.0.0")]
        assert mock_session.get.call_count == 3


class TestParseDependencyRecord:
    def test_record(self):
        release = parse_dependency_record(
            {
                "name": "rack-test",
                "number": "2.1.0",
                "platform": "ruby",
                "dependencies": [["rack", ">= 1.3, < 4"], ["webrick", ">= 0"]],
            }
        )

        assert release == Release(
            name="rack-test",
            version="2.1.0",
            platform="ruby",
            dependencies=(("rack", (">= 1.3", "< 4")), ("webrick", (">= 0",))),
        )

    def test_missing_platform_is_universal(self):
        release = parse_dependency_record({"name": "a", "number": "1.0", "platform": None, "dependencies": None})

        assert release.is_universal
        assert release.dependencies == ()


class TestDependencyApiClient:
    def test_batch_request(self, mock_session):
        mock_session.get.return_value = _response(
            json_data=[
                {"name": "rack", "number": "2.2.3", "platform": "ruby", "dependencies": []},
                {"name": "rake", "number": "13.0.6", "platform": "ruby", "dependencies": []},
            ]
        )
        client = DependencyApiClient(session=mock_session)

        releases = client.fetch_releases_batch(["rack", "rake"])

        assert [(r.name, r.version) for r in releases] == [("rack", "2.2.3"), ("rake", "13.0.6")]
        mock_session.get.assert_called_once_with(
            "https://bundler.rubygems.org/api/v1/dependencies.json?gems=rack,rake", timeout=30
        )

    def test_single_fetch_uses_batch_endpoint(self, mock_session):
        mock_session.get.return_value = _response(json_data=[])
        client = DependencyApiClient(session=mock_session)

        assert client.fetch_releases("rack") == []
        mock_session.get.assert_called_once_with(
            "https://bundler.rubygems.org/api/v1/dependencies.json?gems=rack", timeout=30
        )

    def test_empty_batch_makes_no_request(self, mock_session):
        client = DependencyApiClient(session=mock_session)

        assert client.fetch_releases_batch([]) == []
        mock_session.get.assert_not_called()

    def test_http_error_raises(self, mock_session):
        mock_session.get.return_value = _response(status_code=503)

        with pytest.raises(RegistryError, match="HTTP 503"):
            DependencyApiClient(session=mock_session).fetch_releases_batch(["rack"])

    def test_timeout_raises(self, mock_session):
        mock_session.get.side_effect = requests.exceptions.Timeout()

        with pytest.raises(RegistryError, match="Timeout"):
            DependencyApiClient(session=mock_session).fetch_releases_batch(["rack"])

    def test_invalid_json_raises(self, mock_session):
        response = _response()
        response.json.side_effect = ValueError("Expecting value")
        mock_session.get.return_value = response

        with pytest.raises(RegistryError, match="JSON decode error"):
            DependencyApiClient(session=mock_session).fetch_releases_batch(["rack"])

    def test_malformed_record_raises(self, mock_session):
        mock_session.get.return_value = _response(json_data=[{"name": "rack"}])

        with pytest.raises(RegistryError, match="Malformed dependency record"):
            DependencyApiClient(session=mock_session).fetch_releases_batch(["rack"])


class TestCreateClient:
    def test_compact_index_default(self):
        client = create_client()

        assert isinstance(client, CompactIndexClient)
        assert client.base_url == COMPACT_INDEX_BASE

    def test_compact_index_options(self):
        client = create_client(
            COMPACT_INDEX, base_url="https://mirror.example.com", timeout=7, include_metadata_requirements=True
        )

        assert client.base_url == "https://mirror.example.com"
        assert client.timeout == 7
        assert client.include_metadata_requirements is True

    def test_dependency_api(self):
        client = create_client(DEPENDENCY_API)

        assert isinstance(client, DependencyApiClient)
        assert client.base_url == DEPENDENCY_API_BASE

    def test_unknown_api(self):
        with pytest.raises(ConfigurationError, match="Unknown registry API"):
            create_client("graphql")

    def test_clients_send_user_agent(self):
        client = create_client()

        assert client.session.headers["User-Agent"].startswith("gemindex/")

    def test_compact_index_accepts_text(self):
        assert create_client(COMPACT_INDEX).session.headers["Accept"] == "text/plain"

    def test_dependency_api_accepts_json(self):
        assert create_client(DEPENDENCY_API).session.headers["Accept"] == "application/json"
