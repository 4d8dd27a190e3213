"""Tests for semver precedence ordering of coerced versions."""

from semantic_version import Version

from gemindex._coercion import semver_key


def ordered(values):
    return sorted(values, key=semver_key)


class TestOrdering:
    def test_numeric_components_compare_as_numbers(self):
        assert ordered(["1.10.0", "1.2.0", "0.9.0", "1.9.0"]) == ["0.9.0", "1.2.0", "1.9.0", "1.10.0"]

    def test_release_outranks_prerelease(self):
        assert ordered(["1.2.0", "1.2.0-rc1"]) == ["1.2.0-rc1", "1.2.0"]

    def test_prerelease_identifiers(self):
        versions = ["1.0.0-beta", "1.0.0-alpha.1", "1.0.0-alpha", "1.0.0-beta.11", "1.0.0-beta.2"]
        assert ordered(versions) == [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
        ]

    def test_zero_padded_prerelease_number(self):
        assert ordered(["1.0.0", "1.0.0-beta.01", "0.1.0"]) == ["0.1.0", "1.0.0-beta.01", "1.0.0"]

    def test_zero_padded_numbers_compare_by_value(self):
        assert ordered(["1.0.0-rc.10", "1.0.0-rc.02", "1.0.0-rc.1"]) == ["1.0.0-rc.1", "1.0.0-rc.02", "1.0.0-rc.10"]

    def test_sort_is_stable_for_equal_keys(self):
        assert ordered(["foo 1.0.0", "bar 2.0.0"]) == ["foo 1.0.0", "bar 2.0.0"]


class TestSemverKey:
    def test_strict_version(self):
        assert semver_key("1.2.3-rc.1") == Version("1.2.3-rc.1")

    def test_zero_padding_is_dropped(self):
        assert semver_key("1.0.0-beta.01") == Version("1.0.0-beta.1")
        assert semver_key("01.02.03") == Version("1.2.3")

    def test_zero_identifier_is_kept(self):
        assert semver_key("1.0.0-rc.0") == Version("1.0.0-rc.0")

    def test_build_metadata_is_kept(self):
        assert semver_key("1.0.0+build.007").build == ("build", "007")

    def test_partial_version_is_coerced(self):
        assert semver_key("1.2") == Version("1.2.0")

    def test_unparseable_sorts_as_zero(self):
        assert semver_key("foo 1.2.3") == Version("0.0.0")
