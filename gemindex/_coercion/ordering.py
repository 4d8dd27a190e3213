"""Semver precedence ordering for coerced version strings."""

import re

from semantic_version import Version

from .version import is_semver

_ZERO = Version("0.0.0")

_PADDED_NUMBER = re.compile(r"^0+(?=\d)")


def _strip_padding(identifiers: str) -> str:
    return ".".join(
        _PADDED_NUMBER.sub("", identifier) if identifier.isdigit() else identifier
        for identifier in identifiers.split(".")
    )


def _normalize(value: str) -> str:
    """Drop leading zeros from numeric core and prerelease identifiers.

    RubyGems publishes versions such as ``1.0.0.beta.01``; semver forbids the
    padded ``01`` but orders it the same as ``1``.
    """
    version, plus, build = value.partition("+")
    core, dash, prerelease = version.partition("-")
    normalized = _strip_padding(core)
    if dash:
        normalized += "-" + _strip_padding(prerelease)
    if plus:
        normalized += "+" + build
    return normalized


def semver_key(value: str) -> Version:
    """
    Build a sort key that orders coerced versions by semver precedence.

    Strict semver strings are parsed after dropping zero padding from
    numeric identifiers. Degenerate coercion results (leading tokens,
    partial cores) are parsed leniently with ``Version.coerce``; anything
    that still fails sorts as ``0.0.0``.

    Args:
        value: Coerced version string

    Returns:
        semantic_version.Version usable as a sort key
    """
    if is_semver(value):
        try:
            return Version(_normalize(value))
        except ValueError:
            pass
    try:
        return Version.coerce(value)
    except ValueError:
        return _ZERO
