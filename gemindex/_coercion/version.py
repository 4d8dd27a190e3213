"""Coerce arbitrary RubyGems version strings into semver strings.

RubyGems accepts far more than semver does: any number of numeric segments,
letters glued onto numbers (``1.0.0.rc1``, ``0.9.beta``), and free-form
prefixes. ``coerce_version`` maps every such string onto
``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]`` while keeping the relative order
of real-world releases intact.

The coercion tries three patterns in order and stops at the first one that
applies:

1. the string is already semver (after skipping one leading token);
2. the string is purely numeric with more than three components;
3. a general fallback that pads, moves letters into a prerelease tail and
   rebuilds the numeric core.
"""

import re
from dataclasses import dataclass
from enum import Enum

SEMVER_PATTERN = re.compile(
    r"""
    [0-9]+\.[0-9]+\.[0-9]+            # numeric core
    (?:-[0-9a-z-]+(?:\.[0-9a-z-]+)*)?  # prerelease
    (?:\+[0-9a-z-]+(?:\.[0-9a-z-]+)*)? # build
    """,
    re.IGNORECASE | re.VERBOSE,
)

# One whitespace-terminated token at the start, e.g. the "=" in "= 1.2.3"
_LEADING_TOKEN = re.compile(r"^\S+\s+", re.MULTILINE)

_NUMERIC_OVERLONG = re.compile(r"^(\S+\s+)?(\d+\.\d+\.\d+)(?:\.\d+)+$")

_SEGMENT_SEPARATOR = re.compile(r"[.-]")
_LETTER = re.compile(r"[a-zA-Z]")
_LETTER_RUN = re.compile(r"-?([a-zA-Z]+)")

MAX_SEGMENTS = 4
CORE_SEGMENTS = 3


class CoercionKind(Enum):
    """Which branch of the coercion produced a result."""

    UNCHANGED = "unchanged"
    COLLAPSED = "collapsed"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Coercion:
    """Result of coercing one raw version string."""

    raw: str
    value: str
    kind: CoercionKind


def is_semver(value: str) -> bool:
    """Return True if ``value`` fully matches the strict semver grammar."""
    return SEMVER_PATTERN.fullmatch(value) is not None


def _match_unchanged(raw: str) -> Coercion | None:
    # The leading token is only skipped for the test; the raw string is returned.
    candidate = _LEADING_TOKEN.sub("", raw, count=1)
    if is_semver(candidate):
        return Coercion(raw, raw, CoercionKind.UNCHANGED)
    return None


def _match_collapsed(raw: str) -> Coercion | None:
    match = _NUMERIC_OVERLONG.match(raw)
    if match:
        return Coercion(raw, match.group(2), CoercionKind.COLLAPSED)
    return None


def _build_fallback(raw: str) -> Coercion:
    parts = _SEGMENT_SEPARATOR.split(raw, maxsplit=MAX_SEGMENTS - 1) if raw else []
    while len(parts) < CORE_SEGMENTS:
        parts.append("0")

    for i in range(MAX_SEGMENTS):
        if i >= len(parts):
            break
        letters = _LETTER_RUN.search(parts[i])
        if letters is None:
            continue
        stripped = parts[i][: letters.start()] + parts[i][letters.end() :]
        parts[i] = stripped or "0"
        tail = letters.group(1) + "".join(parts[i:])
        if len(parts) > CORE_SEGMENTS:
            parts[CORE_SEGMENTS] = tail
        else:
            parts.append(tail)

    semver = ".".join(parts[:CORE_SEGMENTS])
    semver = _LETTER.sub(lambda m: "-" + m.group(0), semver, count=1)
    if len(parts) > CORE_SEGMENTS:
        semver += "-" + parts[CORE_SEGMENTS]
    return Coercion(raw, semver.rstrip("."), CoercionKind.FALLBACK)


def coerce_version_detailed(raw: str) -> Coercion:
    """
    Coerce a raw version and report which branch produced the result.

    Args:
        raw: Version string as published by the registry

    Returns:
        Coercion holding the semver string and the branch that built it
    """
    return _match_unchanged(raw) or _match_collapsed(raw) or _build_fallback(raw)


def coerce_version(raw: str) -> str:
    """
    Coerce a raw version string into a semver string.

    Never raises. Pathological input (empty, no digits) still yields a
    string, which may not be valid semver.

    Examples:
        >>> coerce_version("1.2.3.4")
        '1.2.3'
        >>> coerce_version("1.2.3.beta.1")
        '1.2.3-beta.1'
        >>> coerce_version("2.0")
        '2.0.0'
    """
    return coerce_version_detailed(raw).value
