"""Version and requirement coercion into semver form.

Example usage:
    from gemindex._coercion import coerce_version, coerce_requirement

    coerce_version("1.0.0.rc1")          # "1.0.0-rc1"
    coerce_requirement("~> 4.2, >= 4.2.1")  # "~> 4.2.0, >= 4.2.1"
"""

from .ordering import semver_key
from .requirement import coerce_clause, coerce_dependencies, coerce_requirement, join_requirement
from .version import Coercion, CoercionKind, coerce_version, coerce_version_detailed, is_semver

__all__ = [
    # Versions
    "coerce_version",
    "coerce_version_detailed",
    "is_semver",
    "Coercion",
    "CoercionKind",
    # Requirements
    "coerce_requirement",
    "coerce_clause",
    "coerce_dependencies",
    "join_requirement",
    # Ordering
    "semver_key",
]
