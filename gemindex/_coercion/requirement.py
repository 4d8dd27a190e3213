"""Coerce RubyGems requirement strings clause by clause."""

import re
from typing import Iterable, Sequence

from .version import coerce_version

# leading space, operator with its trailing space, version token, trailing space
_CLAUSE = re.compile(r"^(\s*)((?:~>|>=|<=|!=|=|>|<)?\s*)(.*?)(\s*)$", re.DOTALL)

RawRequirement = str | Sequence[str]


def coerce_clause(clause: str) -> str:
    """Coerce the version token of one ``<op> <version>`` clause."""
    match = _CLAUSE.match(clause)
    leading, operator, token, trailing = match.groups()
    if not token:
        return clause
    return f"{leading}{operator}{coerce_version(token)}{trailing}"


def coerce_requirement(raw: str) -> str:
    """
    Coerce every version token in a comma-separated requirement.

    Operators and spacing are kept, clauses stay in their original order.

    Examples:
        >>> coerce_requirement(">= 1.0, < 2.0")
        '>= 1.0.0, < 2.0.0'
    """
    return ",".join(coerce_clause(clause) for clause in raw.split(","))


def join_requirement(requirement: RawRequirement) -> str:
    """Join a list of requirement clauses the way RubyGems prints them."""
    if isinstance(requirement, str):
        return requirement
    return ", ".join(requirement)


def coerce_dependencies(dependencies: Iterable[tuple[str, RawRequirement]]) -> dict[str, str]:
    """
    Coerce a dependency list into a name -> requirement mapping.

    Args:
        dependencies: (name, requirement) pairs, the requirement given either
            as one comma-separated string or as a list of clauses

    Returns:
        Dict keyed by dependency name in ascending order
    """
    coerced = {name: coerce_requirement(join_requirement(requirement)) for name, requirement in dependencies}
    return {name: coerced[name] for name in sorted(coerced)}
