"""
Role-family reduction.

Requester roles arrive as free-form campus role names ("Senior School:Staff",
"Year 9 Students", "parent"). Access checks outside quick links compare
role families, never raw names, through an explicit finite mapping:

1. an exact table of known role names
2. keyword tokens found after splitting the role on non-alphanumerics

Anything else reduces to INVALID, which no audience ever contains.
"""

import re
from collections.abc import Iterable
from enum import Enum


class RoleFamily(str, Enum):
    """Closed set of role families an audience can name."""

    STAFF = "staff"
    STUDENTS = "students"
    PARENTS = "parents"
    INVALID = "invalid"


# Known raw role names, lowercased.
_EXACT_ROLES: dict[str, RoleFamily] = {
    "staff": RoleFamily.STAFF,
    "teacher": RoleFamily.STAFF,
    "teachers": RoleFamily.STAFF,
    "employee": RoleFamily.STAFF,
    "student": RoleFamily.STUDENTS,
    "students": RoleFamily.STUDENTS,
    "parent": RoleFamily.PARENTS,
    "parents": RoleFamily.PARENTS,
    "guardian": RoleFamily.PARENTS,
}

_KEYWORDS: dict[str, RoleFamily] = {
    "staff": RoleFamily.STAFF,
    "students": RoleFamily.STUDENTS,
    "parents": RoleFamily.PARENTS,
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def role_family(role: str) -> RoleFamily:
    """Map one raw role name to its family."""
    name = (role or "").strip().lower()
    if name in _EXACT_ROLES:
        return _EXACT_ROLES[name]

    for token in _NON_ALNUM.split(name):
        if token in _KEYWORDS:
            return _KEYWORDS[token]
    return RoleFamily.INVALID


def reduce_roles(
    roles: Iterable[str],
    allowed: Iterable[RoleFamily] | None = None,
) -> set[RoleFamily]:
    """
    Reduce raw roles to the set of families they belong to.

    Args:
        roles: Raw requester roles
        allowed: Families to keep; any other family collapses to INVALID
    """
    families = {role_family(r) for r in roles}
    if allowed is not None:
        keep = set(allowed)
        families = {f if f in keep else RoleFamily.INVALID for f in families}
    return families
