"""
Access control for synced documents.

Decides whether a requester may see a document. The decision depends on
the document's source:

- quicklink: year levels when the audience is purely numeric, otherwise
  wildcard, exact role, site admin or role-substring matching
- user: staff only (plus site admins)
- external sites: role families must intersect the audience

Every unknown input denies.
"""

import logging
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from sitesearch.access.roles import RoleFamily, reduce_roles
from sitesearch.documents.schemas import QUICKLINK_SOURCE, USER_SOURCE, Document

logger = logging.getLogger(__name__)

WILDCARD = "*"

# The user directory is visible to staff only.
_USER_SOURCE_FAMILIES = (RoleFamily.STAFF,)


class AccessDecision(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"


def _split(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


def _year(value: str) -> str:
    return str(int(value)) if value.isdigit() else value.lower()


class Requester(BaseModel):
    """The person asking to see a document."""

    roles: list[str] = Field(default_factory=list)
    years: list[str] = Field(default_factory=list)
    is_site_admin: bool = False

    @field_validator("roles", mode="before")
    @classmethod
    def _normalize_roles(cls, v):
        return [r.lower() for r in _split(v)]

    @field_validator("years", mode="before")
    @classmethod
    def _normalize_years(cls, v):
        return [_year(y) for y in _split(v)]

    @classmethod
    def from_profile(
        cls,
        campus_roles: str | None,
        year: str | None = None,
        is_site_admin: bool = False,
    ) -> "Requester":
        """Build a requester from comma-separated profile fields."""
        return cls(roles=campus_roles or "", years=year or "", is_site_admin=is_site_admin)


class AccessEvaluator:
    """
    Stateless access decisions.

    Usage:
        evaluator = AccessEvaluator()
        decision = evaluator.decide(doc, Requester.from_profile("Staff", "", False))
    """

    def decide(self, document: Document | None, requester: Requester) -> AccessDecision:
        if document is None:
            return AccessDecision.DENIED

        if document.source == QUICKLINK_SOURCE:
            allowed = self._quicklink(document.audiences, requester)
        elif document.source == USER_SOURCE:
            allowed = requester.is_site_admin or self._families_match(
                document.audiences, requester, allowed=_USER_SOURCE_FAMILIES
            )
        else:
            allowed = self._families_match(document.audiences, requester)

        decision = AccessDecision.GRANTED if allowed else AccessDecision.DENIED
        logger.debug(f"Access {decision.value} for document {document.id} ({document.source})")
        return decision

    def _families_match(
        self,
        audiences: list[str],
        requester: Requester,
        allowed: tuple[RoleFamily, ...] | None = None,
    ) -> bool:
        families = reduce_roles(requester.roles, allowed=allowed)
        families.discard(RoleFamily.INVALID)
        return any(f.value in audiences for f in families)

    def _quicklink(self, audiences: list[str], requester: Requester) -> bool:
        if audiences and all(a.isdigit() for a in audiences):
            link_years = {_year(a) for a in audiences}
            return any(y in link_years for y in requester.years)

        if WILDCARD in audiences or requester.is_site_admin:
            return True
        if any(role in audiences for role in requester.roles):
            return True
        return any(
            token in role
            for token in audiences
            if token
            for role in requester.roles
        )
