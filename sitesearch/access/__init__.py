"""Query-time access control for synced documents."""

from sitesearch.access.evaluator import AccessDecision, AccessEvaluator, Requester
from sitesearch.access.roles import RoleFamily, reduce_roles, role_family

__all__ = [
    "AccessDecision",
    "AccessEvaluator",
    "Requester",
    "RoleFamily",
    "reduce_roles",
    "role_family",
]
