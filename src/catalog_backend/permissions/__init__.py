"""
Access control for the book catalog.

Main components:
- facts: per-account override tables, optionally loaded from YAML
- principal: the acting user and its declarative access rules
- core: point checks used by mutations
- query_builders: the same policy expressed as a listing filter
"""

from catalog_backend.permissions.facts import AccessPolicyFacts, get_policy_facts, load_policy_facts
from catalog_backend.permissions.principal import AccessRule, CatalogUser
from catalog_backend.permissions.core import AccessPolicy, get_access_policy, is_full_administrator, may_access
from catalog_backend.permissions.query_builders import BookFilterBuilder, build_filter

__all__ = [
    "AccessPolicyFacts",
    "get_policy_facts",
    "load_policy_facts",
    "AccessRule",
    "CatalogUser",
    "AccessPolicy",
    "get_access_policy",
    "is_full_administrator",
    "may_access",
    "BookFilterBuilder",
    "build_filter",
]
