"""
Access policy evaluation for catalog records.

Combines the declarative access rules of a user with the per-account override
tables. Evaluation never raises; callers turn a ``False`` into a
``ForbiddenException`` where a mutation requires it.
"""

from typing import Optional

from catalog_backend.permissions.facts import AccessPolicyFacts, get_policy_facts
from catalog_backend.permissions.principal import AccessRule, CatalogUser


class AccessPolicy:

    def __init__(self, facts: Optional[AccessPolicyFacts] = None):
        self.facts = facts or AccessPolicyFacts()

    def is_full_administrator(self, user: Optional[CatalogUser]) -> bool:
        if user is None:
            return False
        if self.facts.is_admin_denied(user.normalized_username):
            return False
        return user.has_elevated_flag

    def may_view_unrestricted(self, user: Optional[CatalogUser], admin_view: bool = False) -> bool:
        """True when listings for this user need no access condition at all"""
        if user is None:
            return True
        if self.is_full_administrator(user):
            return True
        return bool(admin_view) and user.has_elevated_flag

    def area_matches(self, user: CatalogUser, rule: AccessRule, learning_area: str) -> bool:
        if not rule.grants_area(learning_area):
            return False
        if learning_area == self.facts.restricted_area:
            return self.facts.may_edit_restricted_area(user.normalized_username)
        return True

    def grade_matches(self, user: CatalogUser, rule: AccessRule, grade_level: int) -> bool:
        limited = self.facts.limited_grades(user.normalized_username)
        if limited is not None:
            return grade_level in limited
        return rule.grants_grade(grade_level)

    def may_access(self, user: Optional[CatalogUser], learning_area: str, grade_level: int) -> bool:
        # Internal callers act without an identity
        if user is None:
            return True

        if len(user.access_rules) == 0:
            return False

        for rule in user.access_rules:
            if self.area_matches(user, rule, learning_area) and self.grade_matches(user, rule, grade_level):
                return True

        return False

    def may_modify(self, user: Optional[CatalogUser], created_by: Optional[str],
                   learning_area: str, grade_level: int) -> bool:
        """Creator, full administrator, or a rule covering the record's current placement"""
        if user is None:
            return True
        return (
            user.is_creator_of(created_by)
            or self.is_full_administrator(user)
            or self.may_access(user, learning_area, grade_level)
        )

    def may_relocate(self, user: Optional[CatalogUser], created_by: Optional[str],
                     learning_area: str, grade_level: int) -> bool:
        """Whether a record may be moved to the given area and grade"""
        if user is None or self.is_full_administrator(user):
            return True
        if user.is_creator_of(created_by):
            return True
        return self.may_access(user, learning_area, grade_level)


_access_policy: Optional[AccessPolicy] = None


def get_access_policy() -> AccessPolicy:
    global _access_policy
    if _access_policy is None:
        _access_policy = AccessPolicy(get_policy_facts())
    return _access_policy


def is_full_administrator(user: Optional[CatalogUser]) -> bool:
    return get_access_policy().is_full_administrator(user)


def may_access(user: Optional[CatalogUser], learning_area: str, grade_level: int) -> bool:
    return get_access_policy().may_access(user, learning_area, grade_level)
