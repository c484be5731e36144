import logging
from typing import List, Optional

from catalog_backend.interface.books import BookQuery
from catalog_backend.interface.filter import FilterExpression, and_filter, or_filter
from catalog_backend.permissions.core import AccessPolicy, get_access_policy
from catalog_backend.permissions.principal import AccessRule, CatalogUser

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["learning_area", "publisher", "title"]


class BookFilterBuilder:
    """Turns the access policy plus caller filters into one filter expression"""

    def __init__(self, policy: Optional[AccessPolicy] = None):
        self.policy = policy or get_access_policy()

    @property
    def facts(self):
        return self.policy.facts

    def search_condition(self, search: Optional[str]) -> Optional[FilterExpression]:
        if not search:
            return None
        return or_filter(*[{field: {"icontains": search}} for field in SEARCH_FIELDS])

    def rule_condition(self, user: CatalogUser, rule: AccessRule) -> FilterExpression:
        """Query-time equivalent of AccessPolicy.area_matches/grade_matches for one rule"""
        username = user.normalized_username
        restricted_area = self.facts.restricted_area
        may_edit_restricted = self.facts.may_edit_restricted_area(username)

        condition: FilterExpression = {}

        if rule.is_wildcard:
            if not may_edit_restricted:
                condition["learning_area"] = {"not_in": [restricted_area]}
        else:
            areas = [
                area for area in rule.learning_areas
                if may_edit_restricted or area != restricted_area
            ]
            condition["learning_area"] = {"in": areas}

        limited = self.facts.limited_grades(username)
        if limited is not None:
            condition["grade_level"] = {"in": list(limited)}
        elif rule.grade_levels:
            condition["grade_level"] = {"in": list(rule.grade_levels)}

        return condition

    def creator_condition(self, user: CatalogUser) -> FilterExpression:
        condition: FilterExpression = {"created_by": {"ieq": user.username}}

        limited = self.facts.limited_grades(user.normalized_username)
        if limited is not None:
            condition["grade_level"] = {"in": list(limited)}

        return condition

    def access_condition(self, user: Optional[CatalogUser], admin_view: bool = False) -> Optional[FilterExpression]:
        if self.policy.may_view_unrestricted(user, admin_view):
            return None

        creator_condition = self.creator_condition(user)

        if len(user.access_rules) == 0:
            # Without rules only the user's own records are visible
            return creator_condition

        rule_conditions = [self.rule_condition(user, rule) for rule in user.access_rules]

        return or_filter(or_filter(*rule_conditions), creator_condition)

    def learning_area_condition(self, user: Optional[CatalogUser], requested: List[str]) -> FilterExpression:
        areas = list(requested)
        restricted_area = self.facts.restricted_area

        if (
            user is not None
            and restricted_area in areas
            and not self.policy.is_full_administrator(user)
            and not self.facts.may_view_restricted_area(user.normalized_username)
        ):
            logger.warning(f"Unauthorized {restricted_area} data view attempt by {user.username}")
            areas = [area for area in areas if area != restricted_area]

        # An emptied list still has to match nothing
        return {"learning_area": {"in": areas}}

    def grade_level_condition(self, user: Optional[CatalogUser], requested: List[int]) -> FilterExpression:
        grades = [int(grade) for grade in requested]

        if user is not None:
            limited = self.facts.limited_grades(user.normalized_username)
            if limited is not None:
                grades = [grade for grade in grades if grade in limited]

        return {"grade_level": {"in": grades}}

    def build_filter(self, user: Optional[CatalogUser], params: BookQuery) -> FilterExpression:

        conditions = [
            self.search_condition(params.search),
            self.access_condition(user, bool(params.admin_view)),
        ]

        if params.status:
            conditions.append({"status": {"in": list(params.status)}})

        if params.learning_area:
            conditions.append(self.learning_area_condition(user, params.learning_area))

        if params.grade_level:
            conditions.append(self.grade_level_condition(user, params.grade_level))

        if params.publisher:
            conditions.append({"publisher": {"in": list(params.publisher)}})

        return and_filter(*conditions)


def build_filter(user: Optional[CatalogUser], params: BookQuery) -> FilterExpression:
    return BookFilterBuilder().build_filter(user, params)
