"""
Declarative filter expressions.

An expression is a plain dict tree that can be compared, hashed into cache
keys and logged before it is turned into SQL:

    {"and": [expr, ...]}
    {"or": [expr, ...]}
    {"field": {"operator": value, ...}, "other_field": value}

An empty field map matches every row.
"""

from typing import Any, Dict
from sqlalchemy import and_, or_, func, true, false

FilterExpression = Dict[str, Any]

MATCH_ALL: FilterExpression = {}


def and_filter(*conditions: FilterExpression) -> FilterExpression:
    conditions = [c for c in conditions if c is not None]
    if len(conditions) == 0:
        return MATCH_ALL
    if len(conditions) == 1:
        return conditions[0]
    return {"and": list(conditions)}


def or_filter(*conditions: FilterExpression) -> FilterExpression:
    conditions = [c for c in conditions if c is not None]
    if len(conditions) == 1:
        return conditions[0]
    return {"or": list(conditions)}


def _operator_condition(column, operator: str, value: Any):

    if operator == "startswith":
        return column.startswith(value)
    elif operator == "endswith":
        return column.endswith(value)
    elif operator == "contains":
        return column.contains(value)
    elif operator == "icontains":
        return column.icontains(value, autoescape=True)
    elif operator == "eq":
        return column == value
    elif operator == "ieq":
        return func.lower(column) == str(value).lower()
    elif operator == "neq":
        return column != value
    elif operator == "gt":
        return column > value
    elif operator == "geq":
        return column >= value
    elif operator == "lt":
        return column < value
    elif operator == "leq":
        return column <= value
    elif operator == 'in':
        return column.in_(value)
    elif operator == 'not_in':
        return ~column.in_(value)
    elif operator == 'like':
        return column.like(value)
    elif operator == 'ilike':
        return column.ilike(value)
    elif operator == 'between':
        return column.between(value[0], value[1])
    elif operator == 'is_null':
        return column.is_(None)
    elif operator == 'not_null':
        return column.isnot(None)

    raise ValueError(f"Unsupported filter operator [{operator}]")


def apply_filters(model, filters: FilterExpression):
    """Translate a filter expression into a SQLAlchemy boolean clause"""

    if "or" in filters:
        or_conditions = [apply_filters(model, sub_filter) for sub_filter in filters["or"]]
        return or_(*or_conditions) if or_conditions else false()

    if "and" in filters:
        and_conditions = [apply_filters(model, sub_filter) for sub_filter in filters["and"]]
        return and_(*and_conditions) if and_conditions else true()

    filter_conditions = []
    for field, condition in filters.items():

        column = getattr(model, field)

        if isinstance(condition, dict):
            for operator, value in condition.items():
                filter_conditions.append(_operator_condition(column, operator, value))
        else:
            filter_conditions.append(column == condition)

    return and_(*filter_conditions) if filter_conditions else true()
