"""
Per-account access overrides.

These tables tighten what an account's declarative access rules grant. They
are data, not code: the defaults below can be replaced at startup by pointing
``ACCESS_POLICY_FILE`` at a YAML document with the same keys.
"""

import logging
from functools import lru_cache
from typing import Dict, List, Optional, Set

import yaml
from pydantic import BaseModel, Field, field_validator

from catalog_backend.settings import settings

logger = logging.getLogger(__name__)

WILDCARD_AREA = "*"


class AccessPolicyFacts(BaseModel):
    """Override tables keyed by lower-cased username"""

    # Accounts that never count as full administrators, whatever their role or flag
    admin_denylist: Set[str] = Field(default_factory=lambda: {"jc", "nonie"})

    # Accounts limited to these grades regardless of their rules
    grade_limited: Dict[str, List[int]] = Field(
        default_factory=lambda: {"jc": [1, 3], "nonie": [1, 3]}
    )

    # Learning area that needs an explicit allow-list on top of the rules
    restricted_area: str = "Science"

    # Accounts whose rules may grant the restricted area
    restricted_area_editors: Set[str] = Field(
        default_factory=lambda: {"leo", "jc", "nonie", "test-user"}
    )

    # Accounts that may explicitly filter listings by the restricted area
    restricted_area_viewers: Set[str] = Field(
        default_factory=lambda: {"leo", "test-user"}
    )

    @field_validator("admin_denylist", "restricted_area_editors", "restricted_area_viewers", mode="before")
    @classmethod
    def lower_usernames(cls, value):
        if value is None:
            return set()
        return {str(username).strip().lower() for username in value}

    @field_validator("grade_limited", mode="before")
    @classmethod
    def lower_grade_keys(cls, value):
        if value is None:
            return {}
        return {str(username).strip().lower(): list(grades) for username, grades in value.items()}

    def is_admin_denied(self, username: str) -> bool:
        return username in self.admin_denylist

    def limited_grades(self, username: str) -> Optional[List[int]]:
        return self.grade_limited.get(username)

    def may_edit_restricted_area(self, username: str) -> bool:
        return username in self.restricted_area_editors

    def may_view_restricted_area(self, username: str) -> bool:
        return username in self.restricted_area_viewers


def load_policy_facts(path: Optional[str] = None) -> AccessPolicyFacts:
    """Read override tables from a YAML file; missing keys keep their defaults"""

    if path is None:
        return AccessPolicyFacts()

    with open(path, "r") as file:
        raw = yaml.safe_load(file) or {}

    logger.info(f"Loaded access policy overrides from {path}")
    return AccessPolicyFacts(**raw)


@lru_cache(maxsize=1)
def get_policy_facts() -> AccessPolicyFacts:
    return load_policy_facts(settings.ACCESS_POLICY_FILE)
