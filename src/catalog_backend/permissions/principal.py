from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog_backend.permissions.facts import WILDCARD_AREA

ADMINISTRATOR_ROLE = "Administrator"
USER_ROLES = ["Administrator", "Facilitator", "Evaluator"]


class AccessRule(BaseModel):
    """Grants the learning areas x grade levels it lists"""

    learning_areas: List[str] = Field(default_factory=list)
    # Empty means every grade
    grade_levels: Optional[List[int]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD_AREA in self.learning_areas

    def grants_area(self, learning_area: str) -> bool:
        return self.is_wildcard or learning_area in self.learning_areas

    def grants_grade(self, grade_level: int) -> bool:
        return not self.grade_levels or grade_level in self.grade_levels


class CatalogUser(BaseModel):
    """Identity of the acting user, fixed for the duration of a request"""

    username: str
    name: Optional[str] = None
    role: str = "Facilitator"
    is_admin_access: bool = False
    access_rules: List[AccessRule] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @field_validator("access_rules", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return value or []

    @property
    def normalized_username(self) -> str:
        return (self.username or "").strip().lower()

    @property
    def display_name(self) -> str:
        return self.name or self.username

    @property
    def has_elevated_flag(self) -> bool:
        """Role or flag based elevation, ignoring the admin denylist"""
        return self.role == ADMINISTRATOR_ROLE or self.is_admin_access

    def is_creator_of(self, created_by: Optional[str]) -> bool:
        if created_by is None:
            return False
        return self.normalized_username == created_by.strip().lower()
