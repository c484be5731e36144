from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

class BookStatus(str, Enum):
    FOR_EVALUATION = "For Evaluation"
    FOR_REVISION = "For Revision"
    FOR_ROR = "For ROR"
    FOR_FINALIZATION = "For Finalization"
    FOR_FRR = "For FRR and Signing Off"
    FINAL_REVISED_COPY = "Final Revised copy"
    NOT_FOUND = "NOT FOUND"
    RETURNED = "RETURNED"
    DQ_FOR_RETURN = "DQ/FOR RETURN"
    IN_PROGRESS = "In Progress"
    RTP = "RTP"

# Public (camelCase or snake_case) sort keys mapped to book columns
SORT_FIELDS = {
    "book_code": "book_code",
    "bookCode": "book_code",
    "learning_area": "learning_area",
    "learningArea": "learning_area",
    "grade_level": "grade_level",
    "gradeLevel": "grade_level",
    "publisher": "publisher",
    "title": "title",
    "status": "status",
    "created_at": "created_at",
    "createdAt": "created_at",
    "updated_at": "updated_at",
    "updatedAt": "updated_at",
}

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

# Remarks

class RemarkCreate(BaseModel):
    text: str = Field(min_length=1, max_length=1000)
    timestamp: Optional[datetime] = None
    from_party: Optional[str] = Field(None, alias="from", max_length=100)
    to_party: Optional[str] = Field(None, alias="to", max_length=100)
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    status: Optional[str] = Field(None, max_length=1000)
    days_delay_deped: Optional[int] = Field(None, ge=0)
    days_delay_publisher: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(populate_by_name=True)

class RemarkUpdate(BaseModel):
    text: Optional[str] = Field(None, min_length=1, max_length=1000)
    timestamp: Optional[datetime] = None
    from_party: Optional[str] = Field(None, alias="from", max_length=100)
    to_party: Optional[str] = Field(None, alias="to", max_length=100)
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    status: Optional[str] = Field(None, max_length=1000)
    days_delay_deped: Optional[int] = Field(None, ge=0)
    days_delay_publisher: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(populate_by_name=True)

class RemarkGet(BaseModel):
    id: int
    book_code: str
    text: str
    timestamp: datetime
    created_by: Optional[str] = None
    from_party: Optional[str] = Field(None, serialization_alias="from")
    to_party: Optional[str] = Field(None, serialization_alias="to")
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    status: Optional[str] = None
    days_delay_deped: Optional[int] = None
    days_delay_publisher: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

# Books

class BookCreate(BaseModel):
    book_code: Optional[str] = Field(None, max_length=50)
    learning_area: str = Field(max_length=100)
    grade_level: int = Field(ge=1, le=12)
    publisher: str = Field(max_length=200)
    title: str = Field(max_length=500)
    status: BookStatus = BookStatus.FOR_EVALUATION
    is_new: Optional[bool] = True
    ntp_date: Optional[datetime] = None
    remark: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("ntp_date", mode="before")
    @classmethod
    def blank_date_as_none(cls, value):
        return None if value == "" else value

class BookUpdate(BaseModel):
    book_code: Optional[str] = Field(None, max_length=50)
    learning_area: Optional[str] = Field(None, max_length=100)
    grade_level: Optional[int] = Field(None, ge=1, le=12)
    publisher: Optional[str] = Field(None, max_length=200)
    title: Optional[str] = Field(None, max_length=500)
    status: Optional[BookStatus] = None
    is_new: Optional[bool] = None
    ntp_date: Optional[datetime] = None
    remark: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("ntp_date", mode="before")
    @classmethod
    def blank_date_as_none(cls, value):
        return None if value == "" else value

    @model_validator(mode="after")
    def at_least_one_field(self):
        if len(self.model_fields_set) == 0:
            raise ValueError("At least one field must be provided")
        return self

class BookGet(BaseModel):
    id: int
    book_code: str
    learning_area: str
    grade_level: int
    publisher: str
    title: str
    status: str
    is_new: bool
    ntp_date: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    remarks: List[RemarkGet] = Field(default_factory=list)
    remarks_count: int = 0

    model_config = ConfigDict(from_attributes=True)

# Listing

class BookQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=1000)
    sort_by: str = "created_at"
    sort_order: SortOrder = SortOrder.DESC
    search: Optional[str] = Field(None, max_length=500)
    status: Optional[List[str]] = None
    learning_area: Optional[List[str]] = None
    grade_level: Optional[List[int]] = None
    publisher: Optional[List[str]] = None
    has_remarks: Optional[bool] = None
    admin_view: Optional[bool] = None
    cursor: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("sort_by")
    @classmethod
    def known_sort_field(cls, value: str) -> str:
        if value not in SORT_FIELDS:
            raise ValueError(f"sortBy must be one of {sorted(SORT_FIELDS)}")
        return SORT_FIELDS[value]

    @field_validator("grade_level")
    @classmethod
    def grades_in_range(cls, value):
        if value is None:
            return value
        for grade in value:
            if grade < 1 or grade > 12:
                raise ValueError("gradeLevel must be between 1 and 12")
        return value

    @field_validator("search", "cursor", mode="before")
    @classmethod
    def blank_as_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

class Pagination(BaseModel):
    current_page: int = Field(serialization_alias="currentPage")
    total_pages: int = Field(serialization_alias="totalPages")
    total_items: int = Field(serialization_alias="totalItems")
    items_per_page: int = Field(serialization_alias="itemsPerPage")
    has_next: bool = Field(serialization_alias="hasNext")
    has_prev: bool = Field(serialization_alias="hasPrev")

class FilterOptions(BaseModel):
    available_statuses: List[str] = Field(default_factory=list, serialization_alias="availableStatuses")
    available_learning_areas: List[str] = Field(default_factory=list, serialization_alias="availableLearningAreas")
    available_publishers: List[str] = Field(default_factory=list, serialization_alias="availablePublishers")
    grade_levels: List[int] = Field(default_factory=list, serialization_alias="gradeLevels")

class BookListResponse(BaseModel):
    success: bool = True
    data: List[BookGet]
    pagination: Pagination
    filters: FilterOptions

class BookResponse(BaseModel):
    success: bool = True
    data: BookGet
    message: Optional[str] = None

class RemarkResponse(BaseModel):
    success: bool = True
    data: RemarkGet
    message: Optional[str] = None

class MessageResponse(BaseModel):
    success: bool = True
    message: str
