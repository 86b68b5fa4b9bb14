"""Employee models for the directory store and the org-chart views."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_OPTIONAL_TEXT_FIELDS = ("email", "phone", "department", "bio", "image_url", "linkedin_url", "manager_id")


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _clean_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, populated by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmployeeRecord(CamelModel):
    """Flat persisted employee document."""

    id: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    designation: str
    department: str | None = None
    bio: str | None = None
    image_url: str | None = None
    linkedin_url: str | None = None
    manager_id: str | None = None
    is_active: bool = True
    sort_order: int = 0
    joined_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ManagerSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    designation: str
    image_url: str | None = None


class EmployeeDetail(EmployeeRecord):
    """Single employee with their manager and direct reports resolved."""

    manager: ManagerSummary | None = None
    reports: list[ManagerSummary] = []


class EmployeeCreate(CamelModel):
    first_name: str
    last_name: str
    designation: str
    email: str | None = None
    phone: str | None = None
    department: str | None = None
    bio: str | None = None
    image_url: str | None = None
    linkedin_url: str | None = None
    manager_id: str | None = None
    is_active: bool = True
    sort_order: int = 0
    joined_at: datetime | None = None

    @field_validator("first_name", "last_name", "designation")
    @classmethod
    def _required_text(cls, value: str) -> str:
        return _clean_required(value)

    @field_validator(*_OPTIONAL_TEXT_FIELDS)
    @classmethod
    def _optional_text(cls, value: str | None) -> str | None:
        return _clean_optional(value)


class EmployeeUpdate(CamelModel):
    """Partial update; only fields present in the payload are applied."""

    first_name: str | None = None
    last_name: str | None = None
    designation: str | None = None
    email: str | None = None
    phone: str | None = None
    department: str | None = None
    bio: str | None = None
    image_url: str | None = None
    linkedin_url: str | None = None
    manager_id: str | None = None
    is_active: bool | None = None
    sort_order: int | None = None
    joined_at: datetime | None = None

    @field_validator("first_name", "last_name", "designation")
    @classmethod
    def _required_text(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("must not be null")
        return _clean_required(value)

    @field_validator("is_active", "sort_order")
    @classmethod
    def _not_null(cls, value: bool | int | None) -> bool | int | None:
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator(*_OPTIONAL_TEXT_FIELDS)
    @classmethod
    def _optional_text(cls, value: str | None) -> str | None:
        return _clean_optional(value)


class EmployeeListItem(EmployeeRecord):
    """List row with the manager summary and number of direct reports."""

    manager: ManagerSummary | None = None
    reports_count: int = 0


class EmployeePage(CamelModel):
    data: list[EmployeeListItem] = []
    total: int = 0
    total_pages: int = 0
    page: int = 1


class EmployeeNode(CamelModel):
    """Org-chart node wrapping one record and its ordered direct reports."""

    employee: EmployeeRecord
    subordinates: list[EmployeeNode] = []

    @property
    def id(self) -> str:
        return self.employee.id


class HierarchyResponse(CamelModel):
    mode: Literal["tree", "search"]
    forest: list[EmployeeNode] = []
    results: list[EmployeeRecord] = []
    total: int = 0
    total_pages: int = 0
    page: int = Field(default=1, ge=1)
