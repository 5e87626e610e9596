"""Employee Pydantic v2 schemas: request / response validation."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class EmployeeBrief(BaseModel):
    """Minimal employee info embedded in leave responses."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    display_name: str
    manager_id: Optional[str] = None


class EmployeeCreate(BaseModel):
    """Registration payload. ``employee_id`` is generated when omitted."""

    employee_id: Optional[str] = Field(None, min_length=1, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    department: Optional[str] = Field(None, max_length=100)
    manager_id: Optional[str] = Field(None, max_length=20)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class EmployeeUpdate(BaseModel):
    """Only name and manager may change after registration."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    manager_id: Optional[str] = Field(None, max_length=20)


class EmployeeOut(BaseModel):
    """Full employee representation."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    first_name: str
    last_name: str
    display_name: str
    email: str
    department: str
    manager_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
