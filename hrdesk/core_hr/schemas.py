"""Core HR Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Response / *Detail → response bodies (read)
  - *Statistics        → reporting rows
"""


from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from hrdesk.common.constants import EmploymentStatus


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    description: Optional[str] = Field(None, max_length=500)
    manager_id: Optional[int] = None


class DepartmentUpdate(BaseModel):
    """Partial update; blank strings leave the stored value untouched."""

    name: Optional[str] = Field(None, max_length=100)
    code: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=500)
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None


class DepartmentResponse(BaseModel):
    """Full department representation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    description: Optional[str] = None
    manager_id: Optional[int] = None
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None


class DepartmentDetail(DepartmentResponse):
    employee_count: int = 0


class DepartmentStatistics(BaseModel):
    department_id: int
    department_name: str
    department_code: str
    total_employees: int
    active_employees: int
    on_leave_employees: int
    average_salary: Decimal


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    """Payload for creating an employee (HR / Admin only).

    ``username`` + ``password`` are optional; when both are given a linked
    login account with the ``employee`` role is created.
    """

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    phone: str = Field("", max_length=20)
    date_of_birth: Optional[date] = None
    gender: str = Field("", max_length=10)
    address: str = Field("", max_length=500)
    city: str = Field("", max_length=50)
    state: str = Field("", max_length=50)
    zip_code: str = Field("", max_length=20)
    country: str = Field("", max_length=50)

    department_id: int
    designation: str = Field("", max_length=100)
    hire_date: date
    salary: Decimal = Field(Decimal("0"), ge=0)
    manager_id: Optional[int] = None

    username: Optional[str] = Field(None, min_length=3, max_length=50)
    password: Optional[str] = Field(None, min_length=6, max_length=128)


class EmployeeUpdate(BaseModel):
    """Partial update; blank strings are ignored."""

    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=10)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=50)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=50)

    department_id: Optional[int] = None
    designation: Optional[str] = Field(None, max_length=100)
    salary: Optional[Decimal] = Field(None, ge=0)
    status: Optional[EmploymentStatus] = None


class EmployeeResponse(BaseModel):
    """Employee representation with the department name resolved."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_code: str
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    date_of_birth: Optional[date] = None
    gender: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    department_id: int
    department_name: str = ""
    designation: str = ""
    hire_date: date
    termination_date: Optional[datetime] = None
    status: EmploymentStatus
    salary: Decimal
    user_id: Optional[int] = None

    created_at: datetime
    updated_at: Optional[datetime] = None


class EmployeeStatistics(BaseModel):
    department_name: str
    employee_count: int
    average_salary: Decimal
    active_count: int
    on_leave_count: int


class DepartmentSalaryTotal(BaseModel):
    department_id: int
    total_salary: Decimal


class ActiveEmployeeCount(BaseModel):
    active_employee_count: int
