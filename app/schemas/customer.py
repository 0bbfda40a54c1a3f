from pydantic import EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional, List

from app.schemas.common import CamelModel


def _normalize_email(value: Optional[str]) -> Optional[str]:
    return value.strip().lower() if value else value


class CustomerCreate(CamelModel):
    """Schema for creating a customer. Contact name and email are required."""
    contact_name: str = Field(..., min_length=1, max_length=150)
    company_name: Optional[str] = Field(None, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=30)
    notes: Optional[str] = None

    @field_validator("email", mode="after")
    @classmethod
    def _lowercase_email(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_email(value)


class CustomerUpdate(CamelModel):
    """Schema for updating a customer. Only supplied fields change."""
    contact_name: Optional[str] = Field(None, min_length=1, max_length=150)
    company_name: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("email", mode="after")
    @classmethod
    def _lowercase_email(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_email(value)


class CustomerResponse(CamelModel):
    id: int
    contact_name: str
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CustomerListResponse(CamelModel):
    """Paginated customer list response."""
    items: List[CustomerResponse]
    total: int
    page: int
    page_size: int


class CustomerLookupResult(CamelModel):
    found: bool
    customer: Optional[CustomerResponse] = None
