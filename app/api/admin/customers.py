"""
Customers API - staff management of the customer records quotes link to.

A quote linked to a customer shows the customer's current name and company
and is e-mailed to the customer's address.
"""
from fastapi import APIRouter, Query, status
from sqlalchemy import select, func, or_
from typing import Optional
import logging

from app.api.deps import DbSession, CurrentUser
from app.exceptions import ApiException, BusinessRuleError, ErrorCode, NotFoundError
from app.models.customer import Customer
from app.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
    CustomerLookupResult,
)
from app.services.activity_tracker import track_entity_activity

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_EMAIL = "A customer with this email already exists"


async def _find_by_email(db, email: str) -> Optional[Customer]:
    result = await db.execute(
        select(Customer)
        .where(func.lower(Customer.email) == email.strip().lower())
        .order_by(Customer.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_customer_or_404(db, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    db: DbSession,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = None,
):
    """List customers, newest first, with optional search."""
    query = select(Customer)

    if is_active is not None:
        query = query.where(Customer.is_active == is_active)

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Customer.company_name.ilike(pattern),
                Customer.contact_name.ilike(pattern),
                Customer.email.ilike(pattern),
            )
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    offset = (page - 1) * page_size
    query = query.order_by(Customer.created_at.desc(), Customer.id.desc()).offset(offset).limit(page_size)
    customers = (await db.execute(query)).scalars().all()

    return CustomerListResponse(
        items=[CustomerResponse.model_validate(c) for c in customers],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/lookup", response_model=CustomerLookupResult)
async def lookup_customer(
    db: DbSession,
    current_user: CurrentUser,
    email: Optional[str] = Query(None, max_length=255),
):
    """Find a customer by e-mail, used to link a new quote."""
    if not email or not email.strip():
        raise ApiException("Email is required", status_code=400, code=ErrorCode.VALIDATION_ERROR)

    customer = await _find_by_email(db, email)
    if not customer:
        return CustomerLookupResult(found=False)

    logger.info(
        "Customer lookup by email",
        extra={"user_id": current_user.id, "customer_id": customer.id},
    )
    return CustomerLookupResult(found=True, customer=CustomerResponse.model_validate(customer))


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    db: DbSession,
    current_user: CurrentUser,
):
    if await _find_by_email(db, customer_data.email):
        raise BusinessRuleError(DUPLICATE_EMAIL, ErrorCode.CONFLICT)

    customer = Customer(**customer_data.model_dump(), is_active=True)
    db.add(customer)
    await db.commit()
    await db.refresh(customer)

    logger.info("Customer created", extra={"user_id": current_user.id, "customer_id": customer.id})

    await track_entity_activity(
        db,
        entity_type="CUSTOMER",
        entity_id=str(customer.id),
        activity_type="CREATED",
        user_id=current_user.id,
        new_value={"contactName": customer.contact_name, "email": customer.email},
    )
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    db: DbSession,
    current_user: CurrentUser,
):
    customer = await get_customer_or_404(db, customer_id)
    return CustomerResponse.model_validate(customer)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    db: DbSession,
    current_user: CurrentUser,
):
    """Update a customer. Only supplied fields change."""
    customer = await get_customer_or_404(db, customer_id)

    update_data = customer_data.model_dump(exclude_unset=True)
    if update_data.get("contact_name", "") is None:
        raise ApiException("Contact name cannot be empty", status_code=400, code=ErrorCode.VALIDATION_ERROR)
    if "email" in update_data:
        if update_data["email"] is None:
            raise ApiException("Email cannot be empty", status_code=400, code=ErrorCode.VALIDATION_ERROR)
        existing = await _find_by_email(db, update_data["email"])
        if existing and existing.id != customer.id:
            raise BusinessRuleError(DUPLICATE_EMAIL, ErrorCode.CONFLICT)

    previous = {field: getattr(customer, field) for field in update_data}
    for field, value in update_data.items():
        setattr(customer, field, value)

    await db.commit()
    await db.refresh(customer)

    changes = [field for field, value in previous.items() if value != getattr(customer, field)]
    if changes:
        logger.info(
            "Customer updated",
            extra={"user_id": current_user.id, "customer_id": customer.id, "fields": changes},
        )
        await track_entity_activity(
            db,
            entity_type="CUSTOMER",
            entity_id=str(customer.id),
            activity_type="UPDATED",
            user_id=current_user.id,
            old_value={field: previous[field] for field in changes},
            new_value={field: getattr(customer, field) for field in changes},
        )

    return CustomerResponse.model_validate(customer)
