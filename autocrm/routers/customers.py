"""Customer list/detail/create APIs."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from autocrm.core.deps import get_db, require_agent_token
from autocrm.schemas.crm import CustomerCreate, CustomerDetail, CustomerRead
from autocrm.services import customer_service
from autocrm.services.errors import CustomerAlreadyExists

router = APIRouter(
    prefix="/api/customers",
    tags=["Customers"],
    dependencies=[Depends(require_agent_token)],
)


@router.get("", response_model=list[CustomerRead])
def list_customers(
    q: str | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    db: Session = Depends(get_db),
) -> list[CustomerRead]:
    """List customers, newest first; `q` matches email or name."""
    customers = customer_service.list_customers(db, q=q, limit=limit)
    return [CustomerRead.model_validate(c) for c in customers]


@router.post("", response_model=CustomerRead, status_code=201)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
) -> CustomerRead:
    try:
        customer = customer_service.create_customer(
            db,
            email=data.email,
            name=data.name,
            phone=data.phone,
            company=data.company,
        )
    except CustomerAlreadyExists as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return CustomerRead.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
) -> CustomerDetail:
    customer = customer_service.get_customer(db, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return CustomerDetail.model_validate(customer)
