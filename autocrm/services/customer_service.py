"""Customer lookup and creation."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from autocrm.db.models import Customer
from autocrm.services.errors import CustomerAlreadyExists, CustomerResolutionError
from autocrm.utils.normalization import email_local_part, normalize_email

logger = logging.getLogger(__name__)


def find_customer_by_email(db: Session, email: str) -> Customer | None:
    """Exact match on a normalized address; the oldest record wins."""
    return (
        db.query(Customer)
        .filter(Customer.email == email)
        .order_by(Customer.created_at.asc(), Customer.id.asc())
        .first()
    )


def resolve_customer(db: Session, address: str | None) -> tuple[Customer, bool]:
    """
    Find the customer for a sender address, creating one if absent.

    The address is trimmed and lower-cased before lookup. New customers are
    named after the local part of the address. Lookup-before-create is the
    only dedup; concurrent first emails from one address can both create.

    Returns:
        (customer, created)

    Raises:
        CustomerResolutionError: empty address or the insert produced no row
    """
    email = normalize_email(address)
    if not email:
        raise CustomerResolutionError("Sender address is empty")

    customer = find_customer_by_email(db, email)
    if customer is not None:
        return customer, False

    customer = Customer(email=email, name=email_local_part(email))
    db.add(customer)
    db.flush()
    if customer.id is None:
        raise CustomerResolutionError("Customer creation returned no data")
    logger.info("Created customer %s", customer.id)
    return customer, True


def create_customer(
    db: Session,
    *,
    email: str,
    name: str | None = None,
    phone: str | None = None,
    company: str | None = None,
) -> Customer:
    """Create a customer from the agent UI. Raises CustomerAlreadyExists on duplicate email."""
    normalized = normalize_email(email)
    if not normalized:
        raise ValueError("Email is required")
    if find_customer_by_email(db, normalized) is not None:
        raise CustomerAlreadyExists(f"Customer with email {normalized} already exists")

    customer = Customer(
        email=normalized,
        name=(name or "").strip() or email_local_part(normalized),
        phone=phone,
        company=company,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def list_customers(db: Session, *, q: str | None = None, limit: int = 50) -> list[Customer]:
    query = db.query(Customer)
    if q:
        pattern = f"%{q.strip().lower()}%"
        query = query.filter(or_(Customer.email.like(pattern), Customer.name.ilike(pattern)))
    return query.order_by(Customer.created_at.desc()).limit(limit).all()


def get_customer(db: Session, customer_id: UUID) -> Customer | None:
    return (
        db.query(Customer)
        .options(selectinload(Customer.tickets))
        .filter(Customer.id == customer_id)
        .first()
    )
