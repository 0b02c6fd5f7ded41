"""Tests for customer resolution and management."""

from datetime import datetime, timedelta, timezone

import pytest

from autocrm.db.models import Customer
from autocrm.services import customer_service
from autocrm.services.errors import CustomerAlreadyExists, CustomerResolutionError


def test_resolve_customer_creates_with_local_part_name(db):
    customer, created = customer_service.resolve_customer(db, " Foo@Bar.com ")
    db.commit()

    assert created is True
    assert customer.email == "foo@bar.com"
    assert customer.name == "foo"


def test_resolve_customer_is_idempotent_per_normalized_address(db):
    first, created_first = customer_service.resolve_customer(db, "foo@bar.com")
    db.commit()
    second, created_second = customer_service.resolve_customer(db, "  FOO@bar.COM")
    db.commit()

    assert created_first is True
    assert created_second is False
    assert first.id == second.id
    assert db.query(Customer).count() == 1


def test_resolve_customer_picks_oldest_duplicate(db):
    now = datetime.now(timezone.utc)
    newer = Customer(name="newer", email="dup@example.com", created_at=now)
    older = Customer(name="older", email="dup@example.com", created_at=now - timedelta(days=1))
    db.add_all([newer, older])
    db.commit()

    customer, created = customer_service.resolve_customer(db, "dup@example.com")

    assert created is False
    assert customer.id == older.id


@pytest.mark.parametrize("address", [None, "", "   "])
def test_resolve_customer_rejects_empty_address(db, address):
    with pytest.raises(CustomerResolutionError):
        customer_service.resolve_customer(db, address)


def test_create_customer_rejects_duplicate_email(db):
    customer_service.create_customer(db, email="a@b.com", name="A")

    with pytest.raises(CustomerAlreadyExists):
        customer_service.create_customer(db, email=" A@B.com ")


def test_list_customers_filters_by_query(db):
    customer_service.create_customer(db, email="alice@example.com", name="Alice")
    customer_service.create_customer(db, email="bob@example.com", name="Bob")

    results = customer_service.list_customers(db, q="ALI")

    assert [c.email for c in results] == ["alice@example.com"]
