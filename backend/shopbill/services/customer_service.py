# Overview: Customer records looked up by phone at the billing counter.

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Customer
from ..validation import ModelValidationPolicy, validate_payload
from .transactions import atomic

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "address", "notes"},
    required_on_create={"phone"},
    blank_to_null={"name", "address", "notes"},
)


def _validated(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=partial)
    phone = patch.get("phone")
    if phone is not None and not phone.isdigit():
        raise ValidationError("phone must contain digits only")
    return patch


def list_customers(session) -> list[Customer]:
    return session.query(Customer).order_by(Customer.created_at.desc(), Customer.id.desc()).all()


def get_customer(session, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})
    return customer


def get_customer_by_phone(session, phone: str) -> Customer | None:
    if not phone:
        return None
    return session.query(Customer).filter(Customer.phone == phone.strip()).first()


def create_customer(session, payload: dict) -> Customer:
    patch = _validated(payload, partial=False)
    with atomic(session):
        if get_customer_by_phone(session, patch["phone"]) is not None:
            raise ConflictError("phone already exists", details={"phone": patch["phone"]})
        customer = Customer(**patch)
        session.add(customer)
        session.flush()
    return customer


def update_customer(session, customer_id: int, payload: dict) -> Customer:
    patch = _validated(payload, partial=True)
    with atomic(session):
        customer = get_customer(session, customer_id)
        if "phone" in patch:
            other = get_customer_by_phone(session, patch["phone"])
            if other is not None and other.id != customer_id:
                raise ConflictError("phone already exists", details={"phone": patch["phone"]})
        for key, value in patch.items():
            setattr(customer, key, value)
    return customer


def get_or_create_customer(session, phone: str, name: str | None = None) -> Customer:
    """Counter flow: reuse the customer with this phone, or register a new one."""
    existing = get_customer_by_phone(session, phone)
    if existing is not None:
        return existing
    return create_customer(session, {"phone": phone, "name": name})
