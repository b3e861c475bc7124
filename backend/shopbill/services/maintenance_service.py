# Overview: Administrative purges and row counts; every reset is a single transaction.

from __future__ import annotations

from sqlalchemy import func

from ..models import Bill, Category, Customer, Product, ShopSetting, User
from .transactions import atomic
from .user_service import ensure_super_admin_inner


def database_stats(session) -> dict:
    def count(model) -> int:
        return int(session.query(func.count(model.id)).scalar() or 0)

    return {
        "users": count(User),
        "categories": count(Category),
        "products": count(Product),
        "bills": count(Bill),
        "customers": count(Customer),
    }


def reset_transactional_data(session, *, include_customers: bool = False) -> dict:
    """
    Purge bills (and optionally customers). Catalog, stock and users stay.

    Stock is not restored: this clears sales history, it does not undo sales.
    """
    with atomic(session):
        deleted = {"bills": session.query(Bill).delete(synchronize_session=False)}
        if include_customers:
            deleted["customers"] = session.query(Customer).delete(synchronize_session=False)
    session.expire_all()
    return deleted


def reset_all(session, *, super_admin: dict) -> dict:
    """
    Purge bills, customers, catalog, settings and every non-super_admin user.

    Existing super_admin accounts survive. If none exists the default one is
    created (`super_admin` holds username, phone and pin) in the same
    transaction, so no reader ever observes a database without one.
    """
    with atomic(session):
        deleted = {
            "bills": session.query(Bill).delete(synchronize_session=False),
            "customers": session.query(Customer).delete(synchronize_session=False),
            "products": session.query(Product).delete(synchronize_session=False),
            "categories": session.query(Category).delete(synchronize_session=False),
            "settings": session.query(ShopSetting).delete(synchronize_session=False),
            "users": session.query(User).filter(User.role != "super_admin").delete(synchronize_session=False),
        }
        keeper = ensure_super_admin_inner(
            session,
            username=super_admin["username"],
            phone=super_admin["phone"],
            pin=super_admin["pin"],
        )
        deleted["super_admin_id"] = keeper.id
    session.expire_all()
    return deleted
