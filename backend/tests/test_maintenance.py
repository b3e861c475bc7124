# Overview: Pytest coverage for administrative resets and database stats.

from shopbill.models import Bill, Category, Customer, Product, User
from shopbill.services import maintenance_service, settings_service

SUPER_ADMIN = {"username": "superadmin", "phone": "9999999999", "pin": "0000"}


def test_database_stats(db_session, engine, rice, milk, cashier):
    engine.manager.create_bill([(rice.id, 1)], created_by=cashier.id)
    assert maintenance_service.database_stats(db_session) == {
        "users": 1,
        "categories": 1,
        "products": 2,
        "bills": 1,
        "customers": 0,
    }


def test_reset_transactional_keeps_catalog_and_stock(db_session, engine, rice, cashier):
    customer = Customer(phone="9876543210")
    db_session.add(customer)
    db_session.commit()
    engine.manager.create_bill([(rice.id, 3)], created_by=cashier.id, customer_id=customer.id)

    deleted = maintenance_service.reset_transactional_data(db_session)

    assert deleted == {"bills": 1}
    assert db_session.query(Bill).count() == 0
    assert db_session.query(Customer).count() == 1
    assert db_session.get(Product, rice.id).stock == 97


def test_reset_transactional_with_customers(db_session, engine, rice, cashier):
    db_session.add(Customer(phone="9876543210"))
    db_session.commit()

    deleted = maintenance_service.reset_transactional_data(db_session, include_customers=True)
    assert deleted == {"bills": 0, "customers": 1}
    assert db_session.query(Customer).count() == 0


def test_reset_all_keeps_super_admin(db_session, engine, rice, cashier, super_admin):
    engine.manager.create_bill([(rice.id, 1)], created_by=cashier.id)
    settings_service.upsert_settings(db_session, {"shop_name": "Lakshmi Stores"})

    deleted = maintenance_service.reset_all(db_session, super_admin=SUPER_ADMIN)

    assert deleted["super_admin_id"] == super_admin.id
    assert deleted["users"] == 1
    assert [u.username for u in db_session.query(User).all()] == ["owner"]
    assert db_session.query(Product).count() == 0
    assert db_session.query(Category).count() == 0
    assert db_session.query(Bill).count() == 0
    assert settings_service.get_settings(db_session) is None


def test_reset_all_recreates_default_super_admin(db_session, cashier):
    deleted = maintenance_service.reset_all(db_session, super_admin=SUPER_ADMIN)

    [user] = db_session.query(User).all()
    assert user.id == deleted["super_admin_id"]
    assert user.username == "superadmin"
    assert user.role == "super_admin"
