# Overview: Pytest coverage for sales aggregation and inventory reports.

from datetime import date, datetime

import pytest

from shopbill.errors import ValidationError


@pytest.fixture
def jan_bills(engine, rice, milk, cashier):
    """Three bills: two on 10 Jan (at the day's edges), one on 11 Jan."""
    return [
        engine.manager.create_bill([(rice.id, 2)], created_by=cashier.id,
                                   created_at=datetime(2026, 1, 10, 0, 0, 0)),
        engine.manager.create_bill([(milk.id, 1), (rice.id, 1)], created_by=cashier.id,
                                   created_at=datetime(2026, 1, 10, 23, 59, 59)),
        engine.manager.create_bill([(milk.id, 3)], created_by=cashier.id,
                                   created_at=datetime(2026, 1, 11, 0, 0, 0)),
    ]


class TestSalesInRange:
    def test_range_is_inclusive(self, engine, jan_bills):
        summary = engine.reports.sales_in_range(
            datetime(2026, 1, 10, 0, 0, 0), datetime(2026, 1, 10, 23, 59, 59)
        )
        # 126.00 + (54.00 + 63.00)
        assert summary["bill_count"] == 2
        assert summary["total_revenue_cents"] == 12600 + 11700
        assert summary["total_quantity"] == 4
        assert summary["average_bill_cents"] == 12150
        assert {b.id for b in summary["bills"]} == {jan_bills[0].id, jan_bills[1].id}

    def test_tax_collected(self, engine, jan_bills):
        summary = engine.reports.sales_in_range(datetime(2026, 1, 1), datetime(2026, 1, 31))
        assert summary["bill_count"] == 3
        assert summary["tax_collected_cents"] == sum(b.tax_cents for b in jan_bills)

    def test_empty_range(self, engine, jan_bills):
        summary = engine.reports.sales_in_range(datetime(2025, 1, 1), datetime(2025, 1, 31))
        assert summary["bill_count"] == 0
        assert summary["total_revenue_cents"] == 0
        assert summary["average_bill_cents"] == 0

    def test_start_after_end(self, engine):
        with pytest.raises(ValidationError):
            engine.reports.sales_in_range(datetime(2026, 2, 1), datetime(2026, 1, 1))

    def test_daily_sales(self, engine, jan_bills):
        summary = engine.reports.daily_sales(date(2026, 1, 11))
        assert summary["date"] == "2026-01-11"
        assert summary["total_customers"] == 1
        assert summary["total_products"] == 3
        assert summary["total_revenue_cents"] == 16200

    def test_bills_by_date_newest_first(self, engine, jan_bills):
        bills = engine.ledger.bills_by_date(date(2026, 1, 10))
        assert [b.id for b in bills] == [jan_bills[1].id, jan_bills[0].id]


class TestPerProductStats:
    def test_sorted_by_revenue(self, engine, rice, milk, jan_bills):
        rows = engine.reports.per_product_stats(datetime(2026, 1, 1), datetime(2026, 1, 31))
        assert [r["product_id"] for r in rows] == [milk.id, rice.id]
        assert rows[0]["quantity_sold"] == 4
        assert rows[0]["total_revenue_cents"] == 21600
        assert rows[1]["quantity_sold"] == 3
        assert rows[1]["total_revenue_cents"] == 18000

    def test_uses_price_at_time_of_sale(self, engine, rice, cashier):
        engine.manager.create_bill([(rice.id, 2)], created_by=cashier.id,
                                   created_at=datetime(2026, 1, 5, 12, 0))
        engine.catalog.update_product(rice.id, {"price": 75, "name_en": "Premium Rice"})

        [row] = engine.reports.per_product_stats(datetime(2026, 1, 1), datetime(2026, 1, 31))
        assert row["total_revenue_cents"] == 12000
        assert row["product_name"] == "Rice"

    def test_total_sold_per_product(self, engine, rice, milk, jan_bills):
        assert engine.reports.total_sold_per_product() == {rice.id: 3, milk.id: 4}


class TestSalesByPeriod:
    def test_group_by_day(self, engine, jan_bills):
        rows = engine.reports.sales_by_period(datetime(2026, 1, 1), datetime(2026, 1, 31), "day")
        assert [r["period"] for r in rows] == ["2026-01-10", "2026-01-11"]
        assert rows[0]["bill_count"] == 2
        assert rows[1]["revenue_cents"] == 16200

    def test_group_by_month(self, engine, rice, cashier, jan_bills):
        engine.manager.create_bill([(rice.id, 1)], created_by=cashier.id,
                                   created_at=datetime(2026, 2, 14, 18, 0))
        rows = engine.reports.sales_by_period(datetime(2026, 1, 1), datetime(2026, 12, 31), "month")
        assert [(r["period"], r["bill_count"]) for r in rows] == [("2026-01", 3), ("2026-02", 1)]

    def test_unknown_grouping(self, engine):
        with pytest.raises(ValidationError):
            engine.reports.sales_by_period(datetime(2026, 1, 1), datetime(2026, 1, 31), "year")


class TestInventoryReports:
    def test_low_stock_threshold_is_inclusive(self, engine, make_product):
        make_product(product_code="a", name_en="Ten", stock=10)
        make_product(product_code="b", name_en="Eleven", stock=11)
        make_product(product_code="c", name_en="Oversold", stock=-4)
        make_product(product_code="d", name_en="Empty", stock=0)

        assert [p.name_en for p in engine.reports.low_stock(10)] == ["Oversold", "Empty", "Ten"]

    def test_low_stock_after_oversell(self, engine, rice, cashier):
        engine.manager.create_bill([(rice.id, 105)], created_by=cashier.id)
        [product] = engine.reports.low_stock(10)
        assert product.id == rice.id
        assert product.stock == -5

    def test_low_stock_rejects_non_integer(self, engine):
        with pytest.raises(ValidationError):
            engine.reports.low_stock("10")

    def test_inventory_value_ignores_negative_stock(self, engine, rice, milk, make_product):
        make_product(product_code="x", name_en="Oversold", price_cents=99900, stock=-5)
        # 60.00 x 100 + 54.00 x 40
        assert engine.reports.inventory_value() == 600000 + 216000

    def test_inventory_value_empty(self, engine):
        assert engine.reports.inventory_value() == 0
