# Overview: Sales Aggregator - read-only statistics over stored bills and live stock.

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import func

from ..errors import ValidationError
from ..models import Bill, Product
from ..time_utils import day_bounds, to_utc_z
from .ledger_service import BillLedger


PERIOD_FORMATS = {
    "day": "%Y-%m-%d",
    "week": "%Y-W%W",
    "month": "%Y-%m",
}


class SalesAggregator:
    """
    Reporting queries. Nothing here writes.

    Revenue figures come from the bills and line items as they were stored,
    never from the current product prices.
    """

    def __init__(self, session):
        self.session = session
        self.ledger = BillLedger(session)

    def sales_in_range(self, start: datetime, end: datetime) -> dict:
        bills = self.ledger.bills_in_range(start, end)
        total_revenue = sum(bill.grand_total_cents for bill in bills)
        total_quantity = 0
        for bill in bills:
            total_quantity += sum(line.quantity for line in bill.line_items)
        return {
            "start": to_utc_z(start),
            "end": to_utc_z(end),
            "total_revenue_cents": total_revenue,
            "tax_collected_cents": sum(bill.tax_cents for bill in bills),
            "total_quantity": total_quantity,
            "bill_count": len(bills),
            "average_bill_cents": (total_revenue + len(bills) // 2) // len(bills) if bills else 0,
            "bills": bills,
        }

    def daily_sales(self, day: date) -> dict:
        """Dashboard summary: revenue, units sold and number of bills for one day."""
        start, end = day_bounds(day)
        summary = self.sales_in_range(start, end)
        return {
            "date": day.isoformat(),
            "total_revenue_cents": summary["total_revenue_cents"],
            "total_products": summary["total_quantity"],
            "total_customers": summary["bill_count"],
            "tax_collected_cents": summary["tax_collected_cents"],
            "bills": summary["bills"],
        }

    def per_product_stats(self, start: datetime, end: datetime) -> list[dict]:
        """
        Units sold and revenue per product over bills in [start, end], highest
        revenue first. Revenue is the stored line price times quantity.
        """
        stats: dict[int, dict] = {}
        for bill in self.ledger.bills_in_range(start, end):
            for line in bill.line_items:
                entry = stats.get(line.product_id)
                if entry is None:
                    entry = stats[line.product_id] = {
                        "product_id": line.product_id,
                        "product_name": line.name_en,
                        "quantity_sold": 0,
                        "total_revenue_cents": 0,
                    }
                entry["quantity_sold"] += line.quantity
                entry["total_revenue_cents"] += line.gross_cents
        return sorted(
            stats.values(),
            key=lambda s: (-s["total_revenue_cents"], s["product_name"].lower(), s["product_id"]),
        )

    def total_sold_per_product(self) -> dict[int, int]:
        """All-time units sold keyed by product id."""
        sold: dict[int, int] = {}
        for bill in self.session.query(Bill).order_by(Bill.id.asc()).yield_per(500):
            for line in bill.line_items:
                sold[line.product_id] = sold.get(line.product_id, 0) + line.quantity
        return sold

    def sales_by_period(self, start: datetime, end: datetime, group_by: str = "day") -> list[dict]:
        if group_by not in PERIOD_FORMATS:
            raise ValidationError("group_by must be day, week, or month")
        if start > end:
            raise ValidationError("start must not be after end")

        period_expr = func.strftime(PERIOD_FORMATS[group_by], Bill.created_at)
        rows = (
            self.session.query(
                period_expr.label("period"),
                func.count(Bill.id).label("bill_count"),
                func.coalesce(func.sum(Bill.grand_total_cents), 0).label("revenue_cents"),
                func.coalesce(func.sum(Bill.tax_cents), 0).label("tax_cents"),
            )
            .filter(Bill.created_at >= start, Bill.created_at <= end)
            .group_by("period")
            .order_by("period")
            .all()
        )
        return [
            {
                "period": row.period,
                "bill_count": int(row.bill_count or 0),
                "revenue_cents": int(row.revenue_cents or 0),
                "tax_cents": int(row.tax_cents or 0),
            }
            for row in rows
        ]

    def low_stock(self, threshold: int = 10) -> list[Product]:
        """Products at or below threshold, most depleted first. Over-sold (negative) stock included."""
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise ValidationError("threshold must be an integer")
        return (
            self.session.query(Product)
            .filter(Product.stock <= threshold)
            .order_by(Product.stock.asc(), Product.name_en.asc(), Product.id.asc())
            .all()
        )

    def inventory_value(self) -> int:
        """Sum of price x stock in cents over products with positive stock."""
        value = (
            self.session.query(func.coalesce(func.sum(Product.price_cents * Product.stock), 0))
            .filter(Product.stock > 0)
            .scalar()
        )
        return int(value or 0)
