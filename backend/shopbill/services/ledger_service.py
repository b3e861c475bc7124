# Overview: Bill Ledger - persistence of bills and their snapshot line items.

"""
Bill Ledger

The ledger owns the bills table. Writes that must be paired with stock
changes (insert_bill, overwrite_bill) never commit; the reconciliation
manager calls them inside its own transaction. set_print_status() has no
stock effect and commits on its own.
"""

from __future__ import annotations

from datetime import date, datetime

from ..errors import NotFoundError, ValidationError
from ..models import Bill
from ..time_utils import utcnow, day_bounds
from ..validation import PRINT_STATUSES
from .line_items import LineItem, encode_line_items
from .tax_service import CartTotals
from .transactions import atomic, lock_for_update


class BillLedger:
    def __init__(self, session):
        self.session = session

    def get_bill(self, bill_id: int, *, lock: bool = False) -> Bill:
        query = self.session.query(Bill).filter_by(id=bill_id)
        if lock:
            query = lock_for_update(query)
        bill = query.first()
        if bill is None:
            raise NotFoundError("Bill not found", details={"bill_id": bill_id})
        return bill

    def list_bills(self, *, limit: int | None = None, offset: int | None = None) -> list[Bill]:
        query = self.session.query(Bill).order_by(Bill.created_at.desc(), Bill.id.desc())
        if limit is not None:
            if limit < 0:
                raise ValidationError("limit must be >= 0")
            query = query.limit(limit)
        if offset is not None:
            if offset < 0:
                raise ValidationError("offset must be >= 0")
            query = query.offset(offset)
        return query.all()

    def bills_in_range(self, start: datetime, end: datetime) -> list[Bill]:
        """Bills with start <= created_at <= end, newest first."""
        if start > end:
            raise ValidationError("start must not be after end")
        return (
            self.session.query(Bill)
            .filter(Bill.created_at >= start, Bill.created_at <= end)
            .order_by(Bill.created_at.desc(), Bill.id.desc())
            .all()
        )

    def bills_by_date(self, day: date) -> list[Bill]:
        start, end = day_bounds(day)
        return self.bills_in_range(start, end)

    def insert_bill(
        self,
        *,
        items: list[LineItem],
        totals: CartTotals,
        created_by: int,
        customer_id: int | None = None,
        created_at: datetime | None = None,
    ) -> Bill:
        bill = Bill(
            items=encode_line_items(items),
            subtotal_cents=totals.subtotal_cents,
            tax_cents=totals.tax_cents,
            round_off_cents=totals.round_off_cents,
            grand_total_cents=totals.grand_total_cents,
            customer_id=customer_id,
            print_status="not_printed",
            status="COMMITTED",
            created_at=created_at or utcnow(),
            created_by=created_by,
        )
        self.session.add(bill)
        self.session.flush()
        return bill

    def overwrite_bill(
        self,
        bill: Bill,
        *,
        items: list[LineItem],
        totals: CartTotals,
        corrected_by: int,
        customer_id: int | None,
    ) -> Bill:
        bill.items = encode_line_items(items)
        bill.subtotal_cents = totals.subtotal_cents
        bill.tax_cents = totals.tax_cents
        bill.round_off_cents = totals.round_off_cents
        bill.grand_total_cents = totals.grand_total_cents
        bill.customer_id = customer_id
        bill.status = "CORRECTED"
        bill.corrected_at = utcnow()
        bill.corrected_by = corrected_by
        self.session.flush()
        return bill

    def set_print_status(self, bill_id: int, status: str) -> Bill:
        if status not in PRINT_STATUSES:
            raise ValidationError(f"print_status must be one of {', '.join(PRINT_STATUSES)}")
        with atomic(self.session):
            bill = self.get_bill(bill_id, lock=True)
            bill.print_status = status
        return bill
