# Overview: Explicit wiring of the billing core around one database session.

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from .extensions import db
from .services.catalog_service import CatalogStore
from .services.ledger_service import BillLedger
from .services.reconciliation_service import ReconciliationManager
from .services.reporting_service import SalesAggregator


@dataclass
class BillingEngine:
    """
    Catalog, ledger, reconciliation manager and aggregator sharing one session.

    Built from whatever session the caller owns: Flask requests use the
    request-scoped db.session; tests and scripts may pass their own.
    """
    session: object
    catalog: CatalogStore
    ledger: BillLedger
    manager: ReconciliationManager
    reports: SalesAggregator

    @classmethod
    def from_session(cls, session, *, round_off_unit_cents: int = 0) -> "BillingEngine":
        catalog = CatalogStore(session)
        ledger = BillLedger(session)
        return cls(
            session=session,
            catalog=catalog,
            ledger=ledger,
            manager=ReconciliationManager(catalog, ledger, round_off_unit_cents=round_off_unit_cents),
            reports=SalesAggregator(session),
        )


def get_engine() -> BillingEngine:
    return BillingEngine.from_session(
        db.session,
        round_off_unit_cents=current_app.config["ROUND_OFF_UNIT_CENTS"],
    )
