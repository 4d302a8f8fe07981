# Overview: Append-only finance entries recorded alongside paid orders.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import FinanceEntry
from ..models.orders import FINANCE_INCOME
from swiftflow.time_utils import utcnow


def record_income(
    *,
    owner_id: str,
    amount_cents: int,
    source: str,
    order_id: str | None = None,
    occurred_at: datetime | None = None,
) -> FinanceEntry:
    """
    Append an income entry inside the caller's transaction (flush, no commit).

    At most one income entry exists per order (uq_finance_entries_order_type).
    """
    entry = FinanceEntry(
        owner_id=owner_id,
        order_id=order_id,
        entry_type=FINANCE_INCOME,
        source=source,
        amount_cents=amount_cents,
        occurred_at=occurred_at or utcnow(),
    )
    db.session.add(entry)
    db.session.flush()
    return entry
