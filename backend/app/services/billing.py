"""Money arithmetic shared by invoices, invoice generation and project budgets."""

import os
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.models.engagement import Engagement, RateType
from app.models.timesheet import Timesheet

VAT_RATE = Decimal(os.getenv("VAT_RATE", "0.15"))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "ZAR")
HOURS_PER_DAY = Decimal("8")

_CENT = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(str(value if value is not None else 0)).quantize(_CENT, rounding=ROUND_HALF_UP)


def line_amount(quantity, unit_price) -> Decimal:
    return money(Decimal(str(quantity)) * Decimal(str(unit_price)))


def invoice_totals(line_amounts: Iterable[Decimal], vat_rate: Decimal = None) -> tuple[Decimal, Decimal, Decimal]:
    """Return (amount, tax_amount, total_amount); total is always amount + tax."""
    rate = VAT_RATE if vat_rate is None else Decimal(str(vat_rate))
    amount = money(sum(line_amounts, Decimal("0")))
    tax_amount = money(amount * rate)
    return amount, tax_amount, amount + tax_amount


def timesheet_billing(hours, rate_type: str, rate_amount) -> tuple[Decimal, Decimal, str]:
    """Price a timesheet under an engagement rate: (quantity, unit_price, note)."""
    hours = Decimal(str(hours))
    unit_price = money(rate_amount)
    kind = RateType(rate_type)
    if kind is RateType.DAILY:
        quantity = (hours / HOURS_PER_DAY).quantize(_CENT, rounding=ROUND_HALF_UP)
        return quantity, unit_price, f"{hours.normalize():f} hours @ {quantity} days"
    if kind is RateType.FIXED:
        return Decimal("1"), unit_price, "Fixed rate"
    return hours, unit_price, f"{hours.normalize():f} hours"


def timesheet_cost(timesheet: Timesheet, engagement: Optional[Engagement]) -> Decimal:
    if engagement is None:
        return Decimal("0.00")
    quantity, unit_price, _ = timesheet_billing(timesheet.total_hours, engagement.rate_type, engagement.rate_amount)
    return line_amount(quantity, unit_price)


def resolve_engagement(db: Session, timesheet: Timesheet) -> Optional[Engagement]:
    """The engagement a timesheet bills under: its own, else the contractor's latest active one."""
    if timesheet.engagement_id:
        return db.get(Engagement, timesheet.engagement_id)
    return (
        db.query(Engagement)
        .filter(Engagement.contractor_id == timesheet.contractor_id, Engagement.is_active.is_(True))
        .order_by(Engagement.start_date.desc())
        .first()
    )
