"""Leg cashflow generation from a calculation-period schedule.

One cashflow per period: payment dates step from the start date by the
schedule's month interval while they do not pass maturity. A 12-month
trade on a monthly schedule therefore yields 12 cashflows per leg.

Fixed legs pay notional * rate * months / 12. Floating legs are booked at
zero until a rate fixing arrives.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, localcontext

from dateutil.relativedelta import relativedelta

from tradebook.core.result import Err, Ok
from tradebook.core.types import TRADEBOOK_DECIMAL_CONTEXT
from tradebook.trade.types import Cashflow, LegRequest

DEFAULT_SCHEDULE_MONTHS = 3

_NAMED_SCHEDULES: dict[str, int] = {
    "monthly": 1,
    "quarterly": 3,
    "semi-annually": 6,
    "semiannually": 6,
    "half-yearly": 6,
    "annually": 12,
    "yearly": 12,
}

_TENOR = re.compile(r"^(\d+)\s*[mM]$")


def parse_schedule(name: str | None) -> Ok[int] | Err[str]:
    """Month interval for a schedule name ("Monthly", "6M", ...). None means 3M."""
    if name is None or not name.strip():
        return Ok(DEFAULT_SCHEDULE_MONTHS)
    cleaned = name.strip()
    if (m := _TENOR.match(cleaned)) is not None:
        months = int(m.group(1))
        if months <= 0:
            return Err(f"Schedule tenor must be positive, got {cleaned!r}")
        return Ok(months)
    months = _NAMED_SCHEDULES.get(cleaned.lower())
    if months is None:
        return Err(f"Invalid schedule format: {cleaned!r}")
    return Ok(months)


def payment_dates(start: date, maturity: date, months: int) -> list[date]:
    """Period end dates after ``start`` up to and including ``maturity``.

    Each date is offset from ``start`` directly so month-end rolls do not
    drift (Jan 31 -> Feb 28 -> Mar 31).
    """
    dates: list[date] = []
    step = 1
    current = start + relativedelta(months=months)
    while current <= maturity:
        dates.append(current)
        step += 1
        current = start + relativedelta(months=months * step)
    return dates


def _is_fixed(leg: LegRequest) -> bool:
    return leg.leg_rate_type is not None and leg.leg_rate_type.name.strip().lower() == "fixed"


def period_amount(leg: LegRequest, months: int) -> Decimal:
    if not _is_fixed(leg) or leg.notional is None or leg.rate is None:
        return Decimal(0)
    with localcontext(TRADEBOOK_DECIMAL_CONTEXT):
        return leg.notional * Decimal(repr(leg.rate)) * Decimal(months) / Decimal(12)


def generate_leg_cashflows(
    leg: LegRequest,
    start: date | None,
    maturity: date | None,
) -> Ok[tuple[Cashflow, ...]] | Err[str]:
    """Build the cashflows of one leg. Pure: nothing is persisted here."""
    match parse_schedule(leg.schedule.name if leg.schedule is not None else None):
        case Err(e):
            return Err(e)
        case Ok(months):
            pass
    if start is None or maturity is None:
        return Ok(())

    amount = period_amount(leg, months)
    flows: list[Cashflow] = []
    period_start = start
    for value_date in payment_dates(start, maturity, months):
        flows.append(Cashflow(
            value_date=value_date,
            payment_value=amount,
            rate=leg.rate,
            pay_receive=leg.pay_receive,
            period_start=period_start,
            period_end=value_date,
        ))
        period_start = value_date
    return Ok(tuple(flows))
