"""Advisory check that meter readings fall inside the stated billing period.

Warnings never block routing or change the classification.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable

from bill_router.models.extraction import MeterReading, UtilityBill, is_known_date

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def _parse_iso(text: str) -> date | None:
    match = _ISO_DATE.search(text)
    if not match:
        return None
    try:
        return date.fromisoformat(match.group(0))
    except ValueError:
        return None


def correlate_reading_dates(billing_period: str, readings: Iterable[MeterReading]) -> list[str]:
    """Return one warning per reading dated outside *billing_period*.

    The first two ``YYYY-MM-DD`` dates in the period text are taken as start
    and end.  With fewer than two, the period is unparseable and no warnings
    are produced.
    """
    found = _ISO_DATE.findall(billing_period or "")
    if len(found) < 2:
        return []
    period_start, period_end = found[0], found[1]
    try:
        start = date.fromisoformat(period_start)
        end = date.fromisoformat(period_end)
    except ValueError:
        return []

    warnings: list[str] = []
    for idx, reading in enumerate(readings):
        read_date = reading.reading_date
        if not is_known_date(read_date):
            continue
        parsed = _parse_iso(read_date)
        if parsed is None:
            continue
        if parsed < start or parsed > end:
            warnings.append(
                f"Meter reading {idx + 1} date {read_date} falls outside billing period "
                f"{period_start} to {period_end}"
            )
    return warnings


def bill_date_warnings(bill: UtilityBill | None) -> list[str]:
    if bill is None:
        return []
    return correlate_reading_dates(
        bill.supplier_details.billing_period,
        bill.charges_and_usage.meter_readings,
    )
