from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

logger = logging.getLogger(__name__)

# Fixed overtime policy: first 8h at 100%, hours 8-10 at 125%, beyond 10 at 150%
REGULAR_HOURS_LIMIT = Decimal(8)
OVERTIME_TIER1_LIMIT = Decimal(10)
REGULAR_RATE_MULTIPLIER = Decimal(1)
OVERTIME_RATE_1_MULTIPLIER = Decimal("1.25")
OVERTIME_RATE_2_MULTIPLIER = Decimal("1.5")

MINUTES_PER_HOUR = Decimal(60)
MICROSECONDS_PER_MINUTE = Decimal(60_000_000)
ZERO = Decimal(0)

CURRENCY_SYMBOLS = {
    "ILS": "₪",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ShiftCalculationError(ValueError):
    """Base class for rejected calculation inputs."""


class InvalidInterval(ShiftCalculationError):
    """End not strictly after start, or break longer than the shift."""


class InvalidRate(ShiftCalculationError):
    """Hourly rate is negative or not a number."""


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ShiftEarningsResult:
    regular_hours: Decimal
    overtime_hours1: Decimal
    overtime_hours2: Decimal
    total_hours: Decimal
    regular_earnings: Decimal
    overtime_earnings1: Decimal
    overtime_earnings2: Decimal
    total_earnings: Decimal

    @property
    def overtime_hours(self) -> Decimal:
        return self.overtime_hours1 + self.overtime_hours2

    def as_dict(self) -> dict[str, float]:
        return {f.name: float(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class MonthlySummary:
    regular_hours: Decimal = ZERO
    overtime_hours1: Decimal = ZERO
    overtime_hours2: Decimal = ZERO
    total_hours: Decimal = ZERO
    regular_earnings: Decimal = ZERO
    overtime_earnings1: Decimal = ZERO
    overtime_earnings2: Decimal = ZERO
    total_earnings: Decimal = ZERO
    shifts_count: int = 0

    @property
    def overtime_hours(self) -> Decimal:
        return self.overtime_hours1 + self.overtime_hours2

    def as_dict(self) -> dict[str, float | int]:
        out: dict[str, float | int] = {
            f.name: float(getattr(self, f.name)) for f in fields(self) if f.name != "shifts_count"
        }
        out["shifts_count"] = self.shifts_count
        return out


# Summed fields shared by both records, in declaration order.
TOTAL_FIELDS = tuple(f.name for f in fields(ShiftEarningsResult))


# ---------------------------------------------------------------------------
# Rounding / conversion helpers
# ---------------------------------------------------------------------------

def _as_decimal(value: Decimal | float | int) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Decimal | float | int, places: int = 2) -> Decimal:
    """
    Round half away from zero (the usual "commercial" rounding),
    unlike the builtin round() which rounds half to even.
    """
    exponent = Decimal(1).scaleb(-places)
    return _as_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def _elapsed_minutes(start: datetime, end: datetime) -> Decimal:
    try:
        delta = end - start
    except TypeError as exc:
        # naive vs aware datetimes
        raise InvalidInterval("Invalid start or end time") from exc
    return Decimal(delta // timedelta(microseconds=1)) / MICROSECONDS_PER_MINUTE


def duration_in_minutes(start: datetime, end: datetime) -> int:
    """Time between two instants, rounded to the nearest minute."""
    return int(round_half_up(_elapsed_minutes(start, end), places=0))


def _parse_rate(base_rate: Decimal | float | int) -> Decimal:
    if isinstance(base_rate, bool):
        raise InvalidRate(f"Invalid hourly rate (got {base_rate!r})")
    try:
        rate = _as_decimal(base_rate)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidRate(f"Invalid hourly rate (got {base_rate!r})") from exc
    if not rate.is_finite():
        raise InvalidRate(f"Invalid hourly rate (got {base_rate!r})")
    if rate < 0:
        raise InvalidRate(f"Hourly rate must be >= 0 (got {base_rate})")
    return rate


# ---------------------------------------------------------------------------
# Shift earnings
# ---------------------------------------------------------------------------

def calculate_shift_earnings(
    start_time: datetime,
    end_time: datetime,
    break_minutes: int,
    base_rate: Decimal | float | int,
) -> ShiftEarningsResult:
    """
    Split a shift into pay tiers and price each tier.

    - regular: first 8 hours, base rate
    - overtime 1: hours 8 to 10 (at most 2h), 125%
    - overtime 2: every hour beyond 10, 150%

    The break is unpaid and subtracted before tiering. Only the elapsed time
    matters, so overnight shifts need no special handling.

    Every output is rounded half-up to 2 decimals at the very end, field by
    field. The reported total_hours can therefore differ from the sum of the
    three rounded tier hours by at most 0.01.
    """
    if not isinstance(start_time, datetime) or not isinstance(end_time, datetime):
        raise InvalidInterval("Invalid start or end time")

    elapsed = _elapsed_minutes(start_time, end_time)
    if elapsed <= 0:
        raise InvalidInterval("End time must be after start time")

    if isinstance(break_minutes, bool) or not isinstance(break_minutes, int):
        raise InvalidInterval(f"Break duration must be a whole number of minutes (got {break_minutes!r})")
    if break_minutes < 0:
        raise InvalidInterval(f"Break duration must be >= 0 (got {break_minutes})")

    rate = _parse_rate(base_rate)

    total_minutes = elapsed - break_minutes
    if total_minutes < 0:
        raise InvalidInterval("Break duration exceeds shift duration")

    total_hours = total_minutes / MINUTES_PER_HOUR

    regular_hours = min(REGULAR_HOURS_LIMIT, total_hours)
    overtime_hours1 = min(
        OVERTIME_TIER1_LIMIT - REGULAR_HOURS_LIMIT,
        max(ZERO, total_hours - REGULAR_HOURS_LIMIT),
    )
    overtime_hours2 = max(ZERO, total_hours - OVERTIME_TIER1_LIMIT)

    regular_earnings = regular_hours * rate * REGULAR_RATE_MULTIPLIER
    overtime_earnings1 = overtime_hours1 * rate * OVERTIME_RATE_1_MULTIPLIER
    overtime_earnings2 = overtime_hours2 * rate * OVERTIME_RATE_2_MULTIPLIER
    total_earnings = regular_earnings + overtime_earnings1 + overtime_earnings2

    logger.debug(
        "Shift %s -> %s (break %sm, rate %s): %s hours",
        start_time.isoformat(),
        end_time.isoformat(),
        break_minutes,
        rate,
        total_hours,
    )

    return ShiftEarningsResult(
        regular_hours=round_half_up(regular_hours),
        overtime_hours1=round_half_up(overtime_hours1),
        overtime_hours2=round_half_up(overtime_hours2),
        total_hours=round_half_up(total_hours),
        regular_earnings=round_half_up(regular_earnings),
        overtime_earnings1=round_half_up(overtime_earnings1),
        overtime_earnings2=round_half_up(overtime_earnings2),
        total_earnings=round_half_up(total_earnings),
    )


# ---------------------------------------------------------------------------
# Monthly aggregation
# ---------------------------------------------------------------------------

def _summarize(rows: Iterable[ShiftEarningsResult | MonthlySummary], count_of) -> MonthlySummary:
    totals = dict.fromkeys(TOTAL_FIELDS, ZERO)
    shifts_count = 0
    for row in rows:
        for name in TOTAL_FIELDS:
            totals[name] += getattr(row, name)
        shifts_count += count_of(row)

    return MonthlySummary(
        **{name: round_half_up(value) for name, value in totals.items()},
        shifts_count=shifts_count,
    )


def aggregate_monthly(results: Iterable[ShiftEarningsResult]) -> MonthlySummary:
    """
    Sum per-shift results into a period summary.

    No input gives the zero summary. Totals are rounded once, after summation.
    Input order does not matter.
    """
    return _summarize(results, lambda _: 1)


def combine_summaries(*summaries: MonthlySummary) -> MonthlySummary:
    """
    Merge summaries computed over disjoint chunks of shifts:
        aggregate_monthly(a + b) == combine_summaries(aggregate_monthly(a), aggregate_monthly(b))
    """
    return _summarize(summaries, lambda s: s.shifts_count)


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------

def format_hours(hours: Decimal | float | int) -> str:
    """8.5 -> '8h 30m', 8 -> '8h'."""
    value = _as_decimal(hours)
    whole_hours = int(value)
    minutes = int(round_half_up((value - whole_hours) * MINUTES_PER_HOUR, places=0))
    if minutes == 60:
        whole_hours += 1
        minutes = 0

    if minutes == 0:
        return f"{whole_hours}h"
    return f"{whole_hours}h {minutes}m"


def format_duration_from_minutes(minutes: int) -> str:
    """135 -> '2h 15m', 45 -> '45m', 120 -> '2h'."""
    hours, remaining = divmod(minutes, 60)
    if hours == 0:
        return f"{remaining}m"
    if remaining == 0:
        return f"{hours}h"
    return f"{hours}h {remaining}m"


def format_currency(amount: Decimal | float | int, currency: str = "ILS") -> str:
    value = round_half_up(amount)
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{currency.upper()} {value:,.2f}"
    return f"{symbol}{value:,.2f}"
