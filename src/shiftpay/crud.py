from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from .calculations import TOTAL_FIELDS, ShiftEarningsResult, round_half_up
from .models import Employer, Rate, Shift


def to_naive_utc(value: datetime) -> datetime:
    """
    Shift columns hold naive UTC. Offset-bearing instants are converted;
    naive ones are taken as already UTC.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_employer(db: Session, employer_id: int) -> Employer | None:
    return db.get(Employer, employer_id)


def get_rate(db: Session, rate_id: int) -> Rate | None:
    return db.get(Rate, rate_id)


def get_shift(db: Session, shift_id: int) -> Shift | None:
    return db.get(Shift, shift_id)


def list_shifts(
    db: Session,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    employer_id: int | None = None,
) -> list[Shift]:
    """
    Shifts starting in [start, end), newest first.
    """
    stmt = select(Shift)
    if start is not None:
        stmt = stmt.where(Shift.start_time >= start)
    if end is not None:
        stmt = stmt.where(Shift.start_time < end)
    if employer_id is not None:
        stmt = stmt.where(Shift.employer_id == employer_id)
    stmt = stmt.order_by(Shift.start_time.desc())
    return list(db.scalars(stmt).all())


def find_shift_on_day(db: Session, day: date, *, exclude_id: int | None = None) -> Shift | None:
    day_start = datetime.combine(day, time.min)
    stmt = (
        select(Shift)
        .where(Shift.start_time >= day_start)
        .where(Shift.start_time < day_start + timedelta(days=1))
    )
    if exclude_id is not None:
        stmt = stmt.where(Shift.id != exclude_id)
    return db.scalar(stmt.limit(1))


def create_shift(
    db: Session,
    *,
    employer_id: int,
    rate_id: int,
    start_time: datetime,
    end_time: datetime,
    break_minutes: int,
    notes: str | None,
    result: ShiftEarningsResult,
) -> Shift:
    shift = Shift(
        employer_id=employer_id,
        rate_id=rate_id,
        start_time=to_naive_utc(start_time),
        end_time=to_naive_utc(end_time),
        break_minutes=break_minutes,
        notes=notes,
        **result.as_dict(),
    )
    db.add(shift)
    return shift


def update_shift(
    shift: Shift,
    *,
    employer_id: int,
    rate_id: int,
    start_time: datetime,
    end_time: datetime,
    break_minutes: int,
    notes: str | None,
    result: ShiftEarningsResult,
) -> Shift:
    shift.employer_id = employer_id
    shift.rate_id = rate_id
    shift.start_time = to_naive_utc(start_time)
    shift.end_time = to_naive_utc(end_time)
    shift.break_minutes = break_minutes
    shift.notes = notes
    for name, value in result.as_dict().items():
        setattr(shift, name, value)
    return shift


def delete_shift(db: Session, *, shift_id: int) -> bool:
    existing = db.get(Shift, shift_id)
    if not existing:
        return False

    db.delete(existing)
    return True


def stored_result(shift) -> ShiftEarningsResult:
    """
    Rebuild the calculated breakdown persisted on a shift record.
    """
    return ShiftEarningsResult(
        **{name: round_half_up(getattr(shift, name)) for name in TOTAL_FIELDS}
    )
