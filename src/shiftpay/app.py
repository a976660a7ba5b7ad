from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import crud
from .calculations import (
    ShiftCalculationError,
    ShiftEarningsResult,
    aggregate_monthly,
    calculate_shift_earnings,
    format_currency,
    format_hours,
)
from .config import settings
from .db import get_db, session_scope
from .schemas import (
    MonthlySummaryOut,
    ShiftCalculateIn,
    ShiftEarningsOut,
    ShiftIn,
    ShiftOut,
    ShiftUpdateIn,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, debug=settings.debug)


@app.exception_handler(ShiftCalculationError)
def calculation_error_handler(request: Request, exc: ShiftCalculationError) -> JSONResponse:
    logger.warning("Rejected shift calculation: %s", exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def month_bounds(d: date) -> tuple[date, date]:
    last_day = calendar.monthrange(d.year, d.month)[1]
    return date(d.year, d.month, 1), date(d.year, d.month, last_day)


def day_range(start: date | None, end: date | None) -> tuple[datetime | None, datetime | None]:
    """Inclusive day bounds -> half-open datetime bounds."""
    start_dt = datetime.combine(start, time.min) if start else None
    end_dt = datetime.combine(end + timedelta(days=1), time.min) if end else None
    return start_dt, end_dt


def check_shift_window(start_time: datetime, end_time: datetime, min_minutes: int) -> None:
    if end_time <= start_time:
        raise HTTPException(status_code=400, detail="End time must be after start time.")
    if end_time - start_time < timedelta(minutes=min_minutes):
        raise HTTPException(
            status_code=400,
            detail=f"Shift duration must be at least {min_minutes} minutes",
        )


def summarize_shifts(
    shifts: Iterable,
    *,
    start: date,
    end: date,
    currency: str,
) -> MonthlySummaryOut:
    summary = aggregate_monthly(crud.stored_result(s) for s in shifts)
    return MonthlySummaryOut(
        period_start=start,
        period_end=end,
        overtime_hours=float(summary.overtime_hours),
        total_hours_label=format_hours(summary.total_hours),
        total_earnings_label=format_currency(summary.total_earnings, currency),
        **summary.as_dict(),
    )


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/api/shifts/calculate", response_model=ShiftEarningsOut)
def calculate_shift(payload: ShiftCalculateIn):
    result = calculate_shift_earnings(
        payload.start_time,
        payload.end_time,
        payload.break_minutes,
        payload.base_rate,
    )
    return ShiftEarningsOut(**result.as_dict())


def price_shift(
    db: Session,
    *,
    employer_id: int,
    rate_id: int,
    start_time: datetime,
    end_time: datetime,
    break_minutes: int,
    exclude_id: int | None = None,
) -> ShiftEarningsResult:
    """
    Entry rules shared by create and update, then the earnings at the
    rate's base_rate. Times must already be naive UTC.
    """
    check_shift_window(start_time, end_time, settings.min_shift_minutes)

    if not crud.get_employer(db, employer_id):
        raise HTTPException(status_code=400, detail="Invalid employer ID")
    rate = crud.get_rate(db, rate_id)
    if not rate:
        raise HTTPException(status_code=400, detail="Invalid rate ID")

    if settings.one_shift_per_day and crud.find_shift_on_day(
        db, start_time.date(), exclude_id=exclude_id
    ):
        raise HTTPException(
            status_code=400,
            detail="A shift already exists on this day. Only one shift per day is allowed.",
        )

    return calculate_shift_earnings(start_time, end_time, break_minutes, rate.base_rate)


@app.post("/api/shifts", response_model=ShiftOut, status_code=201)
def create_shift_api(payload: ShiftIn):
    start_time = crud.to_naive_utc(payload.start_time)
    end_time = crud.to_naive_utc(payload.end_time)

    with session_scope() as db:
        result = price_shift(
            db,
            employer_id=payload.employer_id,
            rate_id=payload.rate_id,
            start_time=start_time,
            end_time=end_time,
            break_minutes=payload.break_minutes,
        )
        shift = crud.create_shift(
            db,
            employer_id=payload.employer_id,
            rate_id=payload.rate_id,
            start_time=start_time,
            end_time=end_time,
            break_minutes=payload.break_minutes,
            notes=payload.notes,
            result=result,
        )
        db.flush()
        logger.info(
            "Created shift %s: %s hours, %s earned",
            shift.id,
            result.total_hours,
            result.total_earnings,
        )
        return ShiftOut.model_validate(shift)


@app.get("/api/shifts/{shift_id}", response_model=ShiftOut)
def get_shift_api(shift_id: int, db: Session = Depends(get_db)):
    shift = crud.get_shift(db, shift_id)
    if not shift:
        raise HTTPException(status_code=404, detail="Shift not found")
    return ShiftOut.model_validate(shift)


@app.patch("/api/shifts/{shift_id}", response_model=ShiftOut)
def update_shift_api(shift_id: int, payload: ShiftUpdateIn):
    with session_scope() as db:
        shift = crud.get_shift(db, shift_id)
        if not shift:
            raise HTTPException(status_code=404, detail="Shift not found")

        # unset or null fields keep their stored value; notes can be cleared
        employer_id = payload.employer_id or shift.employer_id
        rate_id = payload.rate_id or shift.rate_id
        start_time = crud.to_naive_utc(payload.start_time or shift.start_time)
        end_time = crud.to_naive_utc(payload.end_time or shift.end_time)
        break_minutes = shift.break_minutes if payload.break_minutes is None else payload.break_minutes
        notes = payload.notes if "notes" in payload.model_fields_set else shift.notes

        result = price_shift(
            db,
            employer_id=employer_id,
            rate_id=rate_id,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            exclude_id=shift.id,
        )
        crud.update_shift(
            shift,
            employer_id=employer_id,
            rate_id=rate_id,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            notes=notes,
            result=result,
        )
        db.flush()
        logger.info(
            "Updated shift %s: %s hours, %s earned",
            shift.id,
            result.total_hours,
            result.total_earnings,
        )
        return ShiftOut.model_validate(shift)


@app.get("/api/shifts", response_model=list[ShiftOut])
def list_shifts_api(
    start: date | None = None,
    end: date | None = None,
    employer_id: int | None = None,
    db: Session = Depends(get_db),
):
    start_dt, end_dt = day_range(start, end)
    items = crud.list_shifts(db, start=start_dt, end=end_dt, employer_id=employer_id)
    return [ShiftOut.model_validate(s) for s in items]


@app.delete("/api/shifts/{shift_id}")
def delete_shift_api(shift_id: int):
    with session_scope() as db:
        deleted = crud.delete_shift(db, shift_id=shift_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Shift not found")
    logger.info("Deleted shift %s", shift_id)
    return {"id": shift_id, "deleted": True}


@app.get("/api/summary/monthly", response_model=MonthlySummaryOut)
def monthly_summary(
    month: date | None = None,
    employer_id: int | None = None,
    db: Session = Depends(get_db),
):
    start_date, end_date = month_bounds(month or date.today())
    start_dt, end_dt = day_range(start_date, end_date)
    shifts = crud.list_shifts(db, start=start_dt, end=end_dt, employer_id=employer_id)
    return summarize_shifts(shifts, start=start_date, end=end_date, currency=settings.currency)
