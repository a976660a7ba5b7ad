from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ShiftCalculateIn(BaseModel):
    start_time: datetime
    end_time: datetime
    break_minutes: int = 0
    base_rate: Decimal


class ShiftIn(BaseModel):
    employer_id: int
    rate_id: int
    start_time: datetime
    end_time: datetime
    break_minutes: int = 0
    notes: str | None = Field(default=None, max_length=2000)


class ShiftEarningsOut(BaseModel):
    regular_hours: float
    overtime_hours1: float
    overtime_hours2: float
    total_hours: float
    regular_earnings: float
    overtime_earnings1: float
    overtime_earnings2: float
    total_earnings: float


class ShiftOut(ShiftEarningsOut):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employer_id: int
    rate_id: int
    start_time: datetime
    end_time: datetime
    break_minutes: int
    notes: str | None = None


class MonthlySummaryOut(ShiftEarningsOut):
    period_start: date
    period_end: date
    overtime_hours: float
    shifts_count: int = 0
    total_hours_label: str
    total_earnings_label: str


class ShiftUpdateIn(BaseModel):
    employer_id: int | None = None
    rate_id: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    break_minutes: int | None = None
    notes: str | None = Field(default=None, max_length=2000)
