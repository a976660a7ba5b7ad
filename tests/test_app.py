import json
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi import HTTPException

import shiftpay.app as app_module
from shiftpay import crud
from shiftpay.app import (calculate_shift, calculation_error_handler,
                          check_shift_window, create_shift_api, day_range,
                          get_shift_api, month_bounds, summarize_shifts,
                          update_shift_api)
from shiftpay.calculations import InvalidInterval, InvalidRate
from shiftpay.crud import stored_result, to_naive_utc
from shiftpay.models import Rate, Shift
from shiftpay.schemas import ShiftCalculateIn, ShiftIn, ShiftUpdateIn


@dataclass
class DummyShift:
    regular_hours: float
    overtime_hours1: float
    overtime_hours2: float
    total_hours: float
    regular_earnings: float
    overtime_earnings1: float
    overtime_earnings2: float
    total_earnings: float


def test_calculate_shift_preview():
    out = calculate_shift(
        ShiftCalculateIn(
            start_time=datetime(2025, 3, 1, 8, 0),
            end_time=datetime(2025, 3, 1, 20, 30),
            break_minutes=30,
            base_rate=Decimal("54.5"),
        )
    )
    assert out.total_hours == 12.0
    assert out.overtime_earnings2 == 163.5
    assert out.total_earnings == 735.75


def test_calculate_shift_preview_parses_wire_values():
    payload = ShiftCalculateIn.model_validate(
        {
            "start_time": "2025-03-01T22:00:00",
            "end_time": "2025-03-02T06:00:00",
            "base_rate": "54.5",
        }
    )
    assert calculate_shift(payload).total_earnings == 436.0


def test_calculate_shift_preview_propagates_validation_errors():
    payload = ShiftCalculateIn(
        start_time=datetime(2025, 3, 1, 8, 0),
        end_time=datetime(2025, 3, 1, 8, 0),
        base_rate=Decimal("54.5"),
    )
    with pytest.raises(InvalidInterval):
        calculate_shift(payload)


def test_calculation_errors_become_400():
    resp = calculation_error_handler(None, InvalidRate("Hourly rate must be >= 0 (got -1)"))
    assert resp.status_code == 400
    assert json.loads(resp.body) == {"detail": "Hourly rate must be >= 0 (got -1)"}


def test_check_shift_window_rejects_inverted_interval():
    with pytest.raises(HTTPException) as exc_info:
        check_shift_window(datetime(2025, 3, 1, 10), datetime(2025, 3, 1, 9), 15)
    assert exc_info.value.status_code == 400


def test_check_shift_window_rejects_short_shift():
    with pytest.raises(HTTPException) as exc_info:
        check_shift_window(datetime(2025, 3, 1, 10), datetime(2025, 3, 1, 10, 10), 15)
    assert "15 minutes" in exc_info.value.detail


def test_check_shift_window_accepts_minimum():
    check_shift_window(datetime(2025, 3, 1, 10), datetime(2025, 3, 1, 10, 15), 15)


def test_month_bounds():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2025, 12, 31)) == (date(2025, 12, 1), date(2025, 12, 31))


def test_day_range_is_half_open():
    start, end = day_range(date(2025, 3, 1), date(2025, 3, 31))
    assert start == datetime(2025, 3, 1)
    assert end == datetime(2025, 4, 1)
    assert day_range(None, None) == (None, None)


def test_stored_result_restores_decimals():
    r = stored_result(DummyShift(8.0, 2.0, 0.0, 10.0, 436.0, 136.25, 0.0, 572.25))
    assert r.overtime_earnings1 == Decimal("136.25")
    assert r.total_earnings == Decimal("572.25")


def test_summarize_shifts_from_stored_records():
    shifts = [
        DummyShift(8.0, 0.0, 0.0, 8.0, 436.0, 0.0, 0.0, 436.0),
        DummyShift(8.0, 2.0, 0.0, 10.0, 436.0, 136.25, 0.0, 572.25),
    ]
    summary = summarize_shifts(
        shifts,
        start=date(2025, 3, 1),
        end=date(2025, 3, 31),
        currency="ILS",
    )

    assert summary.period_start == date(2025, 3, 1)
    assert summary.total_hours == 18.0
    assert summary.total_earnings == 1008.25
    assert summary.overtime_hours == 2.0
    assert summary.shifts_count == 2
    assert summary.total_hours_label == "18h"
    assert summary.total_earnings_label == "₪1,008.25"


def test_summarize_shifts_empty_month():
    summary = summarize_shifts([], start=date(2025, 2, 1), end=date(2025, 2, 28), currency="USD")
    assert summary.shifts_count == 0
    assert summary.total_earnings == 0.0
    assert summary.total_earnings_label == "$0.00"
    assert summary.total_hours_label == "0h"


def test_check_shift_window_does_not_round_up_to_the_minimum():
    with pytest.raises(HTTPException) as exc_info:
        check_shift_window(datetime(2025, 3, 1, 10), datetime(2025, 3, 1, 10, 14, 30), 15)
    assert exc_info.value.status_code == 400


# ---------------------------------------------------------------------------
# Write paths, against an in-memory stand-in for the session
# ---------------------------------------------------------------------------

class FakeSession:
    def __init__(self):
        self.added = []

    def add(self, obj):
        self.added.append(obj)

    def flush(self):
        for index, obj in enumerate(self.added, start=1):
            if obj.id is None:
                obj.id = index


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeSession()
    rates = {3: Rate(id=3, employer_id=1, name="Standard", base_rate=54.5, currency="ILS")}
    calls = {"find_shift_on_day": []}

    @contextmanager
    def fake_scope():
        yield db

    def fake_find_shift_on_day(session, day, *, exclude_id=None):
        calls["find_shift_on_day"].append((day, exclude_id))
        return None

    monkeypatch.setattr(app_module, "session_scope", fake_scope)
    monkeypatch.setattr(crud, "get_employer", lambda session, employer_id: object())
    monkeypatch.setattr(crud, "get_rate", lambda session, rate_id: rates.get(rate_id))
    monkeypatch.setattr(crud, "find_shift_on_day", fake_find_shift_on_day)
    db.calls = calls
    return db


def stored_shift(**overrides) -> Shift:
    values = dict(
        id=7,
        employer_id=1,
        rate_id=3,
        start_time=datetime(2025, 3, 1, 8, 0),
        end_time=datetime(2025, 3, 1, 16, 0),
        break_minutes=0,
        notes="morning",
        regular_hours=8.0,
        overtime_hours1=0.0,
        overtime_hours2=0.0,
        total_hours=8.0,
        regular_earnings=436.0,
        overtime_earnings1=0.0,
        overtime_earnings2=0.0,
        total_earnings=436.0,
    )
    values.update(overrides)
    return Shift(**values)


def test_to_naive_utc():
    aware = datetime(2025, 3, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert to_naive_utc(aware) == datetime(2025, 4, 1, 4, 30)
    assert to_naive_utc(datetime(2025, 3, 31, 23, 30)) == datetime(2025, 3, 31, 23, 30)


def test_create_shift_stores_utc_in_the_month_of_the_instant():
    start = datetime(2025, 3, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    shift = crud.create_shift(
        FakeSession(),
        employer_id=1,
        rate_id=3,
        start_time=start,
        end_time=start + timedelta(hours=8),
        break_minutes=0,
        notes=None,
        result=stored_result(DummyShift(8.0, 0.0, 0.0, 8.0, 436.0, 0.0, 0.0, 436.0)),
    )

    april_start, april_end = day_range(*month_bounds(date(2025, 4, 1)))
    assert shift.start_time == datetime(2025, 4, 1, 4, 30)
    assert shift.end_time == datetime(2025, 4, 1, 12, 30)
    assert april_start <= shift.start_time < april_end


def test_create_shift_api_normalizes_offsets_before_checks(fake_db):
    payload = ShiftIn.model_validate(
        {
            "employer_id": 1,
            "rate_id": 3,
            "start_time": "2025-03-31T23:30:00-05:00",
            "end_time": "2025-04-01T09:30:00-05:00",
        }
    )
    out = create_shift_api(payload)

    assert fake_db.calls["find_shift_on_day"] == [(date(2025, 4, 1), None)]
    assert out.start_time == datetime(2025, 4, 1, 4, 30)
    assert out.total_hours == 10.0
    assert out.total_earnings == 572.25


def test_get_shift_api_missing_is_404(monkeypatch):
    monkeypatch.setattr(crud, "get_shift", lambda session, shift_id: None)
    with pytest.raises(HTTPException) as exc_info:
        get_shift_api(99, db=FakeSession())
    assert exc_info.value.status_code == 404


def test_get_shift_api_returns_stored_record(monkeypatch):
    monkeypatch.setattr(crud, "get_shift", lambda session, shift_id: stored_shift(id=shift_id))
    out = get_shift_api(7, db=FakeSession())
    assert out.id == 7
    assert out.total_earnings == 436.0


def test_update_shift_api_recalculates_stored_fields(fake_db, monkeypatch):
    shift = stored_shift()
    monkeypatch.setattr(crud, "get_shift", lambda session, shift_id: shift)

    out = update_shift_api(
        7,
        ShiftUpdateIn(end_time=datetime(2025, 3, 1, 20, 30), break_minutes=30),
    )

    assert fake_db.calls["find_shift_on_day"] == [(date(2025, 3, 1), 7)]
    assert shift.end_time == datetime(2025, 3, 1, 20, 30)
    assert shift.break_minutes == 30
    assert shift.overtime_hours2 == 2.0
    assert shift.overtime_earnings2 == 163.5
    assert shift.total_earnings == 735.75
    assert shift.notes == "morning"
    assert out.total_hours == 12.0


def test_update_shift_api_can_clear_notes(fake_db, monkeypatch):
    shift = stored_shift()
    monkeypatch.setattr(crud, "get_shift", lambda session, shift_id: shift)

    update_shift_api(7, ShiftUpdateIn(notes=None))

    assert shift.notes is None
    assert shift.total_earnings == 436.0


def test_update_shift_api_rejects_unknown_rate(fake_db, monkeypatch):
    monkeypatch.setattr(crud, "get_shift", lambda session, shift_id: stored_shift())
    with pytest.raises(HTTPException) as exc_info:
        update_shift_api(7, ShiftUpdateIn(rate_id=404))
    assert exc_info.value.detail == "Invalid rate ID"


def test_update_shift_api_missing_is_404(fake_db, monkeypatch):
    monkeypatch.setattr(crud, "get_shift", lambda session, shift_id: None)
    with pytest.raises(HTTPException) as exc_info:
        update_shift_api(7, ShiftUpdateIn(break_minutes=10))
    assert exc_info.value.status_code == 404
