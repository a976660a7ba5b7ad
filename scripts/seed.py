from datetime import datetime

from shiftpay import crud
from shiftpay.calculations import calculate_shift_earnings
from shiftpay.db import session_scope
from shiftpay.models import Employer, Rate

DEMO_SHIFTS = [
    # start, end, break minutes
    (datetime(2025, 1, 5, 8, 0), datetime(2025, 1, 5, 16, 0), 0),
    (datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 18, 0), 0),
    (datetime(2025, 1, 7, 8, 0), datetime(2025, 1, 7, 20, 30), 30),
    (datetime(2025, 1, 8, 22, 0), datetime(2025, 1, 9, 6, 0), 0),
]

with session_scope() as db:
    employer = Employer(name="Test Cafe", color="#3b82f6")
    db.add(employer)
    db.flush()

    rate = Rate(employer_id=employer.id, name="Standard", base_rate=54.5, currency="ILS")
    db.add(rate)
    db.flush()

    for start, end, brk in DEMO_SHIFTS:
        crud.create_shift(
            db,
            employer_id=employer.id,
            rate_id=rate.id,
            start_time=start,
            end_time=end,
            break_minutes=brk,
            notes="seed",
            result=calculate_shift_earnings(start, end, brk, rate.base_rate),
        )

    print("employer_id=", employer.id, "rate_id=", rate.id, "shifts=", len(DEMO_SHIFTS))
