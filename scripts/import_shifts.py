from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from shiftpay import crud
from shiftpay.calculations import ShiftCalculationError, calculate_shift_earnings
from shiftpay.db import session_scope

logger = logging.getLogger("import_shifts")


def load_json(path: Path) -> list[dict]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("shifts") or []
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a list of shifts")
    return payload


def parse_instant(value: str) -> datetime:
    # Accept the trailing "Z" emitted by JavaScript's toISOString()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return crud.to_naive_utc(datetime.fromisoformat(value))


def import_file(
    path: Path,
    *,
    employer_id: int,
    rate_id: int,
    skip_invalid: bool,
) -> int:
    rows = load_json(path)
    imported = 0

    with session_scope() as db:
        if not crud.get_employer(db, employer_id):
            raise ValueError(f"Employer {employer_id} not found")
        rate = crud.get_rate(db, rate_id)
        if not rate:
            raise ValueError(f"Rate {rate_id} not found")

        for index, row in enumerate(rows):
            start = parse_instant(row["startTime"] if "startTime" in row else row["start_time"])
            end = parse_instant(row["endTime"] if "endTime" in row else row["end_time"])
            brk = int(row.get("breakDuration", row.get("break_minutes", 0)) or 0)

            try:
                result = calculate_shift_earnings(start, end, brk, rate.base_rate)
            except ShiftCalculationError as exc:
                if not skip_invalid:
                    raise ValueError(f"{path} row {index}: {exc}") from exc
                logger.warning("Skipping %s row %d: %s", path, index, exc)
                continue

            crud.create_shift(
                db,
                employer_id=employer_id,
                rate_id=rate.id,
                start_time=start,
                end_time=end,
                break_minutes=brk,
                notes=row.get("notes") or None,
                result=result,
            )
            imported += 1

    return imported


def main() -> None:
    parser = argparse.ArgumentParser(description="Import shifts from a JSON export.")
    parser.add_argument("--employer-id", type=int, required=True)
    parser.add_argument("--rate-id", type=int, required=True)
    parser.add_argument("--file", type=Path, required=True)
    parser.add_argument(
        "--skip-invalid",
        action="store_true",
        help="Log and skip shifts whose times or break are invalid instead of aborting.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    count = import_file(
        args.file,
        employer_id=args.employer_id,
        rate_id=args.rate_id,
        skip_invalid=args.skip_invalid,
    )
    logger.info("Imported %d shifts from %s", count, args.file)


if __name__ == "__main__":
    main()
