"""
Parsing of raw report records into typed entries.

Reports are stored with a JSON `content` column whose `entries` array was
written by the web client, so keys are camelCase and fields may be missing,
empty or string-typed. Missing numbers become 0 and missing text becomes ""
here, so the aggregation and export code never has to guess.
"""

import json
import math
from datetime import date, datetime

from models.entries import TimeEntry

# (field name, accepted keys)
TEXT_FIELDS = [
    ("order_number", ("orderNumber", "order_number")),
    ("object", ("object",)),
    ("location", ("location",)),
    ("expenses", ("expenses",)),
    ("notes", ("notes",)),
]
NUMBER_FIELDS = [
    ("hours", ("hours",)),
    ("absences", ("absences",)),
    ("overtime", ("overtime",)),
    ("expense_amount", ("expenseAmount", "expense_amount")),
]
# Time quantities cannot be negative
NON_NEGATIVE_FIELDS = {"hours", "absences", "overtime"}


def parse_entry_date(value) -> date:
    """
    Coerce a stored date value to a date.

    Accepts date/datetime objects, ISO dates and timestamps (with or
    without a trailing 'Z') and Swiss DD.MM.YYYY strings.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Missing or invalid entry date: {value!r}")

    text = value.strip()
    try:
        return datetime.strptime(text, "%d.%m.%Y").date()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValueError(f"Unrecognized entry date: {value!r}") from None


def parse_number(value) -> float:
    """Coerce a stored numeric value to a finite float, treating blanks as 0."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise ValueError(f"Invalid number: {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", "."))
        except ValueError:
            raise ValueError(f"Invalid number: {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"Invalid number: {value!r}")
    return number


def _first(raw: dict, keys: tuple[str, ...]):
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def parse_entry(raw: dict) -> TimeEntry:
    """Build a TimeEntry from a loosely-shaped entry dictionary."""
    values = {}
    for name, keys in TEXT_FIELDS:
        value = _first(raw, keys)
        values[name] = str(value).strip() if value is not None else ""
    for name, keys in NUMBER_FIELDS:
        values[name] = parse_number(_first(raw, keys))
        if name in NON_NEGATIVE_FIELDS and values[name] < 0:
            raise ValueError(f"Negative {name}: {values[name]}")

    return TimeEntry(date=parse_entry_date(raw.get("date")), **values)


def entries_from_reports(rows: list[dict]) -> list[TimeEntry]:
    """
    Flatten stored report rows into a single entry list.

    `content` may be the raw JSON text or an already decoded dict.
    """
    entries = []
    for row in rows:
        content = row.get("content")
        if isinstance(content, str):
            content = json.loads(content) if content.strip() else {}
        if not content:
            continue
        for raw in content.get("entries") or []:
            entries.append(parse_entry(raw))
    return entries


def entry_to_dict(entry: TimeEntry) -> dict:
    """Serialize an entry in the stored (camelCase) shape."""
    return {
        "date": entry.date.isoformat(),
        "orderNumber": entry.order_number,
        "object": entry.object,
        "location": entry.location,
        "hours": entry.hours,
        "absences": entry.absences,
        "overtime": entry.overtime,
        "expenses": entry.expenses,
        "expenseAmount": entry.expense_amount,
        "notes": entry.notes,
    }
