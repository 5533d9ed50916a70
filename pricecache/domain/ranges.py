"""Range descriptor parsing and date normalization.

Month and year lengths are approximations (30 days + 1 and 365 days), not
true calendar arithmetic. Existing callers depend on these exact counts.
"""
import re
from datetime import date, datetime
from typing import Optional

from pricecache.domain.entities import RangeRequest, RangeUnit
from pricecache.domain.errors import DateFormatError, InvalidRangeError

_DESCRIPTOR_RE = re.compile(r"^(?P<magnitude>\d*)(?P<unit>[a-z]+)$")
_COMPACT_DATE_RE = re.compile(r"^\d{8}$")

_SENTINEL_UNITS = (RangeUnit.MAX, RangeUnit.SINGLE_DATE)


def normalize_date(value: str) -> date:
    """Convert a compact ``YYYYMMDD`` date into a calendar date."""
    text = (value or "").strip()
    if not _COMPACT_DATE_RE.match(text):
        raise DateFormatError(
            f"Invalid date '{value}', expected YYYYMMDD", {"date": value}
        )
    try:
        return datetime.strptime(text, "%Y%m%d").date()
    except ValueError as e:
        raise DateFormatError(
            f"Invalid date '{value}': {e}", {"date": value}
        ) from e


def day_count_for(unit: RangeUnit, magnitude: int, today: date) -> Optional[int]:
    """Number of calendar days before today covered by a finite range."""
    if unit is RangeUnit.DAY:
        return magnitude
    if unit is RangeUnit.WEEK:
        return magnitude * 7
    if unit is RangeUnit.MONTH:
        return magnitude * 30 + 1
    if unit is RangeUnit.YEAR:
        return magnitude * 365
    if unit is RangeUnit.YEAR_TO_DATE:
        return today.timetuple().tm_yday
    return None


def parse_range(
    descriptor: str, date_arg: Optional[str] = None, today: Optional[date] = None
) -> RangeRequest:
    """Parse a range descriptor such as ``5d``, ``3m``, ``ytd``, ``max`` or ``date``.

    A bare ``YYYYMMDD`` descriptor is read as a single-date request anchored on
    itself. For the ``date`` unit the anchor comes from ``date_arg``; a missing
    ``date_arg`` leaves ``anchor_date`` unset, a malformed one raises
    DateFormatError.
    """
    today = today or date.today()
    code = (descriptor or "").strip().lower()

    if _COMPACT_DATE_RE.match(code):
        return RangeRequest(
            code=RangeUnit.SINGLE_DATE.value,
            unit=RangeUnit.SINGLE_DATE,
            anchor_date=normalize_date(code),
        )

    match = _DESCRIPTOR_RE.match(code)
    if not match:
        raise InvalidRangeError(
            f"Invalid range '{descriptor}'", {"range": descriptor}
        )
    try:
        unit = RangeUnit(match.group("unit"))
    except ValueError as e:
        raise InvalidRangeError(
            f"Unrecognized range unit '{match.group('unit')}' in '{descriptor}'",
            {"range": descriptor, "unit": match.group("unit")},
        ) from e

    try:
        magnitude = int(match.group("magnitude") or 0)
    except ValueError as e:
        raise InvalidRangeError(
            f"Range magnitude too large in '{descriptor}'", {"range": descriptor}
        ) from e

    anchor_date = None
    if unit is RangeUnit.SINGLE_DATE and date_arg:
        anchor_date = normalize_date(date_arg)

    day_count = None if unit in _SENTINEL_UNITS else day_count_for(unit, magnitude, today)
    if day_count is not None and day_count > (today - date.min).days:
        raise InvalidRangeError(
            f"Range '{descriptor}' reaches back before {date.min.isoformat()}",
            {"range": descriptor, "day_count": day_count},
        )

    return RangeRequest(
        code=code,
        unit=unit,
        magnitude=magnitude,
        day_count=day_count,
        anchor_date=anchor_date,
    )
