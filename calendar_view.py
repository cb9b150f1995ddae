"""Year / month / day renderings of the calendar with note indicators."""

import calendar
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


class CalendarViewMode(str, Enum):
    year = "year"
    month = "month"
    day = "day"


def note_dates(notes: Iterable[Dict[str, Any]]) -> Set[str]:
    return {str(n["date"]) for n in notes if n.get("date")}


def has_notes(day: date, dates: Set[str]) -> bool:
    return day.isoformat() in dates


def month_grid(year: int, month: int, dates: Set[str], today: date) -> Dict[str, Any]:
    # weeks start on Sunday
    leading = (date(year, month, 1).weekday() + 1) % 7
    days_in_month = calendar.monthrange(year, month)[1]
    days = []
    for d in range(1, days_in_month + 1):
        current = date(year, month, d)
        days.append({
            "day": d,
            "date": current.isoformat(),
            "has_notes": has_notes(current, dates),
            "is_today": current == today,
        })
    return {
        "year": year,
        "month": month,
        "name": MONTH_NAMES[month - 1],
        "leading_blanks": leading,
        "is_current_month": (year, month) == (today.year, today.month),
        "days": days,
    }


def year_view(year: int, dates: Set[str], today: date) -> Dict[str, Any]:
    return {
        "view": CalendarViewMode.year.value,
        "year": year,
        "months": [month_grid(year, m, dates, today) for m in range(1, 13)],
    }


def month_view(year: int, month: int, dates: Set[str], today: date) -> Dict[str, Any]:
    grid = month_grid(year, month, dates, today)
    grid["view"] = CalendarViewMode.month.value
    return grid


def day_view(day: date, notes: List[Dict[str, Any]], today: date) -> Dict[str, Any]:
    todays = [n for n in notes if str(n.get("date")) == day.isoformat()]
    return {
        "view": CalendarViewMode.day.value,
        "date": day.isoformat(),
        "is_today": day == today,
        "has_notes": bool(todays),
        "notes": todays,
    }


def build_view(
    mode: CalendarViewMode,
    anchor: date,
    notes: List[Dict[str, Any]],
    today: Optional[date] = None,
) -> Dict[str, Any]:
    today = today or date.today()
    dates = note_dates(notes)
    if mode == CalendarViewMode.year:
        return year_view(anchor.year, dates, today)
    if mode == CalendarViewMode.month:
        return month_view(anchor.year, anchor.month, dates, today)
    return day_view(anchor, notes, today)
