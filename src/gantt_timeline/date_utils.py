from __future__ import annotations

import datetime as dt
import logging
import math
import re

logger = logging.getLogger(__name__)

YEAR = "year"
MONTH = "month"
DAY = "day"
HOUR = "hour"
MINUTE = "minute"
SECOND = "second"
MILLISECOND = "millisecond"

# Month and year are fixed-length approximations, not calendar-aware.
_UNIT_LENGTHS: dict[str, dt.timedelta] = {
    MILLISECOND: dt.timedelta(milliseconds=1),
    SECOND: dt.timedelta(seconds=1),
    MINUTE: dt.timedelta(minutes=1),
    HOUR: dt.timedelta(hours=1),
    DAY: dt.timedelta(days=1),
    MONTH: dt.timedelta(days=30),
    YEAR: dt.timedelta(days=360),
}

_UNIT_RANK: dict[str, int] = {
    YEAR: 6,
    MONTH: 5,
    DAY: 4,
    HOUR: 3,
    MINUTE: 2,
    SECOND: 1,
    MILLISECOND: 0,
}

MONTH_NAMES: dict[str, list[str]] = {
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "es": [
        "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
        "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
    ],
    "it": [
        "Gennaio", "Febbraio", "Marzo", "Aprile", "Maggio", "Giugno",
        "Luglio", "Agosto", "Settembre", "Ottobre", "Novembre", "Dicembre",
    ],
    "ru": [
        "Январь", "Февраль", "Март", "Апрель", "Май", "Июнь",
        "Июль", "Август", "Сентябрь", "Октябрь", "Ноябрь", "Декабрь",
    ],
    "ptBr": [
        "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
        "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
    ],
    "fr": [
        "Janvier", "Février", "Mars", "Avril", "Mai", "Juin",
        "Juillet", "Août", "Septembre", "Octobre", "Novembre", "Décembre",
    ],
    "tr": [
        "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
        "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
    ],
    "zh": [
        "一月", "二月", "三月", "四月", "五月", "六月",
        "七月", "八月", "九月", "十月", "十一月", "十二月",
    ],
    "de": [
        "Januar", "Februar", "März", "April", "Mai", "Juni",
        "Juli", "August", "September", "Oktober", "November", "Dezember",
    ],
    "hu": [
        "Január", "Február", "Március", "Április", "Május", "Június",
        "Július", "Augusztus", "Szeptember", "Október", "November", "December",
    ],
}

_DAYS_IN_MONTH = [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]

_TIME_SEPARATOR = re.compile(r"[.:]")
_FORMAT_TOKEN = re.compile(r"YYYY|MMMM|MMM|MM|DD|HH|mm|ss|SSS|D")


def _normalize_unit(unit: str) -> str:
    unit = unit.lower()
    if unit.endswith("s"):
        unit = unit[:-1]
    if unit not in _UNIT_RANK:
        raise ValueError(f"unknown date unit '{unit}'")
    return unit


def _build(
    year: int,
    month0: int,
    day: int = 1,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    millisecond: int = 0,
) -> dt.datetime:
    """
    Assemble an instant from wall-clock components with calendar rollover.

    `month0` is zero-based. Out-of-range components carry into the next
    larger unit (month 12 is January of the following year, day 0 is the
    last day of the previous month, hour 25 is 1am the next day).
    """

    year += month0 // 12
    month0 %= 12
    base = dt.datetime(year, month0 + 1, 1)
    return base + dt.timedelta(
        days=day - 1,
        hours=hour,
        minutes=minute,
        seconds=second,
        milliseconds=millisecond,
    )


def get_date_values(instant: dt.datetime) -> list[int]:
    """Return [year, month0, day, hour, minute, second, millisecond]."""
    return [
        instant.year,
        instant.month - 1,
        instant.day,
        instant.hour,
        instant.minute,
        instant.second,
        instant.microsecond // 1000,
    ]


def parse(value: str | dt.date | dt.datetime | None) -> dt.datetime | None:
    """
    Parse a task date into a naive datetime.

    Accepts datetimes (returned unchanged), dates (midnight), or text of the
    form ``YYYY-MM-DD`` optionally followed by whitespace and a time part
    ``HH[:mm[:ss[.SSS]]]``. Returns None for None or blank text and raises
    ValueError when the text cannot be read.
    """

    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise ValueError(f"cannot parse date from {type(value).__name__}")

    text = value.strip()
    if not text:
        return None

    parts = text.split()
    if len(parts) > 2:
        raise ValueError(f"invalid date '{value}'")

    try:
        date_parts = [int(p) for p in parts[0].split("-")]
        time_parts = _TIME_SEPARATOR.split(parts[1]) if len(parts) == 2 else []
        if len(date_parts) != 3 or len(time_parts) > 4:
            raise ValueError(f"invalid date '{value}'")
        year, month, day = date_parts
        times = [int(p) for p in time_parts[:3]]
        millisecond = 0
        if len(time_parts) == 4:
            millisecond = int(float("0." + time_parts[3]) * 1000)
    except ValueError as exc:
        raise ValueError(f"invalid date '{value}'") from exc

    try:
        return _build(year, month - 1, day, *times, millisecond)
    except (OverflowError, ValueError) as exc:
        raise ValueError(f"invalid date '{value}'") from exc


_warned_languages: set[str] = set()


def month_names(language: str) -> list[str]:
    names = MONTH_NAMES.get(language)
    if names is None:
        if language not in _warned_languages:
            _warned_languages.add(language)
            logger.warning("Unknown language %r, falling back to English month names", language)
        names = MONTH_NAMES["en"]
    return names


def format(instant: dt.datetime, pattern: str = "YYYY-MM-DD HH:mm:ss.SSS", language: str = "en") -> str:
    """
    Render `instant` with a token pattern.

    Numeric tokens are zero-padded (two digits, ``SSS`` three). ``MMMM`` and
    ``MMM`` both give the full month name in `language`.
    """

    values = get_date_values(instant)
    name = month_names(language)[values[1]]
    tokens = {
        "YYYY": f"{values[0]:02d}",
        "MMMM": name,
        "MMM": name,
        "MM": f"{values[1] + 1:02d}",
        "DD": f"{values[2]:02d}",
        "D": f"{values[2]:02d}",
        "HH": f"{values[3]:02d}",
        "mm": f"{values[4]:02d}",
        "ss": f"{values[5]:02d}",
        "SSS": f"{values[6]:03d}",
    }
    return _FORMAT_TOKEN.sub(lambda m: tokens[m.group(0)], pattern)


def to_string(instant: dt.datetime, with_time: bool = False) -> str:
    date_string = format(instant, "YYYY-MM-DD")
    if not with_time:
        return date_string
    return date_string + " " + format(instant, "HH:mm:ss.SSS")


def diff(date_a: dt.datetime, date_b: dt.datetime, unit: str = DAY) -> int:
    """Whole `unit`s elapsed from `date_b` to `date_a`, floored."""
    unit = _normalize_unit(unit)
    return math.floor((date_a - date_b) / _UNIT_LENGTHS[unit])


def add(instant: dt.datetime, qty: float, unit: str) -> dt.datetime:
    """Shift `instant` by `qty` units; fractional quantities truncate toward zero."""
    unit = _normalize_unit(unit)
    qty = int(qty)
    values = get_date_values(instant)
    index = {YEAR: 0, MONTH: 1, DAY: 2, HOUR: 3, MINUTE: 4, SECOND: 5, MILLISECOND: 6}[unit]
    values[index] += qty
    result = _build(*values)
    return result.replace(microsecond=result.microsecond + instant.microsecond % 1000)


def start_of(instant: dt.datetime, unit: str) -> dt.datetime:
    """Zero every component finer than `unit`."""
    rank = _UNIT_RANK[_normalize_unit(unit)]

    def reset(component: str) -> bool:
        return _UNIT_RANK[component] <= rank

    return dt.datetime(
        instant.year,
        1 if reset(YEAR) else instant.month,
        1 if reset(MONTH) else instant.day,
        0 if reset(DAY) else instant.hour,
        0 if reset(HOUR) else instant.minute,
        0 if reset(MINUTE) else instant.second,
        0 if reset(SECOND) else (instant.microsecond // 1000) * 1000,
    )


def clone(instant: dt.datetime) -> dt.datetime:
    return _build(*get_date_values(instant))


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_month(instant: dt.date) -> int:
    if instant.month != 2:
        return _DAYS_IN_MONTH[instant.month - 1]
    return 29 if is_leap_year(instant.year) else 28


def today() -> dt.datetime:
    return start_of(dt.datetime.now(), DAY)


def now() -> dt.datetime:
    return dt.datetime.now()


def has_time_of_day(instant: dt.datetime) -> bool:
    return any(get_date_values(instant)[3:]) or instant.microsecond != 0
