# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import logging
import time
import typing
from typing import Callable, Final, Optional

from rtctest.core.errors import ErrorPolicy, handle_error
from rtctest.core.rtc import RTC, RTCError, RTCTime
from rtctest.core.timefmt import format_isodate

logger = logging.getLogger(__name__)


class DateVector(typing.NamedTuple):
    name: str
    tm: RTCTime
    expected: RTCTime


def _tm(year: int, mon: int, mday: int, hour: int, min: int, sec: int) -> RTCTime:
    return RTCTime(
        tm_sec=sec, tm_min=min, tm_hour=hour, tm_mday=mday, tm_mon=mon, tm_year=year
    )


# Years are since 1900 and months are 0-11, as in struct rtc_time.
DATES: Final = (
    DateVector(
        "UNIX epoch",
        _tm(70, 0, 1, 0, 0, 0),
        _tm(70, 0, 1, 0, 0, 1),
    ),
    DateVector(
        "2000 is a leap year",
        _tm(100, 1, 28, 23, 59, 59),
        _tm(100, 1, 29, 0, 0, 0),
    ),
    DateVector(
        "2020 is a leap year",
        _tm(120, 1, 28, 23, 59, 59),
        _tm(120, 1, 29, 0, 0, 0),
    ),
    DateVector(
        "signed 32bit time_t overflow",
        _tm(138, 0, 19, 3, 14, 7),
        _tm(138, 0, 19, 3, 14, 8),
    ),
    DateVector(
        "2069 to 2070",
        _tm(169, 11, 31, 23, 59, 59),
        _tm(170, 0, 1, 0, 0, 0),
    ),
    DateVector(
        "2079 to 2080",
        _tm(179, 11, 31, 23, 59, 59),
        _tm(180, 0, 1, 0, 0, 0),
    ),
    DateVector(
        "2099 to 2100",
        _tm(199, 11, 31, 23, 59, 59),
        _tm(200, 0, 1, 0, 0, 0),
    ),
    DateVector(
        "2100 is not a leap year",
        _tm(200, 1, 28, 23, 59, 59),
        _tm(200, 2, 1, 0, 0, 0),
    ),
    DateVector(
        "unsigned 32bit time_t overflow",
        _tm(206, 1, 7, 6, 28, 15),
        _tm(206, 1, 7, 6, 28, 16),
    ),
    DateVector(
        "ktime_t overflow",
        _tm(362, 3, 11, 23, 47, 16),
        _tm(362, 3, 11, 23, 47, 17),
    ),
)


def compare_dates(a: RTCTime, b: RTCTime) -> bool:
    """Field-wise equality of the calendar fields, ignoring wday/yday/isdst."""
    return (
        a.tm_year == b.tm_year
        and a.tm_mon == b.tm_mon
        and a.tm_mday == b.tm_mday
        and a.tm_hour == b.tm_hour
        and a.tm_min == b.tm_min
        and a.tm_sec == b.tm_sec
    )


class RangeResult(typing.NamedTuple):
    vector: DateVector
    ok: bool
    reason: Optional[str] = None


def isodate(tm: RTCTime) -> str:
    return format_isodate(tm, sep=" ")


def check_date(
    rtc: RTC, vector: DateVector, sleep: Callable[[float], None] = time.sleep
) -> RangeResult:
    rtc.set_time(vector.tm)

    tm = rtc.read_time()
    if not compare_dates(vector.tm, tm):
        print(f"KO  Read back {isodate(tm)}.")
        return RangeResult(vector, False, f"read back {isodate(tm)}")

    # Alarms can't be relied upon, and update interrupts are implemented
    # with alarms, so just wait.
    sleep(1)

    tm = rtc.read_time()
    if not compare_dates(vector.expected, tm):
        print(f"KO  Expected {isodate(vector.expected)}.")
        print(f"    Got      {isodate(tm)}.")
        return RangeResult(vector, False, f"got {isodate(tm)}")

    print("OK")
    return RangeResult(vector, True)


def run_range(
    rtc: RTC,
    dates: typing.Sequence[DateVector] = DATES,
    sleep: Callable[[float], None] = time.sleep,
    policy: ErrorPolicy = ErrorPolicy.SKIP_ENTRY,
) -> list[RangeResult]:
    """Try every date in turn.

    A wrong date only ends the current date.  A failed request is reported
    according to policy, which by default also moves on to the next date.
    """
    results = []

    for vector in dates:
        print(f"\nTesting {isodate(vector.tm)}.")
        logger.debug(vector.name)

        try:
            result = check_date(rtc, vector, sleep)
        except RTCError as e:
            handle_error(e, policy)
            result = RangeResult(vector, False, str(e))

        results.append(result)

    return results
