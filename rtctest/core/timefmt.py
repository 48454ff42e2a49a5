# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

# Conversions between struct rtc_time, the YYYY-MM-DDThh:mm:ss notation
# used on the command line, and seconds since the epoch.
#
# The epoch conversions are done with integer arithmetic on the proleptic
# Gregorian calendar instead of calendar.timegm()/time.gmtime(), since the
# latter are bounded by the platform's time_t and datetime stops at
# year 9999.

import re

from rtctest.core.rtc import RTCTime

SECS_PER_DAY = 86400

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

ISODATE_RE = re.compile(
    r"\s*([+-]?\d+)-([+-]?\d+)-([+-]?\d+)T([+-]?\d+):([+-]?\d+):([+-]?\d+)\s*"
)


def parse_isodate(text: str) -> RTCTime:
    m = ISODATE_RE.fullmatch(text)
    if not m:
        raise ValueError(f"Invalid date {text!r}, expected YYYY-MM-DDThh:mm:ss")

    year, mon, mday, hour, min, sec = (int(v) for v in m.groups())
    tm = RTCTime(
        tm_sec=sec,
        tm_min=min,
        tm_hour=hour,
        tm_mday=mday,
        tm_mon=mon - 1,
        tm_year=year - 1900,
    )
    # Every field is a C int in struct rtc_time
    if not all(INT_MIN <= v <= INT_MAX for v in tm):
        raise ValueError(f"Date {text!r} out of range")

    return tm


def format_isodate(tm: RTCTime, sep: str = "T") -> str:
    return (
        f"{tm.tm_year + 1900:04d}-{tm.tm_mon + 1:02d}-{tm.tm_mday:02d}"
        f"{sep}{tm.tm_hour:02d}:{tm.tm_min:02d}:{tm.tm_sec:02d}"
    )


def days_from_civil(year: int, month: int, day: int) -> int:
    """Days since 1970-01-01 for a Gregorian date, month 1-12."""
    year -= month <= 2
    era = year // 400
    yoe = year - era * 400
    doy = (153 * (month + (-3 if month > 2 else 9)) + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * 146097 + doe - 719468


def civil_from_days(days: int) -> tuple[int, int, int]:
    """Inverse of days_from_civil(), returns (year, month 1-12, day)."""
    days += 719468
    era = days // 146097
    doe = days - era * 146097
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400 + (month <= 2)
    return year, month, day


def rtc_time_to_epoch(tm: RTCTime) -> int:
    # Out of range months are carried into the year, like timegm() does.
    year = tm.tm_year + 1900 + tm.tm_mon // 12
    mon = tm.tm_mon % 12

    days = days_from_civil(year, mon + 1, 1) + tm.tm_mday - 1
    return days * SECS_PER_DAY + tm.tm_hour * 3600 + tm.tm_min * 60 + tm.tm_sec


def epoch_to_rtc_time(secs: int) -> RTCTime:
    days, rem = divmod(secs, SECS_PER_DAY)
    year, month, day = civil_from_days(days)
    hour, rem = divmod(rem, 3600)
    min, sec = divmod(rem, 60)

    return RTCTime(
        tm_sec=sec,
        tm_min=min,
        tm_hour=hour,
        tm_mday=day,
        tm_mon=month - 1,
        tm_year=year - 1900,
        # 1970-01-01 was a Thursday
        tm_wday=(days + 4) % 7,
        tm_yday=days - days_from_civil(year, 1, 1),
        tm_isdst=0,
    )
