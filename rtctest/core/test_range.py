# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import errno
from typing import cast

import pytest

from rtctest.core.errors import ErrorPolicy
from rtctest.core.model import ModelClock, RTCModel
from rtctest.core.range import DATES, DateVector, compare_dates, run_range
from rtctest.core.rtc import RTC, RTC_RD_TIME, RTC_SET_TIME, RTCTime
from rtctest.core.timefmt import epoch_to_rtc_time, rtc_time_to_epoch

NOW = 1_600_000_000 * 10**9


@pytest.fixture
def clock() -> ModelClock:
    return ModelClock(NOW)


def test_table_is_consistent() -> None:
    # Every expected date is exactly one second after its input.
    for vector in DATES:
        assert rtc_time_to_epoch(vector.expected) == rtc_time_to_epoch(vector.tm) + 1
        assert compare_dates(epoch_to_rtc_time(rtc_time_to_epoch(vector.tm)), vector.tm)


def test_table_edge_cases() -> None:
    byname = {v.name: v for v in DATES}

    leap = byname["2000 is a leap year"]
    assert leap.tm == RTCTime(59, 59, 23, 28, 1, 100)
    assert leap.expected == RTCTime(0, 0, 0, 29, 1, 100)

    noleap = byname["2100 is not a leap year"]
    assert noleap.tm == RTCTime(59, 59, 23, 28, 1, 200)
    assert noleap.expected == RTCTime(0, 0, 0, 1, 2, 200)

    assert list(byname)[0] == "UNIX epoch"
    assert list(byname)[-1] == "ktime_t overflow"


def test_compare_dates() -> None:
    tm = RTCTime(59, 59, 23, 28, 1, 100)
    assert compare_dates(tm, tm._replace(tm_wday=3, tm_yday=58, tm_isdst=1))
    for field in ["tm_sec", "tm_min", "tm_hour", "tm_mday", "tm_mon", "tm_year"]:
        assert not compare_dates(tm, tm._replace(**{field: getattr(tm, field) + 1}))


def test_all_ok(clock: ModelClock, capsys: pytest.CaptureFixture[str]) -> None:
    model = RTCModel(clock)

    results = run_range(cast(RTC, model), sleep=clock.sleep)

    assert [r.ok for r in results] == [True] * len(DATES)
    out = capsys.readouterr().out
    assert out.count("OK\n") == len(DATES)
    assert "\nTesting 2000-02-28 23:59:59.\nOK\n" in out
    assert "\nTesting 2262-04-11 23:47:16.\nOK\n" in out
    assert model.requests == ["RTC_SET_TIME", "RTC_RD_TIME", "RTC_RD_TIME"] * len(
        DATES
    )


def test_32bit_rtc(clock: ModelClock, capsys: pytest.CaptureFixture[str]) -> None:
    model = RTCModel(clock, wrap=2**32)

    results = {r.vector.name: r for r in run_range(cast(RTC, model), sleep=clock.sleep)}

    assert results["2099 to 2100"].ok
    assert not results["unsigned 32bit time_t overflow"].ok
    assert not results["ktime_t overflow"].ok

    out = capsys.readouterr().out
    assert (
        "\nTesting 2106-02-07 06:28:15.\n"
        "KO  Expected 2106-02-07 06:28:16.\n"
        "    Got      1970-01-01 00:00:00.\n"
    ) in out
    assert "\nTesting 2262-04-11 23:47:16.\nKO  Read back " in out


def test_request_failure_skips_date(
    clock: ModelClock, capsys: pytest.CaptureFixture[str]
) -> None:
    class FlakyModel(RTCModel):
        def set_time(self, tm: RTCTime) -> int:
            self.fail = {RTC_SET_TIME: errno.ERANGE} if tm.tm_year > 200 else {}
            return super().set_time(tm)

    model = FlakyModel(clock)
    results = run_range(cast(RTC, model), sleep=clock.sleep)

    assert [r.vector.tm.tm_year > 200 for r in results] == [
        not r.ok for r in results
    ]
    captured = capsys.readouterr()
    assert captured.err.count(f"KO RTC_SET_TIME returned {errno.ERANGE} (line ") == 2
    assert captured.out.count("OK\n") == len(DATES) - 2


def test_read_failure(clock: ModelClock, capsys: pytest.CaptureFixture[str]) -> None:
    model = RTCModel(clock)
    model.fail = {RTC_RD_TIME: errno.EINVAL}

    dates = [DateVector("one", RTCTime(0, 0, 0, 1, 0, 70), RTCTime(1, 0, 0, 1, 0, 70))]
    results = run_range(cast(RTC, model), dates, sleep=clock.sleep)

    assert not results[0].ok
    assert "RTC_RD_TIME" in str(results[0].reason)
    assert capsys.readouterr().err.startswith(f"KO RTC_RD_TIME returned {errno.EINVAL}")


def test_abort_policy(clock: ModelClock, capsys: pytest.CaptureFixture[str]) -> None:
    model = RTCModel(clock)
    model.fail = {RTC_SET_TIME: errno.EIO}

    with pytest.raises(SystemExit) as cm:
        run_range(cast(RTC, model), sleep=clock.sleep, policy=ErrorPolicy.ABORT_RUN)

    assert cm.value.code == errno.EIO
    # Stopped at the first date
    assert model.requests == ["RTC_SET_TIME"]
    assert capsys.readouterr().out.count("\nTesting ") == 1
