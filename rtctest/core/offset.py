# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

# Measurement of the phase offset between CLOCK_REALTIME and the instant
# the RTC increments its seconds counter.  All strategies return the
# system time at the tick minus the RTC time at the tick.

import logging
from dataclasses import dataclass
from typing import Callable, Final

from rtctest.core.clock import NSEC_PER_SEC, SystemClock
from rtctest.core.rtc import RTC
from rtctest.core.timefmt import epoch_to_rtc_time, rtc_time_to_epoch

logger = logging.getLogger(__name__)

UIE_ITERATIONS: Final = 5
POLL_CALIBRATION_READS: Final = 100


@dataclass(frozen=True)
class Offset:
    seconds: int
    nanoseconds: int

    @property
    def total_ns(self) -> int:
        return self.seconds * NSEC_PER_SEC + self.nanoseconds

    def __neg__(self) -> "Offset":
        return Offset(-self.seconds, -self.nanoseconds)

    def __str__(self) -> str:
        return f"{self.seconds}s + {self.nanoseconds:09d}ns = {self.total_ns}ns"


Strategy = Callable[[RTC, SystemClock], Offset]


def timespec_diff(start_ns: int, stop_ns: int) -> tuple[int, int]:
    return divmod(stop_ns - start_ns, NSEC_PER_SEC)


def _sample(now_ns: int, rtc_secs: int) -> Offset:
    now_sec, now_nsec = divmod(now_ns, NSEC_PER_SEC)
    print(f"{rtc_secs} {now_sec}.{now_nsec:09d}")
    return Offset(now_sec - rtc_secs, now_nsec)


def offset_uie(rtc: RTC, clock: SystemClock) -> Offset:
    """Sample the system clock on update interrupts."""
    offset = Offset(0, 0)

    rtc.uie_on()
    try:
        for _ in range(UIE_ITERATIONS):
            rtc.read()
            now = clock.realtime_ns()
            offset = _sample(now, rtc_time_to_epoch(rtc.read_time()))
    finally:
        rtc.uie_off()

    return offset


def offset_alarm(rtc: RTC, clock: SystemClock) -> Offset:
    """Sample the system clock when an alarm one second ahead fires."""
    secs = rtc_time_to_epoch(rtc.read_time()) + 1

    alarm = epoch_to_rtc_time(secs)._replace(tm_wday=-1, tm_yday=-1, tm_isdst=-1)
    rtc.set_wake_alarm(True, alarm)

    rtc.read()
    now = clock.realtime_ns()

    return _sample(now, rtc_time_to_epoch(rtc.read_time()))


def offset_poll(rtc: RTC, clock: SystemClock) -> Offset:
    """Busy-poll the seconds field until it changes.

    The cost of RTC_RD_TIME is measured first and subtracted from the
    result.  This assumes the cost is stable, which it is not always, so
    the correction is only an approximation.
    """
    total = 0
    for _ in range(POLL_CALIBRATION_READS):
        before = clock.monotonic_ns()
        rtc.read_time()
        after = clock.monotonic_ns()
        total += after - before

    mean = total // POLL_CALIBRATION_READS
    print(f"POLL: Mean time to read: {mean}")

    start = rtc.read_time().tm_sec
    reads = 0
    while True:
        reads += 1
        before = clock.monotonic_ns()
        tm = rtc.read_time()
        after = clock.monotonic_ns()
        if tm.tm_sec != start:
            break

    logger.debug(f"POLL: tick seen after {reads} reads")

    now_sec, now_nsec = divmod(clock.realtime_ns(), NSEC_PER_SEC)
    secs = rtc_time_to_epoch(tm)
    print(f"POLL: corrected: {secs} {now_sec}.{now_nsec - mean:09d}")

    _, last = timespec_diff(before, after)
    print(f"POLL: Last time to read: {last} {POLL_CALIBRATION_READS}")

    return Offset(now_sec - secs, now_nsec - mean)


STRATEGIES: Final[dict[str, Strategy]] = {
    "alarm": offset_alarm,
    "uie": offset_uie,
    "poll": offset_poll,
}

DEFAULT_STRATEGY: Final = "alarm"
