# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import logging
from typing import Final

from rtctest.core.clock import NSEC_PER_SEC, SystemClock
from rtctest.core.offset import Offset, Strategy
from rtctest.core.rtc import RTC
from rtctest.core.timefmt import epoch_to_rtc_time

logger = logging.getLogger(__name__)

# Setting the RTC needs some lead time before the chosen instant.
MIN_LEAD_NS: Final = 100_000_000
# Past this fraction of a second, the coarse step waits for the second after.
STEP_LATE_NS: Final = 900_000_000


def plan_step(now_ns: int) -> tuple[int, int]:
    """Return (wake instant, RTC seconds) for setting the RTC to the next
    whole system second."""
    now_sec, now_nsec = divmod(now_ns, NSEC_PER_SEC)

    wake_sec = now_sec + 1
    if now_nsec > STEP_LATE_NS:
        wake_sec += 1

    return wake_sec * NSEC_PER_SEC, wake_sec


def plan_alignment(now_ns: int, offset: Offset) -> tuple[int, int]:
    """Return (wake instant, RTC seconds) so that, after writing the RTC at
    the wake instant, its ticks fall on system second boundaries."""
    now_sec, now_nsec = divmod(now_ns, NSEC_PER_SEC)

    wake_nsec = NSEC_PER_SEC - offset.nanoseconds
    if offset.seconds < 0:
        # The RTC is ahead.  Unless the system time is going backwards, this
        # is never by more than one second.
        secs = now_sec
    else:
        # The RTC is late, so one tick before the wake instant it has to be
        # set to the next second plus the whole seconds it is behind.
        secs = now_sec + 1 + offset.seconds

    if wake_nsec - now_nsec < MIN_LEAD_NS:
        now_sec += 1
        secs += 1

    return now_sec * NSEC_PER_SEC + wake_nsec, secs


def set_at(rtc: RTC, clock: SystemClock, wake_ns: int, secs: int) -> None:
    wake_sec, wake_nsec = divmod(wake_ns, NSEC_PER_SEC)
    print(f"setting {secs} at {wake_sec}.{wake_nsec:09d}")

    tm = epoch_to_rtc_time(secs)
    clock.sleep_until(wake_ns)
    rtc.set_time(tm)


def step(rtc: RTC, clock: SystemClock) -> None:
    set_at(rtc, clock, *plan_step(clock.realtime_ns()))


def align(rtc: RTC, clock: SystemClock, offset: Offset) -> None:
    set_at(rtc, clock, *plan_alignment(clock.realtime_ns(), offset))


def run_sync(rtc: RTC, clock: SystemClock, strategy: Strategy) -> Offset:
    """Bring the RTC in phase with the system clock and return the
    residual offset.

    This is a single pass: the RTC is first stepped to the system time on a
    second boundary, then the offset is measured and compensated once.  Any
    error is left to propagate.
    """
    res = clock.realtime_res_ns()
    print(f"CLOCK_REALTIME {res // NSEC_PER_SEC}.{res % NSEC_PER_SEC:09d}")
    res = clock.monotonic_res_ns()
    print(f"CLOCK_MONOTONIC {res // NSEC_PER_SEC}.{res % NSEC_PER_SEC:09d}")

    offset = strategy(rtc, clock)
    print(f"Current offset: {offset}")

    step(rtc, clock)

    offset = strategy(rtc, clock)
    print(f"Set offset: {offset}")

    align(rtc, clock, offset)

    offset = strategy(rtc, clock)
    print(f"New offset: {offset}")
    logger.debug(f"Residual offset {offset.total_ns}ns")

    return offset
