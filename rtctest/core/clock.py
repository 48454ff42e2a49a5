# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import logging
import os
import time

logger = logging.getLogger(__name__)

NSEC_PER_SEC = 1_000_000_000


class SystemClock:
    """CLOCK_REALTIME and CLOCK_MONOTONIC, in integer nanoseconds."""

    def realtime_ns(self) -> int:
        return time.clock_gettime_ns(time.CLOCK_REALTIME)

    def monotonic_ns(self) -> int:
        return time.clock_gettime_ns(time.CLOCK_MONOTONIC)

    def realtime_res_ns(self) -> int:
        return round(time.clock_getres(time.CLOCK_REALTIME) * NSEC_PER_SEC)

    def monotonic_res_ns(self) -> int:
        return round(time.clock_getres(time.CLOCK_MONOTONIC) * NSEC_PER_SEC)

    def sleep_until(self, deadline_ns: int) -> None:
        # There is no clock_nanosleep(TIMER_ABSTIME) in the time module, so
        # sleep relative to CLOCK_REALTIME and recheck in case the sleep was
        # cut short or the clock was stepped.
        while True:
            remaining = deadline_ns - self.realtime_ns()
            if remaining <= 0:
                return
            time.sleep(remaining / NSEC_PER_SEC)


def request_realtime_priority() -> bool:
    """Ask for the highest SCHED_FIFO priority for this process.

    This only reduces scheduling jitter around the measurements, so a
    failure (usually EPERM) is logged and otherwise ignored.
    """
    try:
        prio = os.sched_get_priority_max(os.SCHED_FIFO)
        os.sched_setscheduler(0, os.SCHED_FIFO, os.sched_param(prio))
    except OSError as e:
        logger.warning(f"Unable to set realtime priority: {e.strerror}")
        return False

    logger.debug(f"Running with SCHED_FIFO priority {prio}")
    return True
