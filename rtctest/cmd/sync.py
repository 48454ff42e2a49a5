# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

assert sys.version_info >= (3, 9), "Python version is too old"

from rtctest.core.clock import SystemClock, request_realtime_priority
from rtctest.core.config import SyncConfig, setup_logging
from rtctest.core.errors import ErrorPolicy, exit_open_error, handle_error
from rtctest.core.offset import DEFAULT_STRATEGY, STRATEGIES
from rtctest.core.rtc import RTC, RTCError
from rtctest.core.sync import run_sync

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Set the RTC so that it ticks on system clock second boundaries"
    )
    parser.add_argument(
        "--strategy",
        choices=sorted(STRATEGIES),
        default=DEFAULT_STRATEGY,
        help="How to find the RTC tick (default: %(default)s)",
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Request SCHED_FIFO to reduce jitter in the measurements",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("device", nargs="?", help="RTC device node")
    args = parser.parse_args(argv)

    config = SyncConfig.from_namespace(args, ErrorPolicy.ABORT_RUN, os.environ)
    setup_logging(config)
    logger.debug(f"{config=}")

    if config.realtime:
        request_realtime_priority()

    try:
        with RTC(config.device) as rtc:
            run_sync(rtc, SystemClock(), STRATEGIES[config.strategy])
    except RTCError as e:
        handle_error(e, config.policy)
    except OSError as e:
        exit_open_error(config.device, e)


if __name__ == "__main__":
    main()
