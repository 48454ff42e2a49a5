# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import argparse
import logging
import os
import sys
from typing import NoReturn, Optional, Sequence

assert sys.version_info >= (3, 9), "Python version is too old"

from rtctest.core.config import RtcConfig, setup_logging
from rtctest.core.errors import ErrorPolicy, exit_open_error
from rtctest.core.range import run_range
from rtctest.core.rtc import RTC

logger = logging.getLogger(__name__)


class RangeParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        logger.debug(message)
        print(f"usage: {self.prog} [rtcdev]", file=sys.stderr)
        sys.exit(1)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = RangeParser(description="Check that an RTC handles calendar edge cases")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("device", nargs="?", help="RTC device node")
    args = parser.parse_args(argv)

    config = RtcConfig.from_namespace(args, ErrorPolicy.SKIP_ENTRY, os.environ)
    setup_logging(config)

    try:
        with RTC(config.device) as rtc:
            results = run_range(rtc, policy=config.policy)
    except OSError as e:
        exit_open_error(config.device, e)

    # Failed dates are only logged, the exit status stays 0.
    for result in results:
        if not result.ok:
            logger.info(f"{result.vector.name}: {result.reason}")


if __name__ == "__main__":
    main()
