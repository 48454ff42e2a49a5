# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import enum
import logging
import sys
from typing import NoReturn

from rtctest.core.rtc import RTCError

logger = logging.getLogger(__name__)


class ErrorPolicy(enum.Enum):
    """What a tool does when a request to the RTC fails.

    The tools differ here: the control tool gives up at once, the range
    sweep only gives up on the current date, and the sync tool unwinds the
    whole run and exits with the error.
    """

    FATAL = "fatal"
    SKIP_ENTRY = "skip-entry"
    ABORT_RUN = "abort-run"


def handle_error(e: RTCError, policy: ErrorPolicy) -> None:
    """Report e, then exit with its errno unless the policy is SKIP_ENTRY."""
    logger.debug(f"{policy.value}: {e!r}")

    if policy == ErrorPolicy.SKIP_ENTRY:
        print(f"KO {e.request} returned {e.errno} (line {e.lineno})", file=sys.stderr)
        return

    if policy == ErrorPolicy.FATAL:
        print(e, file=sys.stderr)
    else:
        print(f"{e.request}: {e.strerror}", file=sys.stderr)

    sys.exit(e.errno)


def exit_open_error(path: object, e: OSError) -> NoReturn:
    print(f"{path}: {e.strerror}", file=sys.stderr)
    sys.exit(e.errno)
