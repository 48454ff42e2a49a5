# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import argparse
import errno
import logging
import os
import sys
from typing import Callable, NoReturn, Optional, Sequence

assert sys.version_info >= (3, 9), "Python version is too old"

from rtctest.core.config import RtcConfig, setup_logging
from rtctest.core.errors import ErrorPolicy, exit_open_error, handle_error
from rtctest.core.params import RTCParamId, describe_vl, format_param, parse_param
from rtctest.core.rtc import RTC, RTCError
from rtctest.core.timefmt import format_isodate, parse_isodate

logger = logging.getLogger(__name__)

COMMANDS = [
    "rd [rtc]",
    "set YYYY-MM-DDThh:mm:ss [rtc]",
    "wkalmrd [rtc]",
    "wkalmset YYYY-MM-DDThh:mm:ss [rtc]",
    "almread [rtc]",
    "almset YYYY-MM-DDThh:mm:ss [rtc]",
    "aieon [rtc]",
    "aieoff [rtc]",
    "vlrd [rtc]",
    "vlclr [rtc]",
    "paramget param index [rtc]",
    "paramset param index value [rtc]",
]


def usage(prog: str) -> NoReturn:
    lines = [f"Usage: {prog} <command>"]
    lines += [f"       {prog} {cmd}" for cmd in COMMANDS]
    lines.append("         Valid parameters:")
    lines += [f"         - {param.name}" for param in RTCParamId]
    print("\n".join(lines), file=sys.stderr)
    sys.exit(errno.EINVAL)


class UsageParser(argparse.ArgumentParser):
    """Any malformed invocation prints the full usage and exits EINVAL."""

    def error(self, message: str) -> NoReturn:
        logger.debug(message)
        usage(self.prog.split()[0])


Handler = Callable[[RTC, argparse.Namespace, RtcConfig], None]


def rd(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    print(f"{config.device}: {format_isodate(rtc.read_time())}")


def set_time(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    rtc.set_time(args.time)


def wkalmrd(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    alarm = rtc.read_wake_alarm()
    print(f"{config.device}: {format_isodate(alarm.time)}")


def wkalmset(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    rtc.set_wake_alarm(True, args.time)


def almread(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    print(f"{config.device}: {format_isodate(rtc.read_alarm())}")


def almset(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    rtc.set_alarm(args.time)


def aieon(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    rtc.aie_on()


def aieoff(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    rtc.aie_off()


def vlrd(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    flags = rtc.read_vl()
    print(f"{config.device}: voltage low flags: {flags:x}")
    for line in describe_vl(flags):
        print(line)


def vlclr(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    rtc.clear_vl()


def paramget(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    param = rtc.param_get(args.param.param, args.param.index)
    for line in format_param(param):
        print(line)


def paramset(rtc: RTC, args: argparse.Namespace, config: RtcConfig) -> None:
    rtc.param_set(args.param)


def make_parser(prog: Optional[str] = None) -> UsageParser:
    parser = UsageParser(prog=prog)
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    def add(name: str, func: Handler, *args: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name)
        for arg in args:
            if arg == "time":
                p.add_argument("time", type=parse_isodate)
            else:
                p.add_argument(arg)
        p.add_argument("device", nargs="?")
        p.set_defaults(func=func)
        return p

    add("rd", rd)
    add("set", set_time, "time")
    add("wkalmrd", wkalmrd)
    add("wkalmset", wkalmset, "time")
    add("almread", almread)
    add("almset", almset, "time")
    add("aieon", aieon)
    add("aieoff", aieoff)
    add("vlrd", vlrd)
    add("vlclr", vlclr)
    add("paramget", paramget, "name", "index")
    add("paramset", paramset, "name", "index", "value")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = make_parser()
    args = parser.parse_args(argv)

    if args.command in ("paramget", "paramset"):
        try:
            args.param = parse_param(args.name, args.index, getattr(args, "value", None))
        except ValueError as e:
            logger.debug(e)
            usage(parser.prog)

    config = RtcConfig.from_namespace(args, ErrorPolicy.FATAL, os.environ)
    setup_logging(config)

    try:
        with RTC(config.device) as rtc:
            args.func(rtc, args, config)
    except RTCError as e:
        handle_error(e, config.policy)
    except OSError as e:
        exit_open_error(config.device, e)


if __name__ == "__main__":
    main()
