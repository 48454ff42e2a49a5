# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import contextlib
import fcntl
import inspect
import logging
import struct
import typing
from pathlib import Path
from typing import Any, Final, Union, cast

logger = logging.getLogger(__name__)

RTC_AIE_ON: Final = 0x7001
RTC_AIE_OFF: Final = 0x7002
RTC_UIE_ON: Final = 0x7003
RTC_UIE_OFF: Final = 0x7004
RTC_ALM_SET: Final = 0x40247007
RTC_ALM_READ: Final = 0x80247008
RTC_RD_TIME: Final = 0x80247009
RTC_SET_TIME: Final = 0x4024700A
RTC_WKALM_SET: Final = 0x4028700F
RTC_WKALM_RD: Final = 0x80287010
RTC_VL_READ: Final = 0x80047013
RTC_VL_CLR: Final = 0x7014
RTC_PARAM_GET: Final = 0x40187013
RTC_PARAM_SET: Final = 0x40187014

IOCTL_NAMES: Final = {
    RTC_AIE_ON: "RTC_AIE_ON",
    RTC_AIE_OFF: "RTC_AIE_OFF",
    RTC_UIE_ON: "RTC_UIE_ON",
    RTC_UIE_OFF: "RTC_UIE_OFF",
    RTC_ALM_SET: "RTC_ALM_SET",
    RTC_ALM_READ: "RTC_ALM_READ",
    RTC_RD_TIME: "RTC_RD_TIME",
    RTC_SET_TIME: "RTC_SET_TIME",
    RTC_WKALM_SET: "RTC_WKALM_SET",
    RTC_WKALM_RD: "RTC_WKALM_RD",
    RTC_VL_READ: "RTC_VL_READ",
    RTC_VL_CLR: "RTC_VL_CLR",
    RTC_PARAM_GET: "RTC_PARAM_GET",
    RTC_PARAM_SET: "RTC_PARAM_SET",
}

# Bits in the value returned by read()
RTC_IRQF = 0x80
RTC_PF = 0x40
RTC_AF = 0x20
RTC_UF = 0x10

TIME_STRUCT = struct.Struct("9i")
WKALRM_STRUCT = struct.Struct("2B9i")
PARAM_STRUCT = struct.Struct("QQII")
VL_STRUCT = struct.Struct("I")
READ_STRUCT = struct.Struct("L")

U64_MASK = (1 << 64) - 1


class RTCTime(typing.NamedTuple):
    tm_sec: int
    tm_min: int
    tm_hour: int
    tm_mday: int
    tm_mon: int
    tm_year: int
    tm_wday: int = 0
    tm_yday: int = 0
    tm_isdst: int = 0


class RTCWkAlrm(typing.NamedTuple):
    enabled: bool
    pending: bool
    time: RTCTime


class RTCParam(typing.NamedTuple):
    param: int
    value: int = 0
    index: int = 0

    @property
    def svalue(self) -> int:
        value = self.value & U64_MASK
        return value - (1 << 64) if value & (1 << 63) else value


class RTCError(OSError):
    """An RTC request failed.

    ``request`` is the symbolic name of the ioctl (or ``read`` for the
    blocking event read) and ``lineno`` is the line of the code which
    issued it, so that reports can point at the failing step.
    """

    def __init__(self, request: str, errno: int, strerror: str, lineno: int) -> None:
        super().__init__(errno, strerror)
        self.request = request
        self.lineno = lineno

    def __str__(self) -> str:
        return (
            f"{self.request} returned {self.strerror} ({self.errno}) "
            f"at line {self.lineno}"
        )


def _caller_lineno() -> int:
    # The first frame outside this module is the code that made the request.
    for frame in inspect.stack(context=0)[1:]:
        if frame.filename != __file__:
            return frame.lineno
    return 0


class RTC(contextlib.AbstractContextManager):
    def __init__(self, filename: Union[str, Path]) -> None:
        self.filename = str(filename)

    def __enter__(self) -> "RTC":
        # Unbuffered, since read() must return after a single event.
        self.file = open(self.filename, "rb", buffering=0)
        return self

    def __exit__(self, *_: Any) -> None:
        self.file.close()

    def _ioctl(self, request: int, arg: Union[int, bytearray] = 0) -> int:
        name = IOCTL_NAMES[request]
        logger.debug(f"{self.filename}: {name}")
        try:
            return cast(int, fcntl.ioctl(self.file.fileno(), request, arg))
        except OSError as e:
            raise RTCError(name, e.errno, e.strerror, _caller_lineno()) from e

    def _read_tm(self, request: int) -> RTCTime:
        buf = bytearray(TIME_STRUCT.size)
        self._ioctl(request, buf)
        return RTCTime._make(TIME_STRUCT.unpack(buf))

    def _write_tm(self, request: int, tm: RTCTime) -> int:
        buf = bytearray(TIME_STRUCT.size)
        TIME_STRUCT.pack_into(buf, 0, *tm)
        return self._ioctl(request, buf)

    def read_time(self) -> RTCTime:
        return self._read_tm(RTC_RD_TIME)

    def set_time(self, tm: RTCTime) -> int:
        return self._write_tm(RTC_SET_TIME, tm)

    def read_alarm(self) -> RTCTime:
        return self._read_tm(RTC_ALM_READ)

    def set_alarm(self, tm: RTCTime) -> int:
        return self._write_tm(RTC_ALM_SET, tm)

    def read_wake_alarm(self) -> RTCWkAlrm:
        buf = bytearray(WKALRM_STRUCT.size)
        self._ioctl(RTC_WKALM_RD, buf)
        enabled, pending, *time = WKALRM_STRUCT.unpack(buf)
        return RTCWkAlrm(bool(enabled), bool(pending), RTCTime._make(time))

    def set_wake_alarm(self, enabled: bool, time: RTCTime) -> int:
        buf = bytearray(WKALRM_STRUCT.size)
        WKALRM_STRUCT.pack_into(buf, 0, enabled, False, *time)
        return self._ioctl(RTC_WKALM_SET, buf)

    def aie_on(self) -> int:
        return self._ioctl(RTC_AIE_ON)

    def aie_off(self) -> int:
        return self._ioctl(RTC_AIE_OFF)

    def uie_on(self) -> int:
        return self._ioctl(RTC_UIE_ON)

    def uie_off(self) -> int:
        return self._ioctl(RTC_UIE_OFF)

    def read_vl(self) -> int:
        buf = bytearray(VL_STRUCT.size)
        self._ioctl(RTC_VL_READ, buf)
        return cast(int, VL_STRUCT.unpack(buf)[0])

    def clear_vl(self) -> int:
        return self._ioctl(RTC_VL_CLR)

    def param_get(self, param: int, index: int = 0) -> RTCParam:
        buf = bytearray(PARAM_STRUCT.size)
        PARAM_STRUCT.pack_into(buf, 0, param, 0, index, 0)
        self._ioctl(RTC_PARAM_GET, buf)
        param, value, index, _ = PARAM_STRUCT.unpack(buf)
        return RTCParam(param, value, index)

    def param_set(self, param: RTCParam) -> int:
        buf = bytearray(PARAM_STRUCT.size)
        PARAM_STRUCT.pack_into(
            buf, 0, param.param, param.value & U64_MASK, param.index, 0
        )
        return self._ioctl(RTC_PARAM_SET, buf)

    def read(self) -> int:
        """Block until the next interrupt and return its event word.

        The low byte holds the RTC_*F flags, the rest the number of
        interrupts since the last read.
        """
        try:
            buf = self.file.read(READ_STRUCT.size)
        except OSError as e:
            raise RTCError("read", e.errno, e.strerror, _caller_lineno()) from e

        data = cast(int, READ_STRUCT.unpack(buf)[0])
        logger.debug(f"{self.filename}: read {data=:#x}")
        return data
