# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

# Software models of an RTC and of the system clocks, with the same
# interfaces as RTC and SystemClock, so that the range sweep and the
# offset/sync procedures can be run without hardware and without waiting
# for real time to pass.

import errno
import logging
import os
from typing import Any, Optional

from rtctest.core.clock import NSEC_PER_SEC
from rtctest.core.rtc import (
    IOCTL_NAMES,
    RTC_AF,
    RTC_AIE_OFF,
    RTC_AIE_ON,
    RTC_ALM_READ,
    RTC_ALM_SET,
    RTC_IRQF,
    RTC_PARAM_GET,
    RTC_PARAM_SET,
    RTC_RD_TIME,
    RTC_SET_TIME,
    RTC_UF,
    RTC_UIE_OFF,
    RTC_UIE_ON,
    RTC_VL_CLR,
    RTC_VL_READ,
    RTC_WKALM_RD,
    RTC_WKALM_SET,
    RTCError,
    RTCParam,
    RTCTime,
    RTCWkAlrm,
)
from rtctest.core.timefmt import epoch_to_rtc_time, rtc_time_to_epoch

logger = logging.getLogger(__name__)


class ModelClock:
    """A clock which only moves when told to.

    Every monotonic_ns() call advances time by ``step_ns`` so that busy
    loops make progress.
    """

    def __init__(self, realtime_ns: int, step_ns: int = 1_000_000) -> None:
        self.now = realtime_ns
        self.mono = 0
        self.step_ns = step_ns

    def advance(self, ns: int) -> None:
        self.now += ns
        self.mono += ns

    def realtime_ns(self) -> int:
        return self.now

    def monotonic_ns(self) -> int:
        self.advance(self.step_ns)
        return self.mono

    def realtime_res_ns(self) -> int:
        return 1

    def monotonic_res_ns(self) -> int:
        return 1

    def sleep_until(self, deadline_ns: int) -> None:
        if deadline_ns > self.now:
            self.advance(deadline_ns - self.now)

    def sleep(self, secs: float) -> None:
        self.advance(int(secs * NSEC_PER_SEC))


class RTCModel:
    """An RTC counting whole seconds from the instant it was last set.

    Setting the time restarts the one second divider, ``latency_ns`` after
    the request.  ``wrap`` limits the counter width, to model hardware which
    can't hold dates past some point.  Requests named in ``fail`` raise
    RTCError with the given errno.
    """

    def __init__(
        self,
        clock: ModelClock,
        secs: int = 0,
        phase_ns: int = 0,
        latency_ns: int = 0,
        wrap: Optional[int] = None,
    ) -> None:
        self.clock = clock
        self.latency_ns = latency_ns
        self.wrap = wrap
        self.fail: dict[int, int] = {}
        self.requests: list[str] = []

        now_sec = clock.now // NSEC_PER_SEC
        self.set_at = now_sec * NSEC_PER_SEC + phase_ns
        if self.set_at > clock.now:
            self.set_at -= NSEC_PER_SEC
        self.value = secs

        self.alarm = RTCWkAlrm(False, False, RTCTime(0, 0, 0, 0, 0, 0))
        self.uie = False
        self.vl = 0
        self.params: dict[tuple[int, int], int] = {}

    def __enter__(self) -> "RTCModel":
        return self

    def __exit__(self, *_: Any) -> None:
        pass

    def _request(self, request: int) -> None:
        name = IOCTL_NAMES[request]
        self.requests.append(name)
        if request in self.fail:
            err = self.fail[request]
            raise RTCError(name, err, os.strerror(err), 0)

    def secs(self, at: Optional[int] = None) -> int:
        at = self.clock.now if at is None else at
        # The counter holds the written value until the divider restarts.
        secs = self.value + max(at - self.set_at, 0) // NSEC_PER_SEC
        if self.wrap is not None:
            secs %= self.wrap
        return secs

    def next_tick(self) -> int:
        ticks = max(self.clock.now - self.set_at, 0) // NSEC_PER_SEC + 1
        return self.set_at + ticks * NSEC_PER_SEC

    def read_time(self) -> RTCTime:
        self._request(RTC_RD_TIME)
        return epoch_to_rtc_time(self.secs())

    def set_time(self, tm: RTCTime) -> int:
        self._request(RTC_SET_TIME)
        self.value = rtc_time_to_epoch(tm)
        self.set_at = self.clock.now + self.latency_ns
        logger.debug(f"set {self.value} at {self.set_at}")
        return 0

    def read_alarm(self) -> RTCTime:
        self._request(RTC_ALM_READ)
        return self.alarm.time

    def set_alarm(self, tm: RTCTime) -> int:
        self._request(RTC_ALM_SET)
        self.alarm = self.alarm._replace(time=tm)
        return 0

    def read_wake_alarm(self) -> RTCWkAlrm:
        self._request(RTC_WKALM_RD)
        return self.alarm

    def set_wake_alarm(self, enabled: bool, time: RTCTime) -> int:
        self._request(RTC_WKALM_SET)
        self.alarm = RTCWkAlrm(enabled, False, time)
        return 0

    def aie_on(self) -> int:
        self._request(RTC_AIE_ON)
        self.alarm = self.alarm._replace(enabled=True)
        return 0

    def aie_off(self) -> int:
        self._request(RTC_AIE_OFF)
        self.alarm = self.alarm._replace(enabled=False)
        return 0

    def uie_on(self) -> int:
        self._request(RTC_UIE_ON)
        self.uie = True
        return 0

    def uie_off(self) -> int:
        self._request(RTC_UIE_OFF)
        self.uie = False
        return 0

    def read_vl(self) -> int:
        self._request(RTC_VL_READ)
        return self.vl

    def clear_vl(self) -> int:
        self._request(RTC_VL_CLR)
        self.vl = 0
        return 0

    def param_get(self, param: int, index: int = 0) -> RTCParam:
        self._request(RTC_PARAM_GET)
        try:
            return RTCParam(param, self.params[(param, index)], index)
        except KeyError:
            raise RTCError(
                "RTC_PARAM_GET", errno.EINVAL, os.strerror(errno.EINVAL), 0
            ) from None

    def param_set(self, param: RTCParam) -> int:
        self._request(RTC_PARAM_SET)
        self.params[(param.param, param.index)] = param.value
        return 0

    def read(self) -> int:
        """Let time pass until the next update or alarm interrupt."""
        if self.uie:
            self.clock.sleep_until(self.next_tick())
            return 1 << 8 | RTC_IRQF | RTC_UF

        if self.alarm.enabled:
            ticks = rtc_time_to_epoch(self.alarm.time) - self.value
            self.clock.sleep_until(self.set_at + ticks * NSEC_PER_SEC)
            self.alarm = self.alarm._replace(enabled=False)
            return 1 << 8 | RTC_IRQF | RTC_AF

        raise RTCError("read", errno.EWOULDBLOCK, "No interrupt enabled", 0)
