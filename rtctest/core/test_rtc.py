# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import errno
import inspect
from pathlib import Path
from unittest.mock import ANY, MagicMock, call

import pytest

from rtctest.core import rtc


@pytest.fixture
def dev(tmp_path: Path) -> Path:
    path = tmp_path / "rtc0"
    path.write_bytes(b"")
    return path


def test_read_time(dev: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def ioctl(fd: int, request: int, buf: bytearray) -> int:
        assert request == rtc.RTC_RD_TIME
        rtc.TIME_STRUCT.pack_into(buf, 0, 37, 10, 11, 25, 11, 121, 6, 358, 0)
        return 0

    monkeypatch.setattr(rtc.fcntl, "ioctl", ioctl)

    with rtc.RTC(dev) as rtcdev:
        assert rtcdev.read_time() == rtc.RTCTime(
            tm_sec=37,
            tm_min=10,
            tm_hour=11,
            tm_mday=25,
            tm_mon=11,
            tm_year=121,
            tm_wday=6,
            tm_yday=358,
            tm_isdst=0,
        )


def test_set_time(dev: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    written = []

    def ioctl(fd: int, request: int, buf: bytearray) -> int:
        written.append((request, rtc.TIME_STRUCT.unpack(buf)))
        return 0

    monkeypatch.setattr(rtc.fcntl, "ioctl", ioctl)

    tm = rtc.RTCTime(
        tm_sec=59, tm_min=59, tm_hour=23, tm_mday=28, tm_mon=1, tm_year=200
    )
    with rtc.RTC(dev) as rtcdev:
        rtcdev.set_time(tm)
        rtcdev.set_alarm(tm)

    assert written == [
        (rtc.RTC_SET_TIME, (59, 59, 23, 28, 1, 200, 0, 0, 0)),
        (rtc.RTC_ALM_SET, (59, 59, 23, 28, 1, 200, 0, 0, 0)),
    ]


def test_wake_alarm(dev: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    stored = bytearray(rtc.WKALRM_STRUCT.size)

    def ioctl(fd: int, request: int, buf: bytearray) -> int:
        if request == rtc.RTC_WKALM_SET:
            stored[:] = buf
        else:
            assert request == rtc.RTC_WKALM_RD
            buf[:] = stored
            # pending
            buf[1] = 1
        return 0

    monkeypatch.setattr(rtc.fcntl, "ioctl", ioctl)

    tm = rtc.RTCTime(0, 2, 1, 1, 0, 121, -1, -1, -1)
    with rtc.RTC(dev) as rtcdev:
        rtcdev.set_wake_alarm(True, tm)
        assert rtc.WKALRM_STRUCT.unpack(stored) == (1, 0, 0, 2, 1, 1, 0, 121, -1, -1, -1)

        alarm = rtcdev.read_wake_alarm()

    assert alarm.enabled
    assert alarm.pending
    assert alarm.time == tm


def test_no_arg_requests(dev: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ioctl = MagicMock(return_value=0)
    monkeypatch.setattr(rtc.fcntl, "ioctl", ioctl)

    with rtc.RTC(dev) as rtcdev:
        rtcdev.aie_on()
        rtcdev.aie_off()
        rtcdev.uie_on()
        rtcdev.uie_off()
        rtcdev.clear_vl()

    assert ioctl.call_args_list == [
        call(ANY, rtc.RTC_AIE_ON, 0),
        call(ANY, rtc.RTC_AIE_OFF, 0),
        call(ANY, rtc.RTC_UIE_ON, 0),
        call(ANY, rtc.RTC_UIE_OFF, 0),
        call(ANY, rtc.RTC_VL_CLR, 0),
    ]


def test_read_vl(dev: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def ioctl(fd: int, request: int, buf: bytearray) -> int:
        assert request == rtc.RTC_VL_READ
        rtc.VL_STRUCT.pack_into(buf, 0, 0b10001)
        return 0

    monkeypatch.setattr(rtc.fcntl, "ioctl", ioctl)

    with rtc.RTC(dev) as rtcdev:
        assert rtcdev.read_vl() == 0b10001


def test_params(dev: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    values: dict[tuple[int, int], int] = {(1, 0): (-42) & rtc.U64_MASK}

    def ioctl(fd: int, request: int, buf: bytearray) -> int:
        param, value, index, pad = rtc.PARAM_STRUCT.unpack(buf)
        assert pad == 0
        if request == rtc.RTC_PARAM_SET:
            values[(param, index)] = value
        else:
            assert request == rtc.RTC_PARAM_GET
            rtc.PARAM_STRUCT.pack_into(buf, 0, param, values[(param, index)], index, 0)
        return 0

    monkeypatch.setattr(rtc.fcntl, "ioctl", ioctl)

    with rtc.RTC(dev) as rtcdev:
        param = rtcdev.param_get(1, 0)
        assert param == rtc.RTCParam(1, 2**64 - 42, 0)
        assert param.svalue == -42

        rtcdev.param_set(rtc.RTCParam(1, -7, 3))
        assert values[(1, 3)] == 2**64 - 7
        assert rtcdev.param_get(1, 3).svalue == -7


def test_ioctl_error(dev: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def ioctl(fd: int, request: int, buf: bytearray) -> int:
        raise OSError(errno.EINVAL, "Invalid argument")

    monkeypatch.setattr(rtc.fcntl, "ioctl", ioctl)

    with rtc.RTC(dev) as rtcdev:
        with pytest.raises(rtc.RTCError) as cm:
            line = inspect.currentframe().f_lineno + 1  # type: ignore[union-attr]
            rtcdev.read_time()

    e = cm.value
    assert isinstance(e, OSError)
    assert e.request == "RTC_RD_TIME"
    assert e.errno == errno.EINVAL
    assert e.lineno == line
    assert str(e) == f"RTC_RD_TIME returned Invalid argument (22) at line {line}"


def test_read(dev: Path) -> None:
    dev.write_bytes(rtc.READ_STRUCT.pack(1 << 8 | rtc.RTC_IRQF | rtc.RTC_UF))

    with rtc.RTC(dev) as rtcdev:
        data = rtcdev.read()

    assert data & 0xFF == rtc.RTC_IRQF | rtc.RTC_UF
    assert data >> 8 == 1


def test_open_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        with rtc.RTC(tmp_path / "rtc9"):
            pass
