# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import enum
from typing import Optional

from rtctest.core.rtc import RTCParam

# Field ranges of struct rtc_param
U32_MAX = (1 << 32) - 1
S64_MIN = -(1 << 63)
S64_MAX = (1 << 63) - 1


class RTCParamId(enum.IntEnum):
    RTC_PARAM_FEATURES = 0
    RTC_PARAM_CORRECTION = 1
    RTC_PARAM_BACKUP_SWITCH_MODE = 2


class RTCFeature(enum.IntEnum):
    RTC_FEATURE_ALARM = 0
    RTC_FEATURE_ALARM_RES_MINUTE = 1
    RTC_FEATURE_NEED_WEEK_DAY = 2
    RTC_FEATURE_ALARM_RES_2S = 3
    RTC_FEATURE_UPDATE_INTERRUPT = 4
    RTC_FEATURE_CORRECTION = 5
    RTC_FEATURE_BACKUP_SWITCH_MODE = 6


class RTCBackupSwitchMode(enum.IntEnum):
    RTC_BSM_DISABLED = 0
    RTC_BSM_DIRECT = 1
    RTC_BSM_LEVEL = 2
    RTC_BSM_STANDBY = 3


class RTCVoltageLow(enum.IntFlag):
    RTC_VL_DATA_INVALID = 1 << 0
    RTC_VL_BACKUP_LOW = 1 << 1
    RTC_VL_BACKUP_EMPTY = 1 << 2
    RTC_VL_ACCURACY_LOW = 1 << 3
    RTC_VL_BACKUP_SWITCH = 1 << 4


VL_DESCRIPTIONS = {
    RTCVoltageLow.RTC_VL_DATA_INVALID: "Voltage too low, RTC data is invalid",
    RTCVoltageLow.RTC_VL_BACKUP_LOW: "Backup voltage is low",
    RTCVoltageLow.RTC_VL_BACKUP_EMPTY: "Backup empty or not present",
    RTCVoltageLow.RTC_VL_ACCURACY_LOW: "Voltage is low, RTC accuracy is reduced",
    RTCVoltageLow.RTC_VL_BACKUP_SWITCH: "Backup switchover happened",
}


def describe_vl(flags: int) -> list[str]:
    return [desc for flag, desc in VL_DESCRIPTIONS.items() if flags & flag]


def parse_param(name: str, index: str, value: Optional[str] = None) -> RTCParam:
    """Build an RTCParam from command line strings.

    Only the correction (signed decimal) and backup switch mode (mode
    name) parameters can be given a value; the feature mask is read-only.
    """
    try:
        param = RTCParamId[name]
    except KeyError:
        raise ValueError(f"Unknown parameter {name!r}") from None

    idx = int(index, 10)
    if not 0 <= idx <= U32_MAX:
        raise ValueError(f"Invalid index {index!r}")

    if value is None:
        return RTCParam(param, 0, idx)

    if param == RTCParamId.RTC_PARAM_BACKUP_SWITCH_MODE:
        try:
            return RTCParam(param, RTCBackupSwitchMode[value], idx)
        except KeyError:
            raise ValueError(f"Unknown backup switch mode {value!r}") from None

    if param == RTCParamId.RTC_PARAM_CORRECTION:
        correction = int(value, 10)
        if not S64_MIN <= correction <= S64_MAX:
            raise ValueError(f"Correction {value!r} out of range")
        return RTCParam(param, correction, idx)

    raise ValueError(f"{name} can't be set")


def _name(param: int) -> str:
    try:
        return RTCParamId(param).name
    except ValueError:
        return f"RTC_PARAM_{param}"


def format_param(param: RTCParam) -> list[str]:
    name = f"{_name(param.param)}[{param.index}]"

    if param.param == RTCParamId.RTC_PARAM_FEATURES:
        return [f"{name}:"] + [
            f"\t{feature.name}" for feature in RTCFeature if param.value & (1 << feature)
        ]

    if param.param == RTCParamId.RTC_PARAM_CORRECTION:
        return [f"{name} = {param.svalue}"]

    if param.param == RTCParamId.RTC_PARAM_BACKUP_SWITCH_MODE:
        try:
            mode = RTCBackupSwitchMode(param.value).name
        except ValueError:
            mode = f"{param.value:x}"
        return [f"{name} = {mode}"]

    return [f"{name} = {param.value:x}"]
