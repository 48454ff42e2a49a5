# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

ENV_RTC_DEVICE = "RTCTEST_DEVICE"

DEFAULT_RTC = "/dev/rtc0"
