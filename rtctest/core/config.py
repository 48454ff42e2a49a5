# SPDX-License-Identifier: GPL-2.0-only
# Copyright Axis Communications AB

import argparse
import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, TypeVar

from rtctest import DEFAULT_RTC, ENV_RTC_DEVICE
from rtctest.core.errors import ErrorPolicy
from rtctest.core.offset import DEFAULT_STRATEGY

T = TypeVar("T", bound="RtcConfig")

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"


def default_device(environ: Optional[Mapping[str, str]] = None) -> Path:
    if environ is None:
        environ = os.environ
    return Path(environ.get(ENV_RTC_DEVICE) or DEFAULT_RTC)


@dataclass
class RtcConfig:
    device: Path
    policy: ErrorPolicy
    verbose: bool = False

    @classmethod
    def from_namespace(
        cls: type[T],
        ns: argparse.Namespace,
        policy: ErrorPolicy,
        environ: Optional[Mapping[str, str]] = None,
    ) -> T:
        opts = vars(ns)
        fields = {
            f.name: opts[f.name]
            for f in dataclasses.fields(cls)
            if opts.get(f.name) is not None
        }
        fields["policy"] = policy
        if "device" not in fields:
            fields["device"] = default_device(environ)
        return cls(**fields)

    def __post_init__(self) -> None:
        self.device = Path(self.device)


@dataclass
class SyncConfig(RtcConfig):
    strategy: str = DEFAULT_STRATEGY
    realtime: bool = False


def setup_logging(config: RtcConfig) -> None:
    logging.basicConfig(
        format=LOG_FORMAT,
        level=logging.DEBUG if config.verbose else logging.WARNING,
    )
