# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
from app_build_service.parsers.base import LineParser
from app_build_service.parsers.ocunit import OCUnitParser
from app_build_service.parsers.xcodebuild import XcodebuildParser

__all__ = [
    "LineParser",
    "OCUnitParser",
    "XcodebuildParser",
]
