# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
from os import environ, path

confdir = path.abspath(path.dirname(__file__))


class BaseConfiguration(object):
    LOG_BACKEND = "console"
    LOG_FILE = ""
    LOG_LEVEL = "info"

    # External tools, looked up in $PATH unless absolute
    XCODEBUILD = "xcodebuild"
    XCRUN = "xcrun"
    CODESIGN = "codesign"
    ZIP = "zip"
    SECURITY = "security"
    SCP = "scp"

    PROFILES_DIR = "~/Library/MobileDevice/Provisioning Profiles"
    TEST_REPORT_DIR = "test-reports"
    TEST_SDK = "iphonesimulator"
    COLOR_OUTPUT = True

    # Global network-related values, in seconds
    NET_TIMEOUT = 120


class DevConfiguration(BaseConfiguration):
    LOG_LEVEL = "debug"


class TestConfiguration(BaseConfiguration):
    LOG_LEVEL = "debug"
    COLOR_OUTPUT = False
    NET_TIMEOUT = 3
    PROFILES_DIR = environ.get(
        "ABS_TEST_PROFILES_DIR", path.join(confdir, "..", "tests", "profiles-not-used"))
    TEST_REPORT_DIR = path.join(confdir, "..", "test-reports")


class ProdConfiguration(BaseConfiguration):
    LOG_BACKEND = "file"
    LOG_FILE = "/var/log/app-build-service/app-build-service.log"
