# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Parser for the output of OCUnit/XCTest test runs."""

import datetime
import re

from app_build_service import log
from app_build_service.parsers.base import LineParser

SUITE_STARTED_RE = re.compile(r"^Test Suite '(?P<name>.+)' started at\s+(?P<time>.*)$")
SUITE_FINISHED_RE = re.compile(
    r"^Test Suite '(?P<name>.+)' (?:finished|passed|failed) at\s+(?P<time>.*)$")
CASE_STARTED_RE = re.compile(r"^Test Case '-\[(?P<suite>\S+)\s+(?P<name>\S+)\]' started\.")
CASE_FINISHED_RE = re.compile(
    r"^Test Case '-\[(?P<suite>\S+)\s+(?P<name>\S+)\]' (?P<result>passed|failed) "
    r"\((?P<duration>\S+) seconds\)")
CASE_ERROR_RE = re.compile(
    r"^(?P<location>.*): error: -\[(?P<suite>\S+) (?P<name>\S+)\] : (?P<message>.*)$")
BUILD_FAILED_RE = re.compile(r"\*\* BUILD FAILED \*\*")
CRASH_RE = re.compile(r"Segmentation fault")
IGNORED_RES = [
    re.compile(r"^Run test (?:case|suite) "),
    re.compile(r"^\s*Executed \d+ tests?, with \d+ failures?"),
]

TIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S.%f %z",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
)

# Suites wrapping the whole test bundle rather than a test class
BUNDLE_SUITES = ("All tests", "Selected tests")


def parse_time(value):
    """ Parse a suite timestamp, returning None when it isn't recognized. """
    value = value.strip().rstrip(".")
    for fmt in TIME_FORMATS:
        try:
            return datetime.datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def parse_duration(value):
    try:
        return float(value)
    except ValueError:
        return None


def is_bundle_suite(name):
    return "/" in name or name in BUNDLE_SUITES or name.endswith((".octest", ".xctest"))


class OCUnitParser(LineParser):
    """Feeds a Report from the output of an xcodebuild test run

    :param report: the app_build_service.report.Report to fill in
    """

    def __init__(self, report):
        self.report = report

    def feed(self, line):
        line = self._decode(line)
        if self.report.finished:
            # Nothing is reported after the run was cut short
            return

        match = SUITE_STARTED_RE.search(line)
        if match:
            if not is_bundle_suite(match.group("name")):
                self.report.add_suite(match.group("name"), parse_time(match.group("time")))
            return

        match = SUITE_FINISHED_RE.search(line)
        if match:
            suite = self.report.current_suite
            if suite is not None and suite.name == match.group("name"):
                suite.finish(parse_time(match.group("time")))
            return

        match = CASE_STARTED_RE.search(line)
        if match:
            suite = self.report.current_suite
            if suite is None:
                # Some runners skip the suite header for single test runs
                suite = self.report.add_suite(match.group("suite"))
            suite.add_test_case(match.group("name"))
            return

        match = CASE_ERROR_RE.search(line)
        if match:
            test = self._current_test(match.group("name"))
            if test is not None:
                test.add_error(match.group("message"), match.group("location"))
            return

        match = CASE_FINISHED_RE.search(line)
        if match:
            test = self._current_test(match.group("name"))
            if test is None:
                return
            duration = parse_duration(match.group("duration"))
            if match.group("result") == "passed":
                test.passed(duration)
            else:
                test.failed(duration)
            test.suite.finish_test(test)
            return

        if BUILD_FAILED_RE.search(line):
            self.report.finish()
            return

        if CRASH_RE.search(line):
            self.report.abort("Test host crashed: %s" % line.strip())
            return

        for regex in IGNORED_RES:
            if regex.search(line):
                return

        test = self.report.current_test
        if test is not None:
            test.add_output(line)

    def _current_test(self, name):
        test = self.report.current_test
        if test is None or test.name != name:
            log.debug("Ignoring result of %r, it is not the running test" % name)
            return None
        return test

    def flush(self):
        self.report.finish()
