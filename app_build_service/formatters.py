# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Observers turning a test report into console output and JUnit XML."""

import os
import socket
import sys
import xml.etree.ElementTree as ET

from app_build_service import log
from app_build_service import terminal


class StdoutFormatter(object):
    """Progress dots while the tests run and a summary at the end."""

    def __init__(self, color_output=True, stream=None):
        self.color_output = color_output
        self.stream = stream

    def _puts(self, text, colour=None, newline=True):
        terminal.puts(text, colour, newline=newline, stream=self.stream or sys.stdout,
                      enabled=self.color_output)

    def start(self, report):
        self._puts("Begin tests")

    def test_finished(self, test):
        if test.status == test.PASSED:
            self._puts(".", "green", newline=False)
        elif test.status == test.FAILED:
            self._puts("F", "red", newline=False)
        else:
            self._puts("E", "red", newline=False)

    def finish(self, report):
        self._puts("")
        failures = [t for t in report.tests if t.status != t.PASSED]
        if failures:
            self._puts("")
            self._puts("Failures:", "red")
            for test in failures:
                self._puts("  %s.%s (%s)" % (test.suite.name, test.name, test.status), "red")
                for message, location in test.errors:
                    if location:
                        self._puts("    %s: %s" % (location, message))
                    else:
                        self._puts("    %s" % message)

        duration = 0.0
        if report.start_time and report.end_time:
            duration = (report.end_time - report.start_time).total_seconds()
        summary = "Finished in %.3f seconds. %d tests, %d failures, %d errors" % (
            duration, report.total_tests, report.total_failed_tests,
            report.total_errored_tests)
        self._puts(summary, "green" if report.succeeded else "red")


class JunitFormatter(object):
    """Writes one TEST-<suite>.xml file per finished suite."""

    def __init__(self, report_dir="test-reports"):
        self.report_dir = report_dir

    def start(self, report):
        if not os.path.isdir(self.report_dir):
            os.makedirs(self.report_dir)

    def suite_finished(self, suite):
        element = ET.Element("testsuite", {
            "name": suite.name,
            "tests": str(len(suite.tests)),
            "failures": str(suite.total_failed_tests),
            "errors": str(suite.total_errored_tests),
            "time": "%.3f" % suite.duration,
            "hostname": socket.gethostname(),
        })
        if suite.start_time is not None:
            element.set("timestamp", suite.start_time.strftime("%Y-%m-%dT%H:%M:%S"))

        output = []
        for test in suite.tests:
            case = ET.SubElement(element, "testcase", {
                "classname": suite.name,
                "name": test.name,
                "time": "%.3f" % (test.duration or 0.0),
            })
            if test.status == test.FAILED:
                tag = "failure"
            elif test.status == test.ERRORED:
                tag = "error"
            else:
                tag = None
            if tag is not None:
                failure = ET.SubElement(case, tag, {
                    "message": test.message or "",
                    "type": tag.capitalize(),
                })
                failure.text = "\n".join(
                    [location for _, location in test.errors if location])
            output.extend(test.output)

        system_out = ET.SubElement(element, "system-out")
        system_out.text = "\n".join(output)

        path = os.path.join(self.report_dir, "TEST-%s.xml" % suite.name)
        ET.ElementTree(element).write(path, encoding="utf-8", xml_declaration=True)
        log.debug("Wrote JUnit report %s" % path)


_formatters = {
    "stdout": StdoutFormatter,
    "junit": JunitFormatter,
}


def create_formatter(name, *args, **kwargs):
    try:
        formatter_class = _formatters[name]
    except KeyError:
        raise ValueError("No report formatter found for %r" % name)
    return formatter_class(*args, **kwargs)
