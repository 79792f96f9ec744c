# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""
Test report built incrementally from the output of a test run.

A Report holds the suites in the order they were first seen in the output;
every Suite holds its test cases in order. Formatters registered with
add_formatter() are notified while the report is being built:

    start(report)
    suite_started(suite)
    test_started(test)
    test_finished(test)
    suite_finished(suite)
    finish(report)

A formatter only needs to implement the events it cares about.
"""

import datetime

from app_build_service import log
from app_build_service import formatters as formatters_mod


class TestCase(object):
    """ A single test case and its result """

    __test__ = False

    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"

    def __init__(self, name, suite):
        self.name = name
        self.suite = suite
        self.status = TestCase.RUNNING
        self.duration = None
        # list of (message, location) tuples
        self.errors = []
        self.output = []

    @property
    def running(self):
        return self.status == TestCase.RUNNING

    @property
    def message(self):
        """The first failure message, or None."""
        if not self.errors:
            return None
        return self.errors[0][0]

    def add_error(self, message, location=None):
        self.errors.append((message, location))

    def add_output(self, line):
        self.output.append(line)

    def passed(self, duration=None):
        self.duration = duration
        self.status = TestCase.PASSED

    def failed(self, duration=None):
        self.duration = duration
        self.status = TestCase.FAILED

    def errored(self, reason):
        self.add_error(reason)
        self.status = TestCase.ERRORED

    def __repr__(self):
        return "<TestCase %s.%s %s>" % (self.suite.name, self.name, self.status)


class Suite(object):
    def __init__(self, report, name, start_time=None):
        self.report = report
        self.name = name
        self.start_time = start_time
        self.end_time = None
        self.tests = []
        self.finished = False

    @property
    def current_test(self):
        if self.tests and self.tests[-1].running:
            return self.tests[-1]
        return None

    def add_test_case(self, name):
        test = TestCase(name, self)
        self.tests.append(test)
        self.report.notify("test_started", test)
        return test

    def finish_test(self, test):
        self.report.notify("test_finished", test)

    def finish(self, end_time=None):
        """ Close the suite, erroring any test case that is still running. """
        if self.finished:
            return
        test = self.current_test
        if test is not None:
            test.errored("Test did not finish")
            self.finish_test(test)
        self.end_time = end_time
        self.finished = True
        self.report.notify("suite_finished", self)

    def _count(self, status):
        return len([t for t in self.tests if t.status == status])

    @property
    def total_passed_tests(self):
        return self._count(TestCase.PASSED)

    @property
    def total_failed_tests(self):
        return self._count(TestCase.FAILED)

    @property
    def total_errored_tests(self):
        return self._count(TestCase.ERRORED)

    @property
    def duration(self):
        known = [t.duration for t in self.tests if t.duration is not None]
        return sum(known)

    def __repr__(self):
        return "<Suite %s: %d tests>" % (self.name, len(self.tests))


class Report(object):
    def __init__(self):
        self.suites = []
        self.formatters = []
        self.started = False
        self.finished = False
        self.start_time = None
        self.end_time = None

    def add_formatter(self, formatter, *args, **kwargs):
        """
        Register a formatter.

        :param formatter: a formatter instance, or the name of a known
            formatter ("stdout", "junit") which is then created with the
            remaining arguments
        """
        if isinstance(formatter, str):
            formatter = formatters_mod.create_formatter(formatter, *args, **kwargs)
        self.formatters.append(formatter)
        return formatter

    def notify(self, event, obj):
        for formatter in self.formatters:
            handler = getattr(formatter, event, None)
            if handler is None:
                continue
            try:
                handler(obj)
            except Exception:
                # One broken formatter must not starve the others
                log.exception("Formatter %r failed while handling %s" % (formatter, event))

    def start(self):
        if self.started:
            return
        self.started = True
        self.start_time = datetime.datetime.now()
        self.notify("start", self)

    @property
    def current_suite(self):
        if self.suites and not self.suites[-1].finished:
            return self.suites[-1]
        return None

    @property
    def current_test(self):
        suite = self.current_suite
        if suite is None:
            return None
        return suite.current_test

    def add_suite(self, name, start_time=None):
        self.start()
        # Only one suite is open at a time
        if self.current_suite is not None:
            self.current_suite.finish()
        suite = Suite(self, name, start_time)
        self.suites.append(suite)
        self.notify("suite_started", suite)
        return suite

    def abort(self, reason="Test was aborted"):
        """ Error out the running test case, e.g. after the test host crashed """
        test = self.current_test
        if test is None:
            return
        test.errored(reason)
        test.suite.finish_test(test)

    def finish(self):
        """ Close everything still open. Safe to call more than once. """
        if self.finished:
            return
        self.finished = True
        if not self.started:
            return
        for suite in self.suites:
            suite.finish()
        self.end_time = datetime.datetime.now()
        self.notify("finish", self)

    @property
    def tests(self):
        return [test for suite in self.suites for test in suite.tests]

    @property
    def total_tests(self):
        return len(self.tests)

    @property
    def total_passed_tests(self):
        return sum([s.total_passed_tests for s in self.suites])

    @property
    def total_failed_tests(self):
        return sum([s.total_failed_tests for s in self.suites])

    @property
    def total_errored_tests(self):
        return sum([s.total_errored_tests for s in self.suites])

    @property
    def succeeded(self):
        return self.total_failed_tests == 0 and self.total_errored_tests == 0

    @property
    def failed(self):
        return not self.succeeded

    def __repr__(self):
        return "<Report %d suites, %d tests>" % (len(self.suites), self.total_tests)
