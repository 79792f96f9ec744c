# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Execution of external programs."""

import collections
import shlex

import sh

from app_build_service import log
from app_build_service.errors import ExecutionError

# Number of trailing output lines kept for error reports
OUTPUT_TAIL = 20


class Command(object):
    """
    An invocation of an external program.

    Build settings in ``env`` are passed on the command line as
    ``KEY=VALUE`` arguments after the regular arguments, which is how
    xcodebuild expects them.

    Example usage:
        cmd = Command("xcodebuild", {"OBJROOT": "/tmp/build"})
        cmd << "-sdk" << "iphoneos"
        cmd.execute(callback=lambda line: print(line))
    """

    def __init__(self, program, env=None):
        self.program = program
        self.args = []
        self.env = dict(env or {})

    def __lshift__(self, arg):
        self.args.append(str(arg))
        return self

    def append(self, *args):
        self.args.extend([str(arg) for arg in args])
        return self

    def to_list(self):
        settings = ["%s=%s" % (key, value) for key, value in sorted(self.env.items())]
        return [self.program] + self.args + settings

    def __str__(self):
        return " ".join([shlex.quote(arg) for arg in self.to_list()])

    def __repr__(self):
        return "<Command %s>" % self

    def execute(self, show_output=False, callback=None):
        """
        Run the program to completion, streaming its output line by line.

        :param bool show_output: echo every line to stdout
        :param callable callback: called with every output line (stdout and
            stderr merged, trailing newline stripped)
        :raises ExecutionError: when the program can't be found or exits
            with a non-zero status
        :raises: the first exception raised by callback, once the program
            has finished
        """
        cmd = self.to_list()
        tail = collections.deque(maxlen=OUTPUT_TAIL)
        # Errors raised in the sh output thread, re-raised in this one
        callback_errors = []

        def process_line(line):
            try:
                line = line.rstrip("\r\n")
                tail.append(line)
                if show_output:
                    print(line)
                if callback is not None:
                    callback(line)
            except Exception as e:
                callback_errors.append(e)
                # sh stops calling us once we return True
                return True

        log.debug("Executing %s" % self)
        try:
            program = sh.Command(self.program)
        except sh.CommandNotFound:
            raise ExecutionError(cmd, 127, ["%s: command not found" % self.program])

        try:
            program(*cmd[1:], _out=process_line, _err_to_out=True, _decode_errors="replace")
        except sh.ErrorReturnCode as e:
            log.debug("%s exited with %r" % (self.program, e.exit_code))
            if callback_errors:
                raise callback_errors[0]
            raise ExecutionError(cmd, e.exit_code, list(tail))

        if callback_errors:
            log.debug("Output callback of %s failed: %r" % (self.program, callback_errors[0]))
            raise callback_errors[0]
