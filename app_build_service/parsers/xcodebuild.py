# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Parser classifying the output of xcodebuild into a build log."""

import os
import re

from app_build_service import log
from app_build_service import terminal
from app_build_service.parsers.base import LineParser

DIAGNOSTIC_RE = re.compile(r"^\s*(?P<location>\S+:\d+:\d+): (?P<kind>error|warning): (?P<message>.*)$")
TOOL_ERROR_RE = re.compile(r"^(?:(?P<tool>[\w.+-]+): )?error: (?P<message>.*)$")
COMMAND_ECHO_RE = re.compile(r"^\s+(?:setenv|cd|/)")
RESULT_RE = re.compile(r"^\*\* (?P<action>BUILD|CLEAN|ARCHIVE|TEST) (?P<result>\w+) \*\*")
STEP_RE = re.compile(r"^(?P<name>[A-Z]\w+) (?P<params>.*)$")


class XcodebuildParser(LineParser):
    """Writes the xcodebuild output to a log file and classifies each line

    After the run, ``status`` holds the last result announced by xcodebuild
    ("succeeded", "failed", or None when no result line was seen),
    ``errors`` and ``warnings`` hold (location, message) tuples and ``steps``
    holds the (name, parameters) of every build step.

    :param str filename: the log file to write, its directory is created
        when missing
    """

    def __init__(self, filename):
        self.filename = filename
        self.suppress_warnings = False
        self.errors = []
        self.warnings = []
        self.steps = []
        self.status = None
        self.action = None

        dirname = os.path.dirname(filename)
        if dirname and not os.path.isdir(dirname):
            os.makedirs(dirname)
        self._file = open(filename, "w", encoding="utf-8", errors="replace")

    @property
    def succeeded(self):
        return self.status == "succeeded" and not self.errors

    def feed(self, line):
        line = self._decode(line)
        if self._file is not None:
            self._file.write(line + "\n")

        match = DIAGNOSTIC_RE.search(line)
        if match:
            if match.group("kind") == "error":
                self.errors.append((match.group("location"), match.group("message")))
                terminal.puts("%s: error: %s" % (match.group("location"), match.group("message")), "red")
            else:
                self.warnings.append((match.group("location"), match.group("message")))
                if not self.suppress_warnings:
                    terminal.puts("%s: warning: %s" % (
                        match.group("location"), match.group("message")), "yellow")
            return

        match = TOOL_ERROR_RE.search(line)
        if match:
            self.errors.append((match.group("tool"), match.group("message")))
            terminal.puts(line, "red")
            return

        if COMMAND_ECHO_RE.search(line):
            return

        match = RESULT_RE.search(line)
        if match:
            self.action = match.group("action").lower()
            self.status = match.group("result").lower()
            colour = "green" if self.status == "succeeded" else "red"
            terminal.puts("%s %s" % (match.group("action"), match.group("result")), colour)
            return

        match = STEP_RE.search(line)
        if match:
            self.steps.append((match.group("name"), match.group("params")))
            log.debug("Build step %s %s" % (match.group("name"), match.group("params")))

    def flush(self):
        if self._file is None:
            return
        self._file.close()
        self._file = None
