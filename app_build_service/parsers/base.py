# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT


class LineParser(object):
    """Base class for parsers consuming the output of a running program

    Lines are fed one at a time while the program runs, so the result is
    usable before the program finishes. feed() must never raise: lines that
    are not understood are ignored. flush() is called once the output is
    exhausted, whether or not the program succeeded, and must be safe to
    call on a parser that saw no lines or was already flushed.
    """

    def feed(self, line):
        raise NotImplementedError()

    def __lshift__(self, line):
        self.feed(line)
        return self

    def flush(self):
        raise NotImplementedError()

    @staticmethod
    def _decode(line):
        if isinstance(line, bytes):
            line = line.decode("utf-8", "replace")
        return line.rstrip("\r\n")
