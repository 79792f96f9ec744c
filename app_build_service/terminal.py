# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Coloured console output for progress messages."""

import sys

from app_build_service import conf

COLOURS = {
    "red": "\033[0;31m",
    "green": "\033[0;32m",
    "yellow": "\033[1;33m",
    "blue": "\033[0;34m",
}
RESET = "\033[0m"


def colourize(text, colour=None, enabled=None):
    if enabled is None:
        enabled = conf.color_output
    if not enabled or colour not in COLOURS:
        return text
    return "%s%s%s" % (COLOURS[colour], text, RESET)


def puts(text, colour=None, newline=True, stream=None, enabled=None):
    """Write text to the console (stdout unless stream is given)."""
    stream = stream or sys.stdout
    stream.write(colourize(text, colour, enabled))
    if newline:
        stream.write("\n")
    stream.flush()
