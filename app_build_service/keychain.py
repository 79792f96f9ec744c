# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Signing keychains and the user keychain search list."""

import os

from app_build_service import conf, log
from app_build_service.shell import Command


class Keychain(object):
    def __init__(self, path):
        self.path = os.path.abspath(os.path.expanduser(path))

    @property
    def name(self):
        return os.path.basename(self.path)

    def __eq__(self, other):
        return isinstance(other, Keychain) and other.path == self.path

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(self.path)

    def __repr__(self):
        return "<Keychain %s>" % self.path


def search_path():
    """
    :return: list of keychain paths in the user keychain search list
    """
    lines = []
    cmd = Command(conf.security)
    cmd.append("list-keychains", "-d", "user")
    cmd.execute(callback=lines.append)
    return [line.strip().strip('"') for line in lines if line.strip()]


def set_search_path(paths):
    cmd = Command(conf.security)
    cmd.append("list-keychains", "-d", "user", "-s", *paths)
    cmd.execute()


class KeychainSearchPath(object):
    """
    Puts a keychain at the front of the user keychain search list for the
    duration of a with-block and restores the original list afterwards,
    including when the block raises.

    Example usage:
        with KeychainSearchPath(Keychain("build.keychain")):
            builder.run_xcodebuild(cmd)
    """

    def __init__(self, keychain):
        self.keychain = keychain
        self.original = None

    def __enter__(self):
        self.original = search_path()
        paths = [self.keychain.path]
        paths.extend([p for p in self.original if p != self.keychain.path])
        log.debug("Adding %r to the keychain search list" % self.keychain)
        set_search_path(paths)
        return self.keychain

    def __exit__(self, exc_type, exc_value, traceback):
        log.debug("Restoring the keychain search list %r" % self.original)
        if exc_type is None:
            set_search_path(self.original)
            return False

        # The block's own error is the one the caller gets to see
        try:
            set_search_path(self.original)
        except Exception:
            log.exception("Failed to restore the keychain search list %r" % self.original)
        return False
