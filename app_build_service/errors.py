# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Defines custom exceptions """


class ExecutionError(RuntimeError):
    """An external program exited with a non-zero status.

    :param list cmd: the full command line that was executed
    :param int returncode: the exit status of the program
    :param list output: the last lines the program printed
    """

    def __init__(self, cmd, returncode, output=None):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = list(output or [])
        message = "Command %r failed with exit code %r" % (" ".join(self.cmd), returncode)
        if self.output:
            message += ": %s" % self.output[-1]
        super(ExecutionError, self).__init__(message)


class MissingArtifact(ValueError):
    pass


class BackendNotFound(ValueError):
    pass


class ConfigurationError(ValueError):
    pass


class ProfileError(ValueError):
    pass
