# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""
Logging functions.

At the beginning of the build orchestrator, init_logging(conf) should be
called. After that, logging functions can be used through the standard
logging module or the ``log`` object of the package:

    from app_build_service import log

    log.debug("Running %s", cmd)
"""

import logging

levels = {}
levels["debug"] = logging.DEBUG
levels["error"] = logging.ERROR
levels["warning"] = logging.WARNING
levels["info"] = logging.INFO

level_flags = {}
level_flags["debug"] = levels["debug"]
level_flags["verbose"] = levels["info"]
level_flags["quiet"] = levels["error"]

log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def str_to_log_level(level):
    """
    Returns internal representation of logging level defined
    by the string `level`.

    Available levels are: debug, info, warning, error
    """
    if level not in levels:
        return logging.NOTSET

    return levels[level]


def supported_log_backends():
    return ("console", "file")


def init_logging(conf):
    """
    Initializes logging according to configuration file.
    """
    log_backend = conf.log_backend

    if not log_backend or log_backend == "console":
        logging.basicConfig(level=conf.log_level, format=log_format)
    else:
        logging.basicConfig(filename=conf.log_file, level=conf.log_level, format=log_format)
    log = logging.getLogger()
    log.setLevel(conf.log_level)
