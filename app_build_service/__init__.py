# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""The application build orchestrator.

The orchestrator drives the external toolchain of native application
projects and is responsible for a number of tasks:

- Building, cleaning and testing a project target through the build tool
  and turning its streamed output into build logs and test reports.
- Packaging the built application bundle into an installable archive and
  compressing the companion debug symbols.
- Code signing, with the signing keychain and the provisioning profile
  made available only for the duration of the stage that needs them.
- Deploying the packaged artifacts through one of the registered
  deployment backends.
"""

from importlib.metadata import version as _distribution_version, PackageNotFoundError
from logging import getLogger

from app_build_service.config import init_config
from app_build_service.logger import init_logging, level_flags

try:
    version = _distribution_version("app-build-service")
except PackageNotFoundError:
    version = "unknown"

conf = init_config()
init_logging(conf)
log = getLogger(__name__)


def set_verbosity(debug=False, verbose=False, quiet=False):
    """Adjust the package log level (intended for the command line)."""
    if debug:
        log.setLevel(level_flags["debug"])
    elif verbose:
        log.setLevel(level_flags["verbose"])
    elif quiet:
        log.setLevel(level_flags["quiet"])
