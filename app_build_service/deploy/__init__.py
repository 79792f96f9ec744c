# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""
Deployment backends.

Backends are registered here when the package is imported, so the set of
supported methods is known up front:

    backend_class = get_backend("web")
    deployer = backend_class(builder, options)
    for progress in deployer.deploy():
        print(progress)
"""

from app_build_service import log
from app_build_service.errors import BackendNotFound
from app_build_service.deploy.base import Deployer
from app_build_service.deploy.web import WebDeployer
from app_build_service.deploy.ssh import SshDeployer

__all__ = [
    "Deployer",
    "get_backend",
    "register_backend",
    "supported_methods",
]

_deploy_backends = {}


def register_backend(backend_class):
    """ Make backend_class available under its ``method`` name. """
    if not backend_class.method:
        raise ValueError("Deployment backend %r has no method name" % backend_class)
    log.debug("Registering deployment backend %r for %r" % (backend_class, backend_class.method))
    _deploy_backends[backend_class.method] = backend_class
    return backend_class


def get_backend(method):
    """
    :param str method: deployment method, e.g. "web"
    :raises BackendNotFound: when no backend is registered for method
    """
    try:
        return _deploy_backends[str(method)]
    except KeyError:
        raise BackendNotFound("No deployment backend found for %r" % method)


def supported_methods():
    return sorted(_deploy_backends)


register_backend(WebDeployer)
register_backend(SshDeployer)
