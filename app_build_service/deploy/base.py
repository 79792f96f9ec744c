# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import os

import munch

from app_build_service.errors import MissingArtifact


class Deployer(object):
    """
    External Api for deployment backends

    A backend is created with the builder whose artifacts it deploys and an
    options bag. The builder provides these options by default:

        ipa_path, dsym_zip_path, ipa_name, app_path,
        configuration_build_path, product_name, info_plist

    Backend specific options (URLs, hosts, credentials) are merged on top.
    """

    method = None

    def __init__(self, builder, options):
        self.builder = builder
        self.options = munch.Munch(options)

    def require_option(self, name):
        value = self.options.get(name)
        if not value:
            raise ValueError("The %s deployment needs the %r option" % (self.method, name))
        return value

    def require_artifact(self, path):
        if not path or not os.path.exists(path):
            raise MissingArtifact("Can't find %s, do you need to call builder.package?" % path)
        return path

    def deploy(self):
        """
        Perform the deployment, yielding progress values (e.g. the URL of
        every uploaded file) as it goes.
        """
        raise NotImplementedError()
