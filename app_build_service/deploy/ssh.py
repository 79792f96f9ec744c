# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Over-the-air distribution uploaded with scp."""

import os

from app_build_service import conf, log
from app_build_service.deploy.web import WebDeployer
from app_build_service.shell import Command


class SshDeployer(WebDeployer):
    """
    Same files as the web deployment, copied to a host serving base_url.

    Options:
        base_url: URL the files are served from (required)
        host: host to copy the files to (required)
        remote_path: directory on the host (required)
        username: optional remote user
        port: optional ssh port
    """

    method = "ssh"

    @property
    def destination(self):
        host = self.require_option("host")
        if self.options.get("username"):
            host = "%s@%s" % (self.options.username, host)
        return "%s:%s" % (host, self.require_option("remote_path").rstrip("/") + "/")

    def upload(self, path):
        destination = self.destination + os.path.basename(path)
        cmd = Command(conf.scp)
        if self.options.get("port"):
            cmd.append("-P", self.options.port)
        cmd.append(path, destination)

        log.info("Copying %s to %s" % (path, destination))
        cmd.execute()
        return self.url_for(os.path.basename(path))

    def deploy(self):
        self.destination
        return super(SshDeployer, self).deploy()
