# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Over-the-air distribution through a web server."""

import html
import os
import plistlib
import shutil
import tempfile
from urllib.parse import quote, urljoin

import requests

from app_build_service import conf, log
from app_build_service.deploy.base import Deployer

MANIFEST_NAME = "manifest.plist"
INDEX_NAME = "index.html"

INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{title}</title>
  </head>
  <body>
    <h1>{title}</h1>
    <p>Version {version}</p>
    <p><a href="itms-services://?action=download-manifest&amp;url={manifest_url}">Install {title}</a></p>
  </body>
</html>
"""


class WebDeployer(Deployer):
    """
    Publishes the IPA together with an install manifest and an index page.

    Options:
        base_url: URL the files are served from (required)
        upload_url: URL the files are PUT to, defaults to base_url
        username, password: optional HTTP basic auth for uploads
    """

    method = "web"

    @property
    def base_url(self):
        return self.require_option("base_url").rstrip("/") + "/"

    @property
    def upload_url(self):
        return (self.options.get("upload_url") or self.base_url).rstrip("/") + "/"

    def url_for(self, name, base=None):
        return urljoin(base or self.base_url, quote(name))

    @property
    def bundle_version(self):
        info_plist = self.options.get("info_plist")
        version = info_plist.version if info_plist is not None else None
        return version or "SNAPSHOT"

    @property
    def bundle_identifier(self):
        info_plist = self.options.get("info_plist")
        return info_plist.identifier if info_plist is not None else None

    def manifest(self):
        return {
            "items": [{
                "assets": [{
                    "kind": "software-package",
                    "url": self.url_for(self.options.ipa_name),
                }],
                "metadata": {
                    "bundle-identifier": self.bundle_identifier or "",
                    "bundle-version": self.bundle_version,
                    "kind": "software",
                    "title": self.options.product_name,
                },
            }],
        }

    def index_html(self):
        return INDEX_TEMPLATE.format(
            title=html.escape(self.options.product_name or ""),
            version=html.escape(self.bundle_version),
            manifest_url=html.escape(self.url_for(MANIFEST_NAME)),
        )

    def stage(self, dist_path):
        """
        Write everything that gets published into dist_path.

        :return: list of the staged file paths, in upload order
        """
        ipa_path = os.path.join(dist_path, self.options.ipa_name)
        shutil.copyfile(self.options.ipa_path, ipa_path)

        manifest_path = os.path.join(dist_path, MANIFEST_NAME)
        with open(manifest_path, "wb") as f:
            plistlib.dump(self.manifest(), f)

        index_path = os.path.join(dist_path, INDEX_NAME)
        with open(index_path, "w") as f:
            f.write(self.index_html())

        return [ipa_path, manifest_path, index_path]

    def upload(self, path):
        url = self.url_for(os.path.basename(path), self.upload_url)
        auth = None
        if self.options.get("username"):
            auth = (self.options.username, self.options.get("password") or "")

        log.info("Uploading %s to %s" % (path, url))
        with open(path, "rb") as f:
            response = requests.put(url, data=f, auth=auth, timeout=conf.net_timeout)
        response.raise_for_status()
        return self.url_for(os.path.basename(path))

    def deploy(self):
        # Validate before anything is written
        self.base_url
        self.require_artifact(self.options.ipa_path)

        dist_path = tempfile.mkdtemp(prefix="app_build_service-deploy-")
        try:
            for path in self.stage(dist_path):
                yield self.upload(path)
        finally:
            shutil.rmtree(dist_path)
