# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""
Minimal description of the project being built.

The orchestrator does not parse project files. It only needs to know where
the project lives, which target and configuration to build and where the
Info.plist of the product is, which is what these classes hold.
"""

import os
import plistlib

import yaml

from app_build_service import log
from app_build_service.errors import ConfigurationError


class InfoPlist(object):
    """The Info.plist of a product, read lazily."""

    def __init__(self, path):
        self.path = path
        self._plist = None

    def _load(self):
        if self._plist is not None:
            return self._plist

        if not self.path or not os.path.exists(self.path):
            log.warning("Info.plist %r not found, treating it as empty" % self.path)
            self._plist = {}
            return self._plist

        try:
            with open(self.path, "rb") as f:
                self._plist = plistlib.load(f)
        except (plistlib.InvalidFileException, ValueError) as e:
            raise ConfigurationError("Invalid Info.plist %s: %s" % (self.path, e))
        return self._plist

    @property
    def version(self):
        return self._load().get("CFBundleShortVersionString")

    @property
    def identifier(self):
        return self._load().get("CFBundleIdentifier")

    def __repr__(self):
        return "<InfoPlist %s>" % self.path


class Project(object):
    def __init__(self, path, sdk=None):
        self.path = path
        self.sdk = sdk

    @property
    def name(self):
        return os.path.splitext(os.path.basename(self.path.rstrip("/")))[0]

    def __repr__(self):
        return "<Project %s>" % self.path


class Target(object):
    def __init__(self, project, name):
        self.project = project
        self.name = name

    def __repr__(self):
        return "<Target %s in %r>" % (self.name, self.project)


class Configuration(object):
    """
    :param target: the Target this configuration belongs to
    :param str name: configuration name, e.g. Release
    :param str product_name: name of the built product, e.g. Demo for Demo.app
    :param info_plist: InfoPlist instance or path to the Info.plist
    """

    def __init__(self, target, name, product_name, info_plist=None):
        self.target = target
        self.name = name
        self.product_name = product_name
        if not isinstance(info_plist, InfoPlist):
            info_plist = InfoPlist(info_plist)
        self.info_plist = info_plist

    def __repr__(self):
        return "<Configuration %s of %r>" % (self.name, self.target)


def load_project_file(path):
    """
    Read a YAML project description.

    Relative paths in the description are resolved against the directory
    holding the description itself.

    Example:
        project: Demo.xcodeproj
        target: Demo
        configuration: Release
        product_name: Demo
        info_plist: Demo/Demo-Info.plist
        sdk: iphoneos
        identity: "iPhone Distribution: Example Inc."
        keychain: build.keychain
        profile: Demo_Distribution.mobileprovision
        deploy:
          web:
            base_url: https://builds.example.com/demo

    :param str path: path to the YAML file
    :return: dict with the Configuration under "configuration" and the
        remaining builder settings
    :raises ConfigurationError: when the file is missing or incomplete
    """
    if not os.path.exists(path):
        raise ConfigurationError("Project description %s not found" % path)

    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError("Invalid project description %s: %s" % (path, e))

    if not isinstance(data, dict):
        raise ConfigurationError("Project description %s must be a mapping" % path)

    for key in ("project", "target", "configuration"):
        if not data.get(key):
            raise ConfigurationError("Project description %s is missing %r" % (path, key))

    basedir = os.path.dirname(os.path.abspath(path))

    def resolve(value):
        if value is None:
            return None
        return os.path.join(basedir, os.path.expanduser(str(value)))

    project = Project(resolve(data["project"]), sdk=data.get("sdk"))
    target = Target(project, str(data["target"]))
    configuration = Configuration(
        target,
        str(data["configuration"]),
        str(data.get("product_name") or data["target"]),
        resolve(data.get("info_plist")),
    )

    return {
        "configuration": configuration,
        "identity": data.get("identity"),
        "keychain": resolve(data.get("keychain")),
        "profile": resolve(data.get("profile")),
        "build_path": resolve(data.get("build_path")),
        "deploy": data.get("deploy") or {},
    }
