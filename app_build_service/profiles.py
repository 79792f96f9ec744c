# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
"""Provisioning profiles and their installation."""

import glob
import os
import plistlib
import shutil

from app_build_service import conf, log
from app_build_service.errors import ProfileError

PROFILE_EXTENSION = ".mobileprovision"


def read_profile_plist(path):
    """
    Extract the property list embedded in a signed provisioning profile.

    :raises ProfileError: when the file can't be read or holds no plist
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except (IOError, OSError) as e:
        raise ProfileError("Can't read provisioning profile %s: %s" % (path, e))

    start = data.find(b"<?xml")
    end = data.find(b"</plist>")
    if start == -1 or end == -1:
        raise ProfileError("No property list found in provisioning profile %s" % path)

    try:
        return plistlib.loads(data[start:end + len(b"</plist>")])
    except (plistlib.InvalidFileException, ValueError) as e:
        raise ProfileError("Invalid property list in provisioning profile %s: %s" % (path, e))


class ProvisioningProfile(object):
    """
    :param str path: path to the .mobileprovision file
    :param str profiles_dir: directory of installed profiles, defaults to
        conf.profiles_dir
    """

    def __init__(self, path, profiles_dir=None):
        self.path = path
        self.profiles_dir = profiles_dir or conf.profiles_dir

        plist = read_profile_plist(path)
        self.name = plist.get("Name")
        self.uuid = plist.get("UUID")
        self.identifiers = list(plist.get("ApplicationIdentifierPrefix") or [])
        self.devices = list(plist.get("ProvisionedDevices") or [])
        self.appstore = not self.devices
        if not self.uuid:
            raise ProfileError("Provisioning profile %s has no UUID" % path)

    @property
    def install_path(self):
        return os.path.join(self.profiles_dir, self.uuid + PROFILE_EXTENSION)

    @property
    def installed(self):
        return os.path.exists(self.install_path)

    def _is_install_path(self):
        return os.path.abspath(self.path) == os.path.abspath(self.install_path)

    def install(self):
        if self._is_install_path():
            return
        if not os.path.isdir(self.profiles_dir):
            os.makedirs(self.profiles_dir)
        log.info("Installing provisioning profile %s as %s" % (self.path, self.install_path))
        shutil.copyfile(self.path, self.install_path)

    def uninstall(self):
        if self.installed:
            log.info("Uninstalling provisioning profile %s" % self.install_path)
            os.remove(self.install_path)

    @classmethod
    def installed_profiles(cls, profiles_dir=None):
        profiles_dir = profiles_dir or conf.profiles_dir
        profiles = []
        for path in sorted(glob.glob(os.path.join(profiles_dir, "*" + PROFILE_EXTENSION))):
            try:
                profiles.append(cls(path, profiles_dir))
            except ProfileError as e:
                log.warning("Skipping unreadable installed profile: %s" % e)
        return profiles

    def __repr__(self):
        return "<ProvisioningProfile %s (%s)>" % (self.name, self.uuid)


def install_profile(path, profiles_dir=None):
    """
    Install the provisioning profile at path.

    Any installed profile with the same identifiers and UUID is uninstalled
    first. The new profile stays installed after the caller is done with it.

    :return: the installed ProvisioningProfile, or None when path is empty
    """
    if not path:
        return None

    profile = ProvisioningProfile(path, profiles_dir)
    if profile._is_install_path():
        # Already living in the profile store
        return profile

    for installed in ProvisioningProfile.installed_profiles(profile.profiles_dir):
        if installed.identifiers == profile.identifiers and installed.uuid == profile.uuid:
            installed.uninstall()

    profile.install()
    return profile
