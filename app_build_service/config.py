# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT

"""Configuration handler functions."""

import importlib.util
import os
import sys

from app_build_service import logger
from app_build_service.errors import ConfigurationError

# In-tree configuration, used when no system-wide file is installed
_tree_config_file = os.path.abspath(
    os.path.join(os.path.dirname(__file__), os.pardir, "conf", "config.py"))


def _load_config_module(config_file):
    spec = importlib.util.spec_from_file_location("app_build_service_config", config_file)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def init_config():
    """
    Configure the orchestrator from the configuration file.

    The file is taken from $ABS_CONFIG_FILE, /etc/app-build-service/config.py
    or the in-tree conf/config.py, in that order. The configuration class is
    taken from $ABS_CONFIG_SECTION and defaults to DevConfiguration.
    TestConfiguration is forced when running under py.test.
    """
    config_file = os.environ.get("ABS_CONFIG_FILE", "/etc/app-build-service/config.py")
    config_section = os.environ.get("ABS_CONFIG_SECTION", "DevConfiguration")

    # TestConfiguration shall only be used for running tests
    if any(["py.test" in arg or "pytest" in arg for arg in sys.argv]):
        config_section = "TestConfiguration"
        config_file = _tree_config_file

    if not os.path.exists(config_file):
        config_file = _tree_config_file
    if not os.path.exists(config_file):
        # Nothing to load, defaults only
        return Config()

    config_module = _load_config_module(config_file)
    try:
        config_section_obj = getattr(config_module, config_section)
    except AttributeError:
        raise ConfigurationError(
            "Configuration section %r not found in %s" % (config_section, config_file))

    return Config(config_section_obj)


class Config(object):
    """Class representing the orchestrator configuration."""
    _defaults = {
        "log_backend": {
            "type": str,
            "default": None,
            "desc": "Log backend"},
        "log_file": {
            "type": str,
            "default": "",
            "desc": "Path to log file"},
        "log_level": {
            "type": str,
            "default": "info",
            "desc": "Log level"},
        "xcodebuild": {
            "type": str,
            "default": "xcodebuild",
            "desc": "The build tool."},
        "xcrun": {
            "type": str,
            "default": "xcrun",
            "desc": "The developer tool runner used for packaging."},
        "codesign": {
            "type": str,
            "default": "codesign",
            "desc": "The code signing tool."},
        "zip": {
            "type": str,
            "default": "zip",
            "desc": "The archiver used for dSYM bundles."},
        "security": {
            "type": str,
            "default": "security",
            "desc": "The keychain management tool."},
        "scp": {
            "type": str,
            "default": "scp",
            "desc": "Secure copy program used by the ssh deployment."},
        "profiles_dir": {
            "type": str,
            "default": "~/Library/MobileDevice/Provisioning Profiles",
            "desc": "Directory holding installed provisioning profiles."},
        "test_report_dir": {
            "type": str,
            "default": "test-reports",
            "desc": "Directory for JUnit test reports."},
        "test_sdk": {
            "type": str,
            "default": "iphonesimulator",
            "desc": "SDK used for test runs when none is given."},
        "color_output": {
            "type": bool,
            "default": True,
            "desc": "Colorize console output."},
        "net_timeout": {
            "type": int,
            "default": 120,
            "desc": "Global network timeout for deployment uploads, in seconds."},
    }

    def __init__(self, conf_section_obj=None):
        """
        Initialize the Config object with defaults and then override them
        with the upper-case attributes of conf_section_obj.
        """

        for name, values in self._defaults.items():
            self.set_item(name, values["default"])

        if conf_section_obj is None:
            return

        for key in dir(conf_section_obj):
            if key.startswith("_") or not key.isupper():
                continue
            self.set_item(key.lower(), getattr(conf_section_obj, key))

    def set_item(self, key, value):
        if key == "set_item" or key.startswith("_"):
            raise ConfigurationError("Configuration item's name is not allowed: %s" % key)

        # customized check & set if there's a corresponding handler
        setifok_func = "_setifok_{}".format(key)
        if hasattr(self, setifok_func):
            getattr(self, setifok_func)(value)
            return

        # passthrough for unmanaged configuration items
        if key not in self._defaults:
            setattr(self, key, value)
            return

        # type conversion for configuration item
        convert = self._defaults[key]["type"]
        if convert in [bool, int, list, str]:
            try:
                setattr(self, key, convert(value))
            except (TypeError, ValueError):
                raise TypeError("Configuration value conversion failed for name: %s" % key)
        # if type is None, do not perform any conversion
        elif convert is None:
            setattr(self, key, value)
        # unknown type/unsupported conversion
        else:
            raise TypeError("Unsupported type %s for configuration item name: %s" % (convert, key))

    def _setifok_log_backend(self, s):
        if s is None:
            s = "console"
        elif s not in logger.supported_log_backends():
            raise ValueError("Unsupported log backend")
        self.log_backend = str(s)

    def _setifok_log_file(self, s):
        if s is None:
            self.log_file = ""
        else:
            self.log_file = str(s)

    def _setifok_log_level(self, s):
        level = str(s).lower()
        self.log_level = logger.str_to_log_level(level)

    def _setifok_profiles_dir(self, s):
        self.profiles_dir = os.path.expanduser(str(s))

    def _setifok_net_timeout(self, i):
        if not isinstance(i, int):
            raise TypeError("net_timeout needs to be an int")
        if i < 0:
            raise ValueError("net_timeout must be >= 0")
        self.net_timeout = i
