# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import os
import plistlib

from app_build_service.builder import Builder
from app_build_service.errors import ExecutionError
from app_build_service.project import Configuration, Project, Target

base_dir = os.path.dirname(__file__)
staged_data_dir = os.path.join(base_dir, "staged_data")


def staged_data_filename(filename):
    return os.path.join(staged_data_dir, filename)


def read_staged_data(filename):
    with open(staged_data_filename(filename), "r") as f:
        return f.read()


def read_staged_lines(filename):
    return read_staged_data(filename).splitlines()


def write_info_plist(path, version="1.2", identifier="com.example.demo"):
    plist = {"CFBundleIdentifier": identifier}
    if version is not None:
        plist["CFBundleShortVersionString"] = version
    with open(path, "wb") as f:
        plistlib.dump(plist, f)
    return path


def make_builder(basedir, product_name="Demo", config_name="Release", sdk="iphoneos",
                 version="1.2", identifier="com.example.demo"):
    """ Builder for a Demo project living in basedir """
    info_plist = write_info_plist(
        os.path.join(basedir, "Demo-Info.plist"), version=version, identifier=identifier)
    project = Project(os.path.join(basedir, "Demo.xcodeproj"), sdk=sdk)
    target = Target(project, product_name)
    config = Configuration(target, config_name, product_name, info_plist)
    return Builder(target, config)


def make_profile(path, uuid, identifiers=("ABCDE12345",), name="Demo Distribution",
                 devices=None):
    """
    Write a provisioning profile to path. The plist is wrapped in binary
    noise the way the signature wraps it in real profiles.
    """
    plist = {
        "Name": name,
        "UUID": uuid,
        "ApplicationIdentifierPrefix": list(identifiers),
    }
    if devices:
        plist["ProvisionedDevices"] = list(devices)
    dirname = os.path.dirname(path)
    if dirname and not os.path.isdir(dirname):
        os.makedirs(dirname)
    with open(path, "wb") as f:
        f.write(b"0\x82\x1c\xa4\x06\t*\x86H\x86\xf7\r\x01\x07\x02\xa0")
        f.write(plistlib.dumps(plist))
        f.write(b"\xa0\x82\x0e>0\x82\x04\x000\x82\x02\xe8")
    return path


def fake_execute(lines=(), returncode=0, touch=None):
    """
    Replacement for Command.execute, meant to be patched in with
    autospec=True so the Command itself is recorded as the first argument.

    :param lines: output lines passed to the callback
    :param int returncode: non-zero makes the command fail with ExecutionError
    :param touch: optional function called with the Command before the
        output is produced, e.g. to create the files a tool would create
    """
    def execute(cmd, show_output=False, callback=None):
        if touch is not None:
            touch(cmd)
        for line in lines:
            if callback is not None:
                callback(line)
        if returncode:
            raise ExecutionError(cmd.to_list(), returncode, list(lines)[-1:])
    return execute


def executed_commands(patched_execute):
    """ The command lines recorded by a patched Command.execute """
    return [call[0][0].to_list() for call in patched_execute.call_args_list]
