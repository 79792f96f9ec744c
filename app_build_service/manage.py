# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Command line interface of the build orchestrator """

import argparse
import sys

from app_build_service import log, set_verbosity
from app_build_service import deploy
from app_build_service.builder import Builder
from app_build_service.errors import (
    BackendNotFound, ConfigurationError, ExecutionError, MissingArtifact, ProfileError)
from app_build_service.project import load_project_file

# Errors reported as a failed run rather than a traceback
_handled_errors = (
    BackendNotFound, ConfigurationError, ExecutionError, MissingArtifact, ProfileError)


def builder_from_file(path):
    """ Create a Builder from a YAML project description """
    settings = load_project_file(path)
    configuration = settings["configuration"]

    builder = Builder(configuration.target, configuration)
    builder.identity = settings["identity"]
    builder.keychain = settings["keychain"]
    builder.profile = settings["profile"]
    if settings["build_path"]:
        builder.build_path = settings["build_path"]
        builder.objroot = settings["build_path"]
        builder.symroot = settings["build_path"]
    return builder, settings


def parse_options(values):
    """ Turn ["key=value", ...] into a dict """
    options = {}
    for value in values or []:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise ConfigurationError("Invalid deployment option %r, expected key=value" % value)
        options[key] = val
    return options


def make_parser():
    parser = argparse.ArgumentParser(
        prog="app_build_service",
        description="Build, test, package, sign and deploy an application target.")
    parser.add_argument("-f", "--file", default="appbuild.yaml",
                        help="YAML project description (default: %(default)s)")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-d", "--debug", action="store_true", help="debug output")
    verbosity.add_argument("-v", "--verbose", action="store_true", help="verbose output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="only report errors")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    build = subparsers.add_parser("build", help="build the target")
    build.add_argument("--sdk", help="override the configured SDK")
    build.add_argument("--show-output", action="store_true",
                       help="stream the build output instead of writing the build log")

    test = subparsers.add_parser("test", help="run the tests of the target")
    test.add_argument("--sdk", help="SDK to test with")
    test.add_argument("--show-output", action="store_true", help="stream the test output")

    clean = subparsers.add_parser("clean", help="clean the build products")
    clean.add_argument("--show-output", action="store_true", help="stream the output")

    package = subparsers.add_parser("package", help="create the IPA and the dSYM zip")
    package.add_argument("--show-output", action="store_true", help="stream the output")

    subparsers.add_parser("sign", help="sign the IPA")

    deploy_parser = subparsers.add_parser("deploy", help="deploy the packaged artifacts")
    deploy_parser.add_argument("method", help="one of: %s" % ", ".join(deploy.supported_methods()))
    deploy_parser.add_argument("-o", "--option", action="append", dest="options", metavar="KEY=VALUE",
                               help="backend option, overrides the project description")

    return parser


def main(argv=None):
    args = make_parser().parse_args(argv)
    set_verbosity(debug=args.debug, verbose=args.verbose, quiet=args.quiet)

    try:
        builder, settings = builder_from_file(args.file)

        if args.command == "build":
            builder.build(sdk=args.sdk, show_output=args.show_output)
        elif args.command == "test":
            report = builder.test(sdk=args.sdk, show_output=args.show_output)
            if report.failed:
                return 1
        elif args.command == "clean":
            builder.clean(show_output=args.show_output)
        elif args.command == "package":
            builder.package(show_output=args.show_output)
        elif args.command == "sign":
            builder.sign()
        elif args.command == "deploy":
            options = dict(settings["deploy"].get(args.method) or {})
            options.update(parse_options(args.options))
            builder.deploy(args.method, callback=print, **options)
    except _handled_errors as e:
        log.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
