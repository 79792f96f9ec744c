# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT

"""Build, test, package, sign and deploy a project target."""

import contextlib
import os

import munch

from app_build_service import conf, log
from app_build_service import deploy as deploy_backends
from app_build_service import terminal
from app_build_service.errors import ConfigurationError, ExecutionError, MissingArtifact
from app_build_service.keychain import Keychain, KeychainSearchPath
from app_build_service.parsers import OCUnitParser, XcodebuildParser
from app_build_service.profiles import install_profile
from app_build_service.report import Report
from app_build_service.shell import Command

BUILD_LOG_NAME = "xcodebuild-output.txt"
SNAPSHOT_VERSION = "SNAPSHOT"


class Builder(object):
    """
    Higher-level API for the usual build tasks of one target/configuration.

    Example usage:
        builder = Builder(target, config)
        builder.identity = "iPhone Distribution: Example Inc."
        builder.profile = "Demo_Distribution.mobileprovision"
        builder.clean().build().package()
        builder.deploy("web", base_url="https://builds.example.com/demo")

    Attributes that may be changed before a stage runs: sdk, identity,
    build_path, objroot, symroot, keychain and profile.
    """

    def __init__(self, target, config):
        """
        :param target: app_build_service.project.Target to build
        :param config: app_build_service.project.Configuration of the target
        """
        self.target = target
        self.config = config

        self.sdk = target.project.sdk
        self.identity = None
        self.profile = None
        self._keychain = None
        self.build_path = os.path.join(os.path.dirname(target.project.path), "build")
        self.objroot = self.build_path
        self.symroot = self.build_path

        self.built = False
        self.packaged = False

    def __repr__(self):
        return "<Builder %s %s-%s>" % (self.target.name, self.config.name, self.sdk)

    @property
    def keychain(self):
        return self._keychain

    @keychain.setter
    def keychain(self, keychain):
        if keychain is not None and not isinstance(keychain, Keychain):
            keychain = Keychain(keychain)
        self._keychain = keychain

    def common_environment(self):
        env = {}
        env["OBJROOT"] = self.objroot
        env["SYMROOT"] = self.symroot
        return env

    def build_environment(self):
        profile = self.install_profile()
        env = self.common_environment()
        if self.keychain is not None:
            env["OTHER_CODE_SIGN_FLAGS"] = "--keychain %s" % self.keychain.path
        if self.identity is not None:
            env["CODE_SIGN_IDENTITY"] = self.identity
        if profile is not None:
            env["PROVISIONING_PROFILE"] = profile.uuid
        return env

    @contextlib.contextmanager
    def log_task(self, task):
        terminal.puts("[%s] " % self.product_name, "blue", newline=False)
        terminal.puts(task)

        try:
            yield
        except Exception as e:
            terminal.puts("ERROR: ", "red", newline=False)
            terminal.puts(str(e))
            log.debug("%s of %r failed: %r" % (task, self, e))
            raise

    def build(self, sdk=None, show_output=False, callback=None):
        """
        Build the target.

        Without show_output or callback the output is classified into
        <configuration_build_path>/xcodebuild-output.txt, otherwise it is
        streamed live.

        :param str sdk: overrides the configured SDK for this build
        :param bool show_output: echo the raw build output
        :param callable callback: called with every output line
        :return: self
        """
        with self.log_task("Building"):
            cmd = self.xcodebuild()
            sdk = sdk or self.sdk
            if sdk is not None:
                cmd.append("-sdk", sdk)

            with self.with_keychain():
                self.run_xcodebuild(cmd, show_output=show_output, callback=callback)
            self.built = True

        return self

    def test(self, sdk=None, show_output=False, formatters=None):
        """
        Run the tests of the target and parse the results into a Report.

        A failing test run is not an error as long as the output contained
        at least one test suite: the failures are in the report. When no
        suite was seen (e.g. the tests didn't compile) the ExecutionError is
        raised.

        :param str sdk: SDK to test with, defaults to conf.test_sdk
        :param bool show_output: echo the raw test output
        :param list formatters: formatters to attach to the report (instances
            or names); defaults to coloured stdout output and JUnit files in
            conf.test_report_dir
        :return: app_build_service.report.Report
        """
        report = Report()

        with self.log_task("Testing"):
            cmd = self.xcodebuild()
            sdk = sdk or conf.test_sdk
            if sdk is not None:
                cmd.append("-sdk", sdk)
            cmd.env["TEST_AFTER_BUILD"] = "YES"

            if formatters is None:
                report.add_formatter("stdout", color_output=conf.color_output)
                report.add_formatter("junit", conf.test_report_dir)
            else:
                for formatter in formatters:
                    report.add_formatter(formatter)

            parser = OCUnitParser(report)
            try:
                cmd.execute(show_output=show_output, callback=parser.feed)
            except ExecutionError as e:
                if not report.suites:
                    raise
                log.info("Test run exited with %r, failures are in the report" % e.returncode)
            finally:
                parser.flush()

        return report

    def clean(self, show_output=False, callback=None):
        with self.log_task("Cleaning"):
            cmd = self.xcodebuild()
            if self.sdk is not None:
                cmd.append("-sdk", self.sdk)
            cmd.append("clean")

            self.run_xcodebuild(cmd, show_output=show_output, callback=callback)

            self.built = False
            self.packaged = False

        return self

    def sign(self, show_output=True, callback=None):
        """
        Sign the packaged IPA with the configured identity. The output of
        codesign goes straight to the console and/or callback.
        """
        with self.log_task("Signing"):
            self.require_artifact(self.ipa_path, "package")
            if not self.identity:
                raise ConfigurationError("No signing identity configured")

            cmd = Command(conf.codesign)
            cmd.append("--force")
            cmd.append("--sign", self.identity)
            cmd.append("--resource-rules=%s" % os.path.join(self.app_path, "ResourceRules.plist"))
            cmd.append("--entitlements", self.entitlements_path)
            cmd.append(self.ipa_path)
            cmd.execute(show_output=show_output, callback=callback)

        return self

    def package(self, show_output=False, callback=None):
        """
        Package the built application into an IPA (embedding the
        provisioning profile when one is configured) and zip the dSYM bundle.
        """
        with self.log_task("Packaging"):
            self.require_artifact(self.app_path, "build")

            cmd = Command(conf.xcrun)
            if self.sdk is not None:
                cmd.append("-sdk", self.sdk)
            cmd.append("PackageApplication")
            cmd.append("-v", self.app_path)
            cmd.append("-o", self.ipa_path)
            if self.profile is not None:
                cmd.append("--embed", self.profile)

            terminal.puts("  Generating IPA: %s" % self.ipa_path)
            with self.with_keychain():
                cmd.execute(show_output=show_output, callback=callback)

            cmd = Command(conf.zip)
            cmd.append("-r", "-T", "-y", self.dsym_zip_path, self.dsym_path)

            terminal.puts("  Packaging dSYM: %s" % self.dsym_zip_path)
            cmd.execute(show_output=show_output, callback=callback)

            self.packaged = True

        return self

    def deploy(self, method, callback=None, **options):
        """
        Deploy the packaged artifacts through the chosen method.

        :param str method: the deployment method, see
            app_build_service.deploy.supported_methods()
        :param callable callback: called with every progress value the
            backend yields
        :param options: options specific to the chosen method, merged over
            the artifact paths and product metadata of this builder
        :return: list of the progress values
        """
        with self.log_task("Deploying (%s)" % method):
            backend_class = deploy_backends.get_backend(method)

            bag = munch.Munch(
                ipa_path=self.ipa_path,
                dsym_zip_path=self.dsym_zip_path,
                ipa_name=self.ipa_name,
                app_path=self.app_path,
                configuration_build_path=self.configuration_build_path,
                product_name=self.config.product_name,
                info_plist=self.config.info_plist,
            )
            bag.update(options)

            deployer = backend_class(self, bag)
            progress = []
            for value in deployer.deploy():
                progress.append(value)
                if callback is not None:
                    callback(value)

        return progress

    def require_artifact(self, path, stage):
        if not os.path.exists(path):
            raise MissingArtifact("Can't find %s, do you need to call builder.%s?" % (path, stage))

    @property
    def configuration_build_path(self):
        return os.path.join(self.build_path, "%s-%s" % (self.config.name, self.sdk))

    @property
    def entitlements_path(self):
        return os.path.join(
            self.build_path,
            "%s.build" % self.target.name,
            "%s-%s" % (self.config.name, self.sdk),
            "%s.build" % self.target.name,
            "%s.xcent" % self.config.product_name)

    @property
    def app_path(self):
        return os.path.join(self.configuration_build_path, "%s.app" % self.config.product_name)

    @property
    def product_version_basename(self):
        version = self.bundle_version
        if not version:
            version = SNAPSHOT_VERSION
        return os.path.join(
            self.configuration_build_path,
            "%s-%s-%s" % (self.config.product_name, self.config.name, version))

    @property
    def product_name(self):
        return self.config.product_name

    @property
    def ipa_path(self):
        return "%s.ipa" % self.product_version_basename

    @property
    def dsym_path(self):
        return "%s.dSYM" % self.app_path

    @property
    def dsym_zip_path(self):
        return "%s.dSYM.zip" % self.product_version_basename

    @property
    def ipa_name(self):
        return os.path.basename(self.ipa_path)

    @property
    def bundle_identifier(self):
        return self.config.info_plist.identifier

    @property
    def bundle_version(self):
        return self.config.info_plist.version

    @contextlib.contextmanager
    def with_keychain(self):
        if self.keychain is None:
            yield
            return

        with self.log_task("Using keychain %s" % self.keychain.path):
            with KeychainSearchPath(self.keychain):
                yield

    def install_profile(self):
        if self.profile is None:
            return None

        with self.log_task("Installing Profile %s" % self.profile):
            # Earlier installs of the same profile are replaced, other
            # profiles of the app are left alone
            return install_profile(self.profile, conf.profiles_dir)

    def xcodebuild(self):
        cmd = Command(conf.xcodebuild, self.build_environment())
        cmd.append("-project", self.target.project.path)
        cmd.append("-target", self.target.name)
        cmd.append("-configuration", self.config.name)
        return cmd

    def run_xcodebuild(self, cmd, show_output=False, callback=None):
        """
        Run an xcodebuild command in one of two modes.

        Live: with show_output or a callback, every line is passed on as it
        arrives. Quiet: the output is classified by XcodebuildParser and
        written to <configuration_build_path>/xcodebuild-output.txt.

        :return: the XcodebuildParser in quiet mode, None otherwise
        """
        if callback is not None or show_output:
            cmd.execute(show_output=show_output, callback=callback)
            return None

        filename = os.path.join(self.configuration_build_path, BUILD_LOG_NAME)
        parser = XcodebuildParser(filename)
        try:
            cmd.execute(callback=parser.feed)
        except ExecutionError:
            terminal.puts("Build failed, output written to %s" % filename, "red")
            raise
        finally:
            parser.flush()
        return parser
