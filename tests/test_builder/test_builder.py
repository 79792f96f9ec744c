# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import os
import shutil
import tempfile

import mock
import pytest

from app_build_service import conf, deploy
from app_build_service.builder import BUILD_LOG_NAME
from app_build_service.deploy.base import Deployer
from app_build_service.errors import (
    BackendNotFound, ConfigurationError, ExecutionError, MissingArtifact)
from app_build_service.formatters import JunitFormatter, StdoutFormatter
from app_build_service.report import TestCase
from app_build_service.shell import Command
from tests import executed_commands, fake_execute, make_builder, read_staged_lines


def touch(path):
    dirname = os.path.dirname(path)
    if not os.path.isdir(dirname):
        os.makedirs(dirname)
    with open(path, "w") as f:
        f.write("")


class FakeDeployer(Deployer):
    method = "fake"

    def deploy(self):
        yield self.options.ipa_name
        yield self.options.channel


class TestBuilderPaths:
    def setup_method(self, test_method):
        self.tmpdir = tempfile.mkdtemp()
        self.builder = make_builder(self.tmpdir)
        self.config_build_path = os.path.join(self.tmpdir, "build", "Release-iphoneos")

    def teardown_method(self, test_method):
        shutil.rmtree(self.tmpdir)

    def test_configuration_build_path(self):
        assert self.builder.configuration_build_path == self.config_build_path

    def test_artifact_paths(self):
        assert self.builder.app_path == os.path.join(self.config_build_path, "Demo.app")
        assert self.builder.dsym_path == os.path.join(self.config_build_path, "Demo.app.dSYM")
        assert self.builder.ipa_path == os.path.join(
            self.config_build_path, "Demo-Release-1.2.ipa")
        assert self.builder.dsym_zip_path == os.path.join(
            self.config_build_path, "Demo-Release-1.2.dSYM.zip")
        assert self.builder.ipa_name == "Demo-Release-1.2.ipa"

    def test_paths_are_stable(self):
        assert self.builder.ipa_path == self.builder.ipa_path
        assert self.builder.app_path == self.builder.app_path

    def test_entitlements_path(self):
        assert self.builder.entitlements_path == os.path.join(
            self.tmpdir, "build", "Demo.build", "Release-iphoneos", "Demo.build", "Demo.xcent")

    def test_sdk_change_moves_paths(self):
        self.builder.sdk = "iphonesimulator"
        assert self.builder.app_path == os.path.join(
            self.tmpdir, "build", "Release-iphonesimulator", "Demo.app")

    @pytest.mark.parametrize("version", [None, ""])
    def test_snapshot_without_version(self, version):
        builder = make_builder(self.tmpdir, version=version)
        assert builder.ipa_name == "Demo-Release-SNAPSHOT.ipa"
        assert builder.dsym_zip_path.endswith("Demo-Release-SNAPSHOT.dSYM.zip")

    def test_missing_info_plist_is_snapshot(self):
        self.builder.config.info_plist.path = os.path.join(self.tmpdir, "missing.plist")
        assert self.builder.ipa_name == "Demo-Release-SNAPSHOT.ipa"
        assert self.builder.bundle_identifier is None

    def test_bundle_metadata(self):
        assert self.builder.bundle_identifier == "com.example.demo"
        assert self.builder.bundle_version == "1.2"

    def test_build_path_override(self):
        self.builder.build_path = "/tmp/elsewhere"
        assert self.builder.configuration_build_path == "/tmp/elsewhere/Release-iphoneos"


class TestBuilderEnvironment:
    def setup_method(self, test_method):
        self.tmpdir = tempfile.mkdtemp()
        self.builder = make_builder(self.tmpdir)

    def teardown_method(self, test_method):
        shutil.rmtree(self.tmpdir)

    def test_common_environment(self):
        build_path = os.path.join(self.tmpdir, "build")
        assert self.builder.common_environment() == {
            "OBJROOT": build_path,
            "SYMROOT": build_path,
        }

    def test_build_environment_without_signing(self):
        assert self.builder.build_environment() == self.builder.common_environment()

    @mock.patch("app_build_service.builder.install_profile")
    def test_build_environment_with_signing(self, install_profile):
        install_profile.return_value = mock.Mock(uuid="1234-ABCD")
        self.builder.identity = "iPhone Distribution: Example Inc."
        self.builder.keychain = os.path.join(self.tmpdir, "build.keychain")
        self.builder.profile = os.path.join(self.tmpdir, "Demo.mobileprovision")

        env = self.builder.build_environment()

        install_profile.assert_called_once_with(self.builder.profile, conf.profiles_dir)
        assert env["CODE_SIGN_IDENTITY"] == "iPhone Distribution: Example Inc."
        assert env["OTHER_CODE_SIGN_FLAGS"] == "--keychain %s" % os.path.join(
            self.tmpdir, "build.keychain")
        assert env["PROVISIONING_PROFILE"] == "1234-ABCD"

    def test_keychain_setter_wraps_paths(self):
        self.builder.keychain = "build.keychain"
        assert self.builder.keychain.path == os.path.abspath("build.keychain")
        self.builder.keychain = None
        assert self.builder.keychain is None


class TestBuild:
    def setup_method(self, test_method):
        self.tmpdir = tempfile.mkdtemp()
        self.builder = make_builder(self.tmpdir)
        self.log_path = os.path.join(self.builder.configuration_build_path, BUILD_LOG_NAME)

    def teardown_method(self, test_method):
        shutil.rmtree(self.tmpdir)

    def test_build_writes_build_log(self):
        lines = read_staged_lines("xcodebuild-success.txt")
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(lines)) as execute:
            assert self.builder.build() is self.builder

        assert self.builder.built
        with open(self.log_path) as f:
            assert f.read() == "\n".join(lines) + "\n"

        build_path = os.path.join(self.tmpdir, "build")
        assert executed_commands(execute) == [[
            "xcodebuild",
            "-project", os.path.join(self.tmpdir, "Demo.xcodeproj"),
            "-target", "Demo",
            "-configuration", "Release",
            "-sdk", "iphoneos",
            "OBJROOT=%s" % build_path,
            "SYMROOT=%s" % build_path,
        ]]

    def test_build_sdk_override(self):
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute()) as execute:
            self.builder.build(sdk="iphonesimulator")

        cmd = executed_commands(execute)[0]
        assert cmd[cmd.index("-sdk") + 1] == "iphonesimulator"

    def test_build_failure_propagates(self, capsys):
        lines = read_staged_lines("xcodebuild-failure.txt")
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(lines, returncode=65)):
            with pytest.raises(ExecutionError) as excinfo:
                self.builder.build()

        assert excinfo.value.returncode == 65
        assert not self.builder.built
        # The log is complete and closed even though the build failed
        with open(self.log_path) as f:
            assert f.read() == "\n".join(lines) + "\n"

        out = capsys.readouterr().out
        assert "Build failed, output written to %s" % self.log_path in out
        assert "ERROR: " in out

    def test_build_live_output(self):
        lines = read_staged_lines("xcodebuild-success.txt")
        seen = []
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(lines)):
            self.builder.build(callback=seen.append)

        assert seen == lines
        assert not os.path.exists(self.log_path)

    def test_run_xcodebuild_returns_parser(self):
        lines = read_staged_lines("xcodebuild-success.txt")
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(lines)):
            parser = self.builder.run_xcodebuild(self.builder.xcodebuild())

        assert parser.succeeded
        assert len(parser.warnings) == 1

    def test_build_restores_keychain_on_failure(self):
        self.builder.keychain = os.path.join(self.tmpdir, "build.keychain")
        keychain_path = self.builder.keychain.path

        with mock.patch("app_build_service.keychain.search_path") as search_path, \
                mock.patch("app_build_service.keychain.set_search_path") as set_search_path, \
                mock.patch.object(Command, "execute", autospec=True,
                                  side_effect=fake_execute(["boom"], returncode=1)):
            search_path.return_value = ["/Users/dev/Library/Keychains/login.keychain"]
            with pytest.raises(ExecutionError):
                self.builder.build()

        assert set_search_path.call_args_list == [
            mock.call([keychain_path, "/Users/dev/Library/Keychains/login.keychain"]),
            mock.call(["/Users/dev/Library/Keychains/login.keychain"]),
        ]
        assert not self.builder.built


class TestTest:
    def setup_method(self, test_method):
        self.tmpdir = tempfile.mkdtemp()
        self.builder = make_builder(self.tmpdir)

    def teardown_method(self, test_method):
        shutil.rmtree(self.tmpdir)

    def test_test_run_succeeds(self):
        lines = read_staged_lines("xctest-passing.txt")
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(lines)) as execute:
            report = self.builder.test(formatters=[])

        assert report.finished
        assert report.succeeded
        assert [s.name for s in report.suites] == ["ModelTests"]
        assert report.total_tests == 2

        cmd = executed_commands(execute)[0]
        assert cmd[cmd.index("-sdk") + 1] == conf.test_sdk
        assert "TEST_AFTER_BUILD=YES" in cmd

    def test_failing_tests_return_report(self):
        lines = read_staged_lines("ocunit-failures.txt")
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(lines, returncode=1)):
            report = self.builder.test(sdk="iphonesimulator", formatters=[])

        assert report.failed
        assert [s.name for s in report.suites] == ["DemoTests", "OtherTests"]
        assert report.total_failed_tests == 1
        failed = report.suites[0].tests[1]
        assert failed.name == "testFailure"
        assert failed.status == TestCase.FAILED

    def test_failure_without_suites_raises(self):
        lines = ["clang: error: linker command failed with exit code 1", "** BUILD FAILED **"]
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(lines, returncode=65)):
            with pytest.raises(ExecutionError):
                self.builder.test(formatters=[])

    def test_crashed_test_host(self):
        lines = read_staged_lines("ocunit-crash.txt")
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(lines, returncode=1)):
            report = self.builder.test(formatters=[])

        tests = report.suites[0].tests
        assert [t.status for t in tests] == [TestCase.PASSED, TestCase.ERRORED]
        assert tests[1].message.startswith("Test host crashed")
        assert report.suites[0].finished

    def test_unfinished_output_is_closed(self):
        lines = read_staged_lines("ocunit-unfinished.txt")
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(lines)):
            report = self.builder.test(formatters=[])

        slow = report.suites[0].tests[-1]
        assert slow.status == TestCase.ERRORED
        assert slow.message == "Test did not finish"
        assert slow.output == ["still working"]

    def test_default_formatters(self, capsys):
        report_dir = os.path.join(self.tmpdir, "reports")
        lines = read_staged_lines("ocunit-failures.txt")
        with mock.patch.object(conf, "test_report_dir", report_dir), \
                mock.patch.object(Command, "execute", autospec=True,
                                  side_effect=fake_execute(lines, returncode=1)):
            report = self.builder.test()

        assert [type(f) for f in report.formatters] == [StdoutFormatter, JunitFormatter]
        assert sorted(os.listdir(report_dir)) == ["TEST-DemoTests.xml", "TEST-OtherTests.xml"]
        assert "3 tests, 1 failures, 0 errors" in capsys.readouterr().out


class TestClean:
    def setup_method(self, test_method):
        self.tmpdir = tempfile.mkdtemp()
        self.builder = make_builder(self.tmpdir)

    def teardown_method(self, test_method):
        shutil.rmtree(self.tmpdir)

    def test_clean_resets_flags(self):
        self.builder.built = True
        self.builder.packaged = True
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(["** CLEAN SUCCEEDED **"])) as execute:
            assert self.builder.clean() is self.builder

        assert not self.builder.built
        assert not self.builder.packaged
        cmd = executed_commands(execute)[0]
        assert cmd[cmd.index("-sdk"):cmd.index("-sdk") + 3] == ["-sdk", "iphoneos", "clean"]


class TestPackage:
    def setup_method(self, test_method):
        self.tmpdir = tempfile.mkdtemp()
        self.builder = make_builder(self.tmpdir)

    def teardown_method(self, test_method):
        shutil.rmtree(self.tmpdir)

    def test_package_requires_app(self):
        with mock.patch.object(Command, "execute", autospec=True) as execute:
            with pytest.raises(MissingArtifact) as excinfo:
                self.builder.package()

        execute.assert_not_called()
        assert not self.builder.packaged
        assert "do you need to call builder.build?" in str(excinfo.value)

    def test_package(self):
        os.makedirs(self.builder.app_path)
        self.builder.profile = os.path.join(self.tmpdir, "Demo.mobileprovision")
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute()) as execute:
            assert self.builder.package() is self.builder

        assert self.builder.packaged
        assert executed_commands(execute) == [
            ["xcrun", "-sdk", "iphoneos", "PackageApplication",
             "-v", self.builder.app_path,
             "-o", self.builder.ipa_path,
             "--embed", self.builder.profile],
            ["zip", "-r", "-T", "-y", self.builder.dsym_zip_path, self.builder.dsym_path],
        ]

    def test_package_failure(self):
        os.makedirs(self.builder.app_path)
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute(["error: no app"], returncode=1)):
            with pytest.raises(ExecutionError):
                self.builder.package()

        assert not self.builder.packaged


class TestSign:
    def setup_method(self, test_method):
        self.tmpdir = tempfile.mkdtemp()
        self.builder = make_builder(self.tmpdir)
        self.builder.identity = "iPhone Distribution: Example Inc."

    def teardown_method(self, test_method):
        shutil.rmtree(self.tmpdir)

    def test_sign_requires_ipa(self):
        with mock.patch.object(Command, "execute", autospec=True) as execute:
            with pytest.raises(MissingArtifact):
                self.builder.sign()
        execute.assert_not_called()

    def test_sign_requires_identity(self):
        touch(self.builder.ipa_path)
        self.builder.identity = None
        with mock.patch.object(Command, "execute", autospec=True) as execute:
            with pytest.raises(ConfigurationError):
                self.builder.sign()
        execute.assert_not_called()

    def test_sign(self):
        touch(self.builder.ipa_path)
        with mock.patch.object(Command, "execute", autospec=True,
                               side_effect=fake_execute()) as execute:
            self.builder.sign()

        assert executed_commands(execute) == [[
            "codesign", "--force",
            "--sign", "iPhone Distribution: Example Inc.",
            "--resource-rules=%s" % os.path.join(self.builder.app_path, "ResourceRules.plist"),
            "--entitlements", self.builder.entitlements_path,
            self.builder.ipa_path,
        ]]


class TestDeploy:
    def setup_method(self, test_method):
        self.tmpdir = tempfile.mkdtemp()
        self.builder = make_builder(self.tmpdir)
        deploy.register_backend(FakeDeployer)

    def teardown_method(self, test_method):
        deploy._deploy_backends.pop("fake", None)
        shutil.rmtree(self.tmpdir)

    def test_unknown_method_fails_before_any_io(self):
        touch(self.builder.ipa_path)
        with mock.patch("requests.put") as put, \
                mock.patch.object(Command, "execute", autospec=True) as execute, \
                mock.patch("tempfile.mkdtemp") as mkdtemp:
            with pytest.raises(BackendNotFound):
                self.builder.deploy("carrier-pigeon", base_url="https://example.com/")

        put.assert_not_called()
        execute.assert_not_called()
        mkdtemp.assert_not_called()

    def test_deploy_passes_progress_to_callback(self):
        seen = []
        progress = self.builder.deploy("fake", callback=seen.append, channel="beta")

        assert progress == ["Demo-Release-1.2.ipa", "beta"]
        assert seen == progress

    def test_options_override_defaults(self):
        progress = self.builder.deploy("fake", ipa_name="custom.ipa", channel="beta")
        assert progress == ["custom.ipa", "beta"]
