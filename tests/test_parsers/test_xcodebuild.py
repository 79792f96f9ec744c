# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import os
import shutil
import tempfile

from app_build_service.parsers import XcodebuildParser
from tests import read_staged_lines


class TestXcodebuildParser:
    def setup_method(self, test_method):
        self.tmpdir = tempfile.mkdtemp()
        self.filename = os.path.join(self.tmpdir, "Release-iphoneos", "xcodebuild-output.txt")

    def teardown_method(self, test_method):
        shutil.rmtree(self.tmpdir)

    def parse(self, staged_file):
        parser = XcodebuildParser(self.filename)
        for line in read_staged_lines(staged_file):
            parser.feed(line)
        parser.flush()
        return parser

    def test_successful_build(self):
        parser = self.parse("xcodebuild-success.txt")

        assert parser.action == "build"
        assert parser.status == "succeeded"
        assert parser.succeeded
        assert parser.errors == []
        assert parser.warnings == [(
            "/Users/dev/Demo/Demo/AppDelegate.m:20:9",
            "unused variable 'foo' [-Wunused-variable]")]

    def test_steps(self):
        parser = self.parse("xcodebuild-success.txt")
        names = [name for name, _ in parser.steps]

        assert "ProcessInfoPlistFile" in names
        assert "CompileC" in names
        assert "Ld" in names
        # Echoed shell commands are not steps
        assert "cd" not in names
        assert "setenv" not in names

    def test_failed_build(self):
        parser = self.parse("xcodebuild-failure.txt")

        assert parser.status == "failed"
        assert not parser.succeeded
        assert parser.errors == [
            ("/Users/dev/Demo/Demo/AppDelegate.m:25:5", "use of undeclared identifier 'bar'"),
            ("clang", "linker command failed with exit code 1 (use -v to see invocation)"),
        ]

    def test_log_file_holds_all_lines(self):
        lines = read_staged_lines("xcodebuild-failure.txt")
        self.parse("xcodebuild-failure.txt")

        with open(self.filename) as f:
            assert f.read().splitlines() == lines

    def test_diagnostics_are_printed(self, capsys):
        self.parse("xcodebuild-failure.txt")
        out = capsys.readouterr().out

        assert "AppDelegate.m:25:5: error: use of undeclared identifier 'bar'" in out
        assert "BUILD FAILED" in out

    def test_suppressed_warnings(self, capsys):
        parser = XcodebuildParser(self.filename)
        parser.suppress_warnings = True
        for line in read_staged_lines("xcodebuild-success.txt"):
            parser.feed(line)
        parser.flush()

        assert len(parser.warnings) == 1
        assert "warning:" not in capsys.readouterr().out

    def test_non_ascii_diagnostic(self):
        line = "/Users/dev/Demo/Demo/AppDelegate.m:1:2: error: use of undeclared identifier ‘foo’"
        parser = XcodebuildParser(self.filename)
        parser.feed(line)
        parser.flush()

        assert parser.errors == [(
            "/Users/dev/Demo/Demo/AppDelegate.m:1:2",
            "use of undeclared identifier ‘foo’")]
        with open(self.filename, "rb") as f:
            assert f.read() == (line + "\n").encode("utf-8")

    def test_no_result_line(self):
        parser = XcodebuildParser(self.filename)
        parser.feed("Check dependencies")
        parser.flush()

        assert parser.status is None
        assert not parser.succeeded

    def test_flush_is_idempotent(self):
        parser = XcodebuildParser(self.filename)
        parser.flush()
        parser.flush()

        assert os.path.exists(self.filename)
        with open(self.filename) as f:
            assert f.read() == ""

    def test_lines_after_flush_are_still_classified(self):
        parser = XcodebuildParser(self.filename)
        parser.flush()
        parser.feed("** BUILD SUCCEEDED **")

        assert parser.status == "succeeded"
