#!/usr/bin/env python3
"""
Tests for the environment check (docsbook/check_env.py)

Run: pytest tests/test_check_env.py -v
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from docsbook import check_env
from docsbook.check_env import (
    check_import,
    check_python_version,
    get_installed_version,
    main,
)


class TestChecks:
    def test_old_python_flagged(self):
        issues = check_python_version((3, 9, 18))
        assert len(issues) == 1
        assert "3.10" in issues[0]

    def test_current_python_ok(self):
        assert check_python_version((3, 12, 1)) == []

    def test_import_present(self):
        assert check_import("json", "json") == (True, None)

    def test_import_missing(self):
        ok, msg = check_import("docsbook_no_such_module", "no-such-dist")
        assert not ok
        assert "no-such-dist" in msg

    def test_unknown_distribution_version(self):
        assert get_installed_version("docsbook-no-such-dist") is None


class TestMain:
    def test_pass_without_browser(self, capsys):
        main(["--skip-browser"])
        assert "ENV CHECK: PASS" in capsys.readouterr().out

    def test_missing_dependency_exits_2(self, monkeypatch, capsys):
        monkeypatch.setattr(check_env, "REQUIRED", check_env.REQUIRED + [("docsbook_no_such_module", "ghost")])
        with pytest.raises(SystemExit) as exc:
            main(["--skip-browser"])
        assert exc.value.code == 2
        out = capsys.readouterr().out
        assert "ENV CHECK: FAIL" in out
        assert "ghost: NOT INSTALLED" in out

    def test_browser_warning_reported(self, monkeypatch, capsys):
        monkeypatch.setattr(check_env, "check_chromium", lambda: "Chromium not available")
        main([])
        assert "PASS (WARNINGS)" in capsys.readouterr().out
