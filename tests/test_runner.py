"""
Unit tests for running generated tests (subprocess mocked).
"""
import subprocess
import sys
from types import SimpleNamespace

import pytest

from scenariogen.runner import runner as runner_module
from scenariogen.runner.runner import build_command, run_generated_test
from scenariogen.utils.errors import ConfigError


def test_build_command_python():
    assert build_command("generated/test_x.py", "python") == [
        sys.executable, "-m", "pytest", "-q", "generated/test_x.py",
    ]


def test_build_command_javascript(tmp_path):
    cmd = build_command(tmp_path / "test_x.js", "javascript")
    assert cmd[0] == "node"
    assert "await m.test()" in cmd[-1]
    assert (tmp_path / "test_x.js").resolve().as_uri() in cmd[-1]


def test_build_command_unknown_language():
    with pytest.raises(ConfigError):
        build_command("x.rb", "ruby")


def test_run_passing_test(monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return SimpleNamespace(returncode=0, stdout="1 passed", stderr="")

    monkeypatch.setattr(runner_module.subprocess, "run", fake_run)
    result = run_generated_test("generated/test_x.py")

    assert result.ok
    assert result.returncode == 0
    assert result.stdout == "1 passed"
    assert calls[0][1]["capture_output"] is True


def test_run_failing_test(monkeypatch):
    monkeypatch.setattr(
        runner_module.subprocess, "run",
        lambda cmd, **kw: SimpleNamespace(returncode=1, stdout="", stderr="AssertionError"),
    )
    result = run_generated_test("generated/test_x.py")
    assert not result.ok
    assert result.returncode == 1
    assert "AssertionError" in result.stderr


def test_run_timeout(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(runner_module.subprocess, "run", fake_run)
    result = run_generated_test("generated/test_x.py", timeout_sec=5)
    assert not result.ok
    assert result.returncode is None
    assert "Timed out" in result.stderr


def test_run_missing_interpreter(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError("node not found")

    monkeypatch.setattr(runner_module.subprocess, "run", fake_run)
    result = run_generated_test("generated/test_x.js", language="javascript")
    assert not result.ok
    assert "node not found" in result.stderr


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
