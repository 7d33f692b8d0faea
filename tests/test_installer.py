import sys
import subprocess

import pytest
import requests

from packnode_dev.tools import installer


class _Response:
    def __init__(self, status_code):
        self.status_code = status_code


@pytest.fixture
def npm_calls(monkeypatch):
    """Records npm invocations instead of running them."""
    calls = []

    def fake_run(args, cwd=None, check=False):
        calls.append(args)
        return subprocess.CompletedProcess(args, 0)

    monkeypatch.setattr(installer.shutil, "which", lambda name: None)
    monkeypatch.setattr(installer.subprocess, "run", fake_run)
    return calls


def test_install_runs_steps_in_order(tmp_path, npm_calls, monkeypatch):
    requested = []
    monkeypatch.setattr(installer.requests, "get", lambda url, **kwargs: requested.append(url) or _Response(200))

    installer.install_electron(tmp_path, "38.1.0", "https://registry.npmmirror.com/")

    assert requested == ["https://registry.npmmirror.com/electron/38.1.0"]
    assert npm_calls == [
        ["npm", "config", "set", "registry", "https://registry.npmmirror.com/"],
        ["npm", "cache", "clean", "--force"],
        ["npm", "uninstall", "electron", "--save-dev"],
        ["npm", "install", "electron@38.1.0", "--save-dev", "--force"],
    ]


def test_unavailable_version_aborts_before_npm(tmp_path, npm_calls, monkeypatch):
    monkeypatch.setattr(installer.requests, "get", lambda url, **kwargs: _Response(404))

    with pytest.raises(RuntimeError):
        installer.install_electron(tmp_path, "0.0.0", "https://registry.npmmirror.com")

    assert npm_calls == []


def test_unreachable_registry(monkeypatch):
    def fail(url, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(installer.requests, "get", fail)

    assert installer.verify_registry_version("https://registry.npmmirror.com", "electron", "38.1.0") is False


def test_failing_step_stops_installation(tmp_path, monkeypatch):
    calls = []

    def fake_run(args, cwd=None, check=False):
        calls.append(args)
        if args[1] == "cache":
            raise subprocess.CalledProcessError(1, args)
        return subprocess.CompletedProcess(args, 0)

    monkeypatch.setattr(installer.shutil, "which", lambda name: None)
    monkeypatch.setattr(installer.subprocess, "run", fake_run)

    with pytest.raises(RuntimeError, match="exit code 1"):
        installer.install_electron(tmp_path, "38.1.0", "https://registry.npmmirror.com", verify=False)

    assert [call[1] for call in calls] == ["config", "cache"]


def test_missing_npm(tmp_path, monkeypatch):
    def fake_run(args, cwd=None, check=False):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(installer.shutil, "which", lambda name: None)
    monkeypatch.setattr(installer.subprocess, "run", fake_run)

    with pytest.raises(RuntimeError, match="not found"):
        installer.install_electron(tmp_path, "38.1.0", "https://registry.npmmirror.com", npm="npm-missing", verify=False)


def _local_electron(project_dir):
    bin_dir = project_dir / "node_modules" / ".bin"
    bin_dir.mkdir(parents=True)
    electron = bin_dir / ("electron.cmd" if sys.platform == "win32" else "electron")
    electron.write_text("", encoding="utf-8")
    return electron


def test_resolve_prefers_local_install(tmp_path):
    electron = _local_electron(tmp_path)

    assert installer.resolve_electron_executable(tmp_path) == str(electron)


def test_resolve_falls_back_to_path(tmp_path, monkeypatch):
    monkeypatch.setattr(installer.shutil, "which", lambda name: None)

    assert installer.resolve_electron_executable(tmp_path) == "electron"


def test_check_installation(tmp_path):
    _local_electron(tmp_path)
    main_script = tmp_path / "electron-main.js"

    assert not all(installer.check_installation(tmp_path, main_script).values())

    main_script.write_text("", encoding="utf-8")
    assert all(installer.check_installation(tmp_path, main_script).values())
