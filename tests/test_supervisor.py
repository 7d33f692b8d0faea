import os
import sys
import time
import signal
import textwrap
import threading
import subprocess
from pathlib import Path

import psutil
import pytest

from packnode_dev.supervisor import ProcessSupervisor, ReadinessProbe, SupervisorState, persistence
import packnode_dev.supervisor.supervisor as supervisor_module
from packnode_dev.supervisor.process_utils import to_exit_code
from tests.conftest import find_free_port

SLEEP_FOREVER = "import time; time.sleep(60)"


def _supervisor(children, **kwargs):
    kwargs.setdefault("poll_interval", 0.05)
    kwargs.setdefault("shutdown_timeout", 2)
    return ProcessSupervisor(children, **kwargs)


def _write_pid_then_sleep(pid_path):
    return f"import os, time\nopen({str(pid_path)!r}, 'w').write(str(os.getpid()))\ntime.sleep(60)"


def test_service_exit_during_startup_wait(python_child, tmp_path):
    marker = tmp_path / "ui_started"
    service = python_child("service", "import sys; sys.exit(3)", readiness=ReadinessProbe.parse("delay:5"))
    ui = python_child("ui", f"open({str(marker)!r}, 'w').close()")
    supervisor = _supervisor([service, ui])

    start = time.monotonic()
    assert supervisor.run() == 3
    assert time.monotonic() - start < 4
    assert not marker.exists()
    assert supervisor.state is SupervisorState.STOPPED


def test_ui_exit_stops_service(python_child, tmp_path):
    pid_path = tmp_path / "service.pid"
    service = python_child("service", _write_pid_then_sleep(pid_path), readiness=ReadinessProbe.parse("delay:1"))
    ui = python_child("ui", "import sys; sys.exit(4)")

    assert _supervisor([service, ui]).run() == 4
    service_pid = int(pid_path.read_text())
    assert not psutil.pid_exists(service_pid)


def test_service_exit_while_running_stops_ui(python_child, tmp_path):
    pid_path = tmp_path / "ui.pid"
    service = python_child("service", "import sys, time; time.sleep(1); sys.exit(5)", readiness=ReadinessProbe.parse("delay:0.1"))
    ui = python_child("ui", _write_pid_then_sleep(pid_path))

    start = time.monotonic()
    assert _supervisor([service, ui]).run() == 5
    assert time.monotonic() - start < 10
    assert not psutil.pid_exists(int(pid_path.read_text()))


def test_stop_request_during_startup_wait(python_child, tmp_path):
    marker = tmp_path / "ui_started"
    service = python_child("service", SLEEP_FOREVER, readiness=ReadinessProbe.parse("delay:10"))
    ui = python_child("ui", f"open({str(marker)!r}, 'w').close()")
    supervisor = _supervisor([service, ui])
    threading.Timer(0.3, supervisor.request_stop).start()

    start = time.monotonic()
    assert supervisor.run() == 0
    assert time.monotonic() - start < 5
    assert not marker.exists()
    assert supervisor.stop_reason == "stop requested"
    assert supervisor.running_procs == {}


def test_sigint_stops_both_children(python_child, tmp_path):
    pid_path = tmp_path / "ui.pid"
    service = python_child("service", SLEEP_FOREVER, readiness=ReadinessProbe.parse("delay:0.1"))
    ui = python_child("ui", _write_pid_then_sleep(pid_path))
    supervisor = _supervisor([service, ui])
    threading.Timer(1.0, supervisor.handle_signal, args=(signal.SIGINT, None)).start()

    assert supervisor.run() == 0
    assert supervisor.stop_reason == "SIGINT"
    assert not psutil.pid_exists(int(pid_path.read_text()))


def test_non_fate_shared_exit_does_not_end_run(python_child):
    helper = python_child("helper", "import sys; sys.exit(7)", fate_shared=False)
    ui = python_child("ui", "import sys, time; time.sleep(0.8); sys.exit(9)")

    assert _supervisor([helper, ui]).run() == 9


def test_non_fate_shared_exit_before_ready_continues_startup(python_child):
    helper = python_child("helper", "import sys; sys.exit(7)", fate_shared=False, readiness=ReadinessProbe.parse("delay:5"))
    ui = python_child("ui", "import sys; sys.exit(6)")

    start = time.monotonic()
    assert _supervisor([helper, ui]).run() == 6
    assert time.monotonic() - start < 4


def test_spawn_failure_stops_started_children(python_child, tmp_path):
    pid_path = tmp_path / "service.pid"
    service = python_child("service", _write_pid_then_sleep(pid_path), readiness=ReadinessProbe.parse("delay:1"))
    ui = python_child("ui", "")
    ui.args = [str(tmp_path / "no-such-electron")]
    supervisor = _supervisor([service, ui])

    assert supervisor.run() == 1
    assert "could not start 'ui'" in supervisor.stop_reason
    assert not psutil.pid_exists(int(pid_path.read_text()))


def test_readiness_timeout_fails_startup(python_child, tmp_path):
    marker = tmp_path / "ui_started"
    probe = ReadinessProbe.parse(f"port:127.0.0.1:{find_free_port()}", timeout=0.5)
    service = python_child("service", SLEEP_FOREVER, readiness=probe)
    ui = python_child("ui", f"open({str(marker)!r}, 'w').close()")

    assert _supervisor([service, ui]).run() == 1
    assert not marker.exists()


def test_state_file_exists_only_while_running(python_child, tmp_path):
    state_file = tmp_path / "state" / "launcher.pid"
    code = (
        "import os, sys, time\n"
        "for _ in range(100):\n"
        f"    if os.path.exists({str(state_file)!r}):\n"
        "        sys.exit(0)\n"
        "    time.sleep(0.05)\n"
        "sys.exit(1)\n"
    )
    ui = python_child("ui", code)

    assert _supervisor([ui], state_file=state_file).run() == 0
    assert not state_file.exists()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_child_killed_by_signal_maps_to_shell_code(python_child):
    ui = python_child("ui", "import os, signal; os.kill(os.getpid(), signal.SIGTERM)")

    assert _supervisor([ui]).run() == 128 + signal.SIGTERM


def test_to_exit_code():
    assert to_exit_code(0) == 0
    assert to_exit_code(4) == 4
    assert to_exit_code(-2) == 130


def test_rejects_empty_or_duplicate_children(python_child):
    with pytest.raises(ValueError):
        ProcessSupervisor([])
    with pytest.raises(ValueError):
        ProcessSupervisor([python_child("a", "pass"), python_child("a", "pass")])


def test_state_file_written_during_startup_wait(python_child, tmp_path):
    state_file = tmp_path / "state" / "launcher.pid"
    service = python_child("service", SLEEP_FOREVER, readiness=ReadinessProbe.parse("delay:10"))
    ui = python_child("ui", "pass")
    supervisor = _supervisor([service, ui], state_file=state_file)
    exit_codes = []
    runner = threading.Thread(target=lambda: exit_codes.append(supervisor.run()))
    runner.start()
    try:
        pids = None
        deadline = time.monotonic() + 5
        while time.monotonic() < deadline:
            pids = persistence.get_pid_info(state_file)
            if pids and "service" in pids:
                break
            time.sleep(0.05)

        assert supervisor.state is SupervisorState.STARTING
        assert pids[persistence.SUPERVISOR_KEY] == os.getpid()
        assert psutil.pid_exists(pids["service"])
        assert persistence.check_if_already_running(state_file) is True
    finally:
        supervisor.request_stop()
        runner.join(timeout=10)

    assert exit_codes == [0]
    assert not state_file.exists()


def test_cleanup_runs_even_if_stopping_children_fails(python_child, tmp_path, monkeypatch):
    state_file = tmp_path / "launcher.pid"
    real_stop_children = supervisor_module.stop_children

    def stop_then_fail(popens, timeout):
        real_stop_children(popens, timeout)
        raise TypeError("shutdown failed")

    monkeypatch.setattr(supervisor_module, "stop_children", stop_then_fail)
    supervisor = _supervisor([python_child("ui", SLEEP_FOREVER)], state_file=state_file)
    threading.Timer(0.5, supervisor.request_stop).start()

    with pytest.raises(TypeError):
        supervisor.run()

    assert supervisor.state is SupervisorState.STOPPED
    assert supervisor.running_procs == {}
    assert not state_file.exists()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_real_sigint_during_startup_wait(tmp_path):
    pid_path = tmp_path / "service.pid"
    marker = tmp_path / "ui_started"
    service_code = _write_pid_then_sleep(pid_path)
    ui_code = f"open({str(marker)!r}, 'w').close()"
    script = textwrap.dedent(f"""
        import sys
        from packnode_dev.supervisor import ChildSpec, ProcessSupervisor, ReadinessProbe

        service = ChildSpec("service", [sys.executable, "-c", {service_code!r}], {str(tmp_path)!r},
                            readiness=ReadinessProbe.parse("delay:10"))
        ui = ChildSpec("ui", [sys.executable, "-c", {ui_code!r}], {str(tmp_path)!r})
        supervisor = ProcessSupervisor([service, ui], poll_interval=0.05, shutdown_timeout=2)
        supervisor.install_signal_handlers()
        sys.exit(supervisor.run())
    """)
    env = dict(os.environ, PYTHONPATH=str(Path(__file__).resolve().parents[1]))
    proc = subprocess.Popen([sys.executable, "-c", script], cwd=str(tmp_path), env=env)
    try:
        deadline = time.monotonic() + 10
        while not pid_path.exists() or not pid_path.read_text():
            assert time.monotonic() < deadline, "service never started"
            time.sleep(0.05)

        proc.send_signal(signal.SIGINT)
        assert proc.wait(timeout=10) == 0
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()

    assert not marker.exists()
    assert not psutil.pid_exists(int(pid_path.read_text()))
