import os
import sys
import logging
import threading
import subprocess
from pathlib import Path
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .readiness import ReadinessProbe

log = logging.getLogger(__name__)


@dataclass
class ChildSpec:
    """Everything the supervisor needs to know to start one child process."""

    name: str
    args: List[str]
    cwd: Path
    readiness: Optional[ReadinessProbe] = None
    fate_shared: bool = True
    capture_output: bool = False
    env: Optional[Dict[str, str]] = None


#* --- Process Creation ---
def _get_popen_creation_flags() -> Dict[str, Any]:
    """Returns platform-specific creation flags for subprocess.Popen."""
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    # Own process group so a terminal Ctrl+C reaches only the supervisor, which then stops the children.
    return {"start_new_session": True}


def _read_pipe(pipe, process_name: str, level: int) -> None:
    """Target function for reader threads. Reads and logs lines from a subprocess pipe."""
    proc_logger = logging.getLogger(f"proc.{process_name}")
    try:
        for line_bytes in iter(pipe.readline, b""):
            line = line_bytes.decode("utf-8", errors="replace").rstrip()
            if not line:
                continue
            proc_logger.log(level, line)
    except (OSError, ValueError) as e:
        proc_logger.debug(f"Pipe reader for {process_name} stream exited: {e}")
    finally:
        pipe.close()


def log_process_output(process: subprocess.Popen, name: str) -> None:
    """Starts background threads to consume and log a process's stdout/stderr."""
    if process.stdout:
        threading.Thread(
            target=_read_pipe, args=(process.stdout, name, logging.INFO),
            daemon=True, name=f"{name}-stdout"
        ).start()
    if process.stderr:
        threading.Thread(
            target=_read_pipe, args=(process.stderr, name, logging.ERROR),
            daemon=True, name=f"{name}-stderr"
        ).start()


def launch_process(spec: ChildSpec) -> subprocess.Popen:
    """
    Launches a single child process.

    :param spec: The child definition.
    :return: The running Popen object.
    :raises OSError: If the executable cannot be started.
    """
    log.info(f"Starting process: {spec.name}...")
    log.debug(f"{spec.name} command: {spec.args} (cwd: {spec.cwd})")
    popen_kwargs = _get_popen_creation_flags()
    if spec.capture_output:
        popen_kwargs.update(stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    env = None
    if spec.env:
        env = dict(os.environ)
        env.update(spec.env)

    try:
        p = subprocess.Popen(spec.args, stdin=subprocess.DEVNULL, cwd=str(Path(spec.cwd).resolve()), env=env, **popen_kwargs)
    except OSError as e:
        log.critical(f"Failed to start process '{spec.name}': {e}")
        raise

    if spec.capture_output:
        log_process_output(p, spec.name)
    log.info(f"{spec.name} started with PID: {p.pid}")
    return p


def to_exit_code(returncode: int) -> int:
    """Maps a Popen return code to a shell-style exit code (signal S becomes 128 + S)."""
    if returncode < 0:
        return 128 - returncode
    return returncode
