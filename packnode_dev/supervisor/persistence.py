import os
import json
import psutil
import logging
from pathlib import Path
from typing import Dict, Optional

log = logging.getLogger(__name__)

SUPERVISOR_KEY = "supervisor"


def get_pid_info(state_file: Path) -> Optional[Dict[str, int]]:
    """
    Reads the launch state file from disk and returns its contents.

    A malformed file is removed.

    :param state_file: Path of the launch state file.
    :return: A dictionary of PIDs if the file exists and is valid, else None.
    """
    if not state_file.exists():
        return None
    try:
        with state_file.open("r", encoding="utf-8") as f:
            pids = json.load(f)
    except (json.JSONDecodeError, OSError):
        state_file.unlink(missing_ok=True)
        return None
    if not isinstance(pids, dict) or not all(isinstance(pid, int) for pid in pids.values()):
        state_file.unlink(missing_ok=True)
        return None
    return pids


def write_pid_file(state_file: Path, pids: Dict[str, int]) -> None:
    """
    Atomically writes the supervisor PID and its children's PIDs to the state file.

    :param state_file: Path of the launch state file.
    :param pids: Logical child names mapped to their PIDs.
    """
    pid_dict = {SUPERVISOR_KEY: os.getpid(), **pids}
    temp_pid_path = state_file.with_suffix(".tmp")
    try:
        state_file.parent.mkdir(parents=True, exist_ok=True)
        with temp_pid_path.open("w", encoding="utf-8") as f:
            json.dump(pid_dict, f, indent=4)
        temp_pid_path.replace(state_file)
    except OSError as e:
        log.error(f"Failed to write launch state file: {e}", exc_info=True)
    finally:
        temp_pid_path.unlink(missing_ok=True)


def remove_pid_file(state_file: Path) -> None:
    """Removes the launch state file."""
    state_file.unlink(missing_ok=True)
    log.debug("Cleaned up launch state file.")


def check_if_already_running(state_file: Path) -> bool:
    """
    Checks if a launch profile is already running based on the state file.

    :return: True if a process named in the state file is alive, False otherwise.
    """
    pid_info = get_pid_info(state_file)
    if pid_info and any(psutil.pid_exists(pid) for pid in pid_info.values()):
        log.error(f"A launch profile appears to be running (state file: {state_file}). Use 'stop' first.")
        return True
    return False
