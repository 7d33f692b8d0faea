import psutil
import logging
import subprocess
from typing import Iterable, List, Set

log = logging.getLogger(__name__)


def identify_processes_to_stop(popens: Iterable[subprocess.Popen]) -> Set[psutil.Process]:
    """
    Identifies all child processes, and their descendants, that need to be stopped.

    :param popens: The Popen objects of the children still being supervised.
    :return: A set of psutil.Process objects to be stopped.
    """
    parent_procs: Set[psutil.Process] = set()
    for popen in popens:
        if popen.poll() is not None:
            continue
        try:
            parent_procs.add(psutil.Process(popen.pid))
        except psutil.NoSuchProcess:
            continue

    all_procs_to_stop: Set[psutil.Process] = set(parent_procs)
    for proc in parent_procs:
        try:
            all_procs_to_stop.update(proc.children(recursive=True))
        except psutil.NoSuchProcess:
            log.debug(f"Process {proc.pid} no longer exists, skipping children retrieval.")
            continue
    return all_procs_to_stop


def _terminate_processes(processes: Iterable[psutil.Process]) -> None:
    """Sends SIGTERM to all processes."""
    for proc in processes:
        try:
            log.debug(f"Sending SIGTERM to {proc.name()} (PID {proc.pid})")
            proc.terminate()
        except psutil.NoSuchProcess:
            log.debug(f"Process {proc.pid} no longer exists, skipping termination.")
            continue


def _forceful_kill(processes: List[psutil.Process]) -> None:
    """Forcefully kills processes that didn't terminate gracefully."""
    if not processes:
        return

    log.warning(f"{len(processes)} processes did not terminate gracefully. Forcing shutdown...")
    for proc in processes:
        try:
            log.warning(f"Killing stubborn process {proc.name()} (PID {proc.pid}).")
            proc.kill()
        except psutil.NoSuchProcess:
            continue


def graceful_shutdown_sequence(processes: Set[psutil.Process], timeout: float) -> None:
    """
    Runs the full graceful shutdown sequence for the given processes.

    :param processes: A set of psutil.Process objects to shut down.
    :param timeout: Seconds to wait after SIGTERM before killing.
    """
    _terminate_processes(processes)

    procs_list = list(processes)
    try:
        _, alive = psutil.wait_procs(procs_list, timeout=timeout)
    except psutil.NoSuchProcess:
        alive = []

    _forceful_kill(alive)


def stop_children(popens: List[subprocess.Popen], timeout: float) -> None:
    """
    Stops the given children and their process trees, then reaps the children.

    :param popens: Popen objects of the children to stop.
    :param timeout: Seconds to wait for a graceful exit before killing.
    """
    procs = identify_processes_to_stop(popens)
    if procs:
        log.info(f"Stopping {len(procs)} process(es)...")
        graceful_shutdown_sequence(procs, timeout)

    for popen in popens:
        try:
            popen.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            log.error(f"Process {popen.pid} is still running after shutdown.")
