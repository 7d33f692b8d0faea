import time
import signal
import logging
import threading
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from . import persistence
from .shutdown import stop_children
from .state import StateMachine, SupervisorState
from .process_utils import ChildSpec, launch_process, to_exit_code

log = logging.getLogger(__name__)


class ProcessSupervisor:
    """
    Starts a fixed list of child processes in order and ties their lifetimes together.

    Each child may carry a readiness probe that must pass before the next child
    is started. When a fate-shared child exits, every other child is stopped and
    the run ends with that child's exit code. A stop request (SIGINT, SIGTERM or
    `request_stop`) stops every child and ends the run with code 0.
    """

    def __init__(
        self,
        children: Iterable[ChildSpec],
        poll_interval: float = 0.2,
        shutdown_timeout: float = 5.0,
        state_file: Optional[Path] = None,
    ) -> None:
        self.children: List[ChildSpec] = list(children)
        if not self.children:
            raise ValueError("ProcessSupervisor needs at least one child process.")
        names = [spec.name for spec in self.children]
        if len(set(names)) != len(names):
            raise ValueError(f"Child process names must be unique: {names}")

        self.poll_interval = poll_interval
        self.shutdown_timeout = shutdown_timeout
        self.state_file = state_file

        self.running_procs: Dict[str, subprocess.Popen] = {}
        self.stop_requested = threading.Event()
        self.stop_reason: Optional[str] = None
        self._machine = StateMachine()
        self._exited: Optional[Tuple[str, int]] = None

    @property
    def state(self) -> Optional[SupervisorState]:
        return self._machine.state

    def request_stop(self, reason: str = "stop requested") -> None:
        """Thread-safe request to stop all children and end the run with code 0."""
        if not self.stop_requested.is_set():
            self.stop_reason = reason
            log.info(f"Stop requested: {reason}")
        self.stop_requested.set()

    def handle_signal(self, signum, frame) -> None:
        log.info(f"Received {signal.Signals(signum).name}, shutting down all processes...")
        self.request_stop(signal.Signals(signum).name)

    def install_signal_handlers(self) -> None:
        """Routes SIGINT and SIGTERM to `request_stop`. Must be called from the main thread."""
        signal.signal(signal.SIGINT, self.handle_signal)
        signal.signal(signal.SIGTERM, self.handle_signal)

    def run(self) -> int:
        """
        Runs the full launch, supervise and stop sequence.

        :return: The exit code for the whole run.
        """
        self._machine.transition(SupervisorState.STARTING)
        log.info("=" * 20 + " Launch Starting " + "=" * 20)
        start_time = time.time()
        exit_code = 1
        try:
            self._write_state()
            early_exit = self._start_children()
            if early_exit is not None:
                exit_code = early_exit
            else:
                self._machine.transition(SupervisorState.RUNNING, "all children started")
                self._write_state()
                log.info(f"All processes started in {time.time() - start_time:.2f} seconds.")
                exit_code = self._supervise()
        except KeyboardInterrupt:
            self.request_stop("KeyboardInterrupt")
            exit_code = 0
        finally:
            self._stop()
            log.info(
                f"Launch finished with exit code {exit_code} after "
                f"{time.strftime('%H:%M:%S', time.gmtime(time.time() - start_time))}."
            )
        return exit_code

    def _write_state(self) -> None:
        """Records the supervisor and the children started so far in the launch state file."""
        if self.state_file:
            persistence.write_pid_file(self.state_file, {name: p.pid for name, p in self.running_procs.items()})

    def _check_children(self) -> Optional[Tuple[str, int]]:
        """
        Polls the running children and drops the ones that exited.

        :return: (name, exit code) of the first fate-shared child that exited, or None.
        """
        for spec in self.children:
            popen = self.running_procs.get(spec.name)
            if popen is None:
                continue
            returncode = popen.poll()
            if returncode is None:
                continue

            code = to_exit_code(returncode)
            del self.running_procs[spec.name]
            if spec.fate_shared:
                log.warning(f"Process '{spec.name}' exited with code {code}.")
                return spec.name, code
            log.warning(f"Process '{spec.name}' exited with code {code}. Other processes keep running.")
        return None

    def _should_abort_wait(self) -> bool:
        if self.stop_requested.is_set():
            return True
        exited = self._check_children()
        if exited:
            self._exited = exited
            return True
        return False

    def _start_children(self) -> Optional[int]:
        """
        Starts the children in order, honouring each readiness probe.

        :return: An exit code if startup ended early, None if every child was started.
        """
        for spec in self.children:
            if self.stop_requested.is_set():
                return 0
            try:
                self.running_procs[spec.name] = launch_process(spec)
            except OSError as e:
                self.stop_reason = f"could not start '{spec.name}': {e}"
                return 1
            self._write_state()

            if spec.readiness is None:
                continue

            log.info(f"Waiting for {spec.name}: {spec.readiness.describe()}.")
            ready = spec.readiness.wait(
                lambda: self._should_abort_wait() or spec.name not in self.running_procs,
                self.poll_interval,
            )
            if self._exited:
                name, code = self._exited
                self.stop_reason = f"'{name}' exited with code {code} during startup"
                return code
            if self.stop_requested.is_set():
                return 0
            if spec.name not in self.running_procs:
                log.error(f"'{spec.name}' exited before becoming ready. Continuing startup.")
                continue
            if not ready:
                self.stop_reason = f"'{spec.name}' did not become ready"
                log.critical(f"Startup failed: {self.stop_reason}.")
                return 1
        return None

    def _supervise(self) -> int:
        """Blocks until a fate-shared child exits or a stop is requested."""
        while not self.stop_requested.is_set():
            exited = self._check_children()
            if exited:
                name, code = exited
                self.stop_reason = f"'{name}' exited with code {code}"
                return code
            if not self.running_procs:
                self.stop_reason = "no processes left"
                return 0
            self.stop_requested.wait(self.poll_interval)
        return 0

    def _stop(self) -> None:
        """Stops every remaining child and clears the launch state."""
        self._machine.transition(SupervisorState.STOPPING, self.stop_reason or "")
        remaining = list(self.running_procs.values())
        try:
            if remaining:
                log.info(f"Shutting down {', '.join(self.running_procs)}...")
                stop_children(remaining, self.shutdown_timeout)
        finally:
            self.running_procs.clear()
            if self.state_file:
                persistence.remove_pid_file(self.state_file)
            self._machine.transition(SupervisorState.STOPPED)
