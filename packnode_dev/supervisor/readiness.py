import time
import socket
import logging
import requests
from typing import Callable, Optional

log = logging.getLogger(__name__)

PROBE_KINDS = ("none", "delay", "port", "http")


class ReadinessProbe:
    """
    A condition that must hold before the supervisor starts the next child.

    Probes are written as short strings in the configuration:
    'none', 'delay:<seconds>', 'port:<host>:<port>' or an http(s) URL.
    """

    def __init__(self, kind: str, target: str = "", timeout: float = 30.0) -> None:
        if kind not in PROBE_KINDS:
            raise ValueError(f"Unknown readiness probe kind '{kind}'. Expected one of: {', '.join(PROBE_KINDS)}")
        self.kind = kind
        self.target = target
        self.timeout = timeout

    @classmethod
    def parse(cls, spec: str, timeout: float = 30.0) -> "ReadinessProbe":
        """
        Builds a probe from its configuration string.

        :param spec: The probe description, e.g. 'delay:3' or 'http://127.0.0.1:3001/health'.
        :param timeout: How long port and http probes keep trying.
        :raises ValueError: If the description cannot be understood.
        """
        spec = (spec or "none").strip()
        if spec.lower() == "none":
            return cls("none", timeout=timeout)
        if spec.startswith(("http://", "https://")):
            return cls("http", spec, timeout)

        kind, _, target = spec.partition(":")
        kind = kind.lower()
        if kind == "delay":
            try:
                seconds = float(target)
            except ValueError:
                raise ValueError(f"Invalid delay in readiness probe '{spec}'.") from None
            if seconds < 0:
                raise ValueError(f"Negative delay in readiness probe '{spec}'.")
            return cls("delay", target, timeout)
        if kind == "port":
            host, _, port = target.rpartition(":")
            if not host or not port.isdigit():
                raise ValueError(f"Readiness probe '{spec}' must look like 'port:<host>:<port>'.")
            return cls("port", target, timeout)
        raise ValueError(f"Unknown readiness probe '{spec}'.")

    def __repr__(self) -> str:
        return f"ReadinessProbe({self.kind!r}, {self.target!r}, timeout={self.timeout})"

    def describe(self) -> str:
        if self.kind == "none":
            return "no readiness check"
        if self.kind == "delay":
            return f"fixed delay of {float(self.target):g}s"
        return f"{self.kind} {self.target}"

    def wait(self, should_abort: Optional[Callable[[], bool]] = None, poll_interval: float = 0.2) -> bool:
        """
        Blocks until the probe succeeds, it times out, or `should_abort` returns True.

        :param should_abort: Called between attempts; returning True ends the wait early.
        :param poll_interval: Seconds between attempts.
        :return: True if the target is ready, False on timeout or abort.
        """
        should_abort = should_abort or (lambda: False)
        if self.kind == "none":
            return not should_abort()

        if self.kind == "delay":
            deadline = time.monotonic() + float(self.target)
            while time.monotonic() < deadline:
                if should_abort():
                    return False
                time.sleep(min(poll_interval, max(deadline - time.monotonic(), 0)))
            return not should_abort()

        check = self._check_port if self.kind == "port" else self._check_http
        log.info(f"Waiting for {self.kind} readiness at {self.target}...")
        start_time = time.monotonic()
        while time.monotonic() - start_time < self.timeout:
            if should_abort():
                return False
            if check():
                log.info(f"{self.target} is up.")
                return True
            time.sleep(poll_interval)
        log.error(f"{self.target} did not become ready after {self.timeout} seconds.")
        return False

    def _check_port(self) -> bool:
        host, _, port = self.target.rpartition(":")
        try:
            with socket.create_connection((host, int(port)), timeout=1):
                return True
        except OSError:
            return False

    def _check_http(self) -> bool:
        try:
            response = requests.get(self.target, timeout=1)
        except requests.RequestException:
            return False
        return response.status_code < 500
