import logging
from enum import Enum

log = logging.getLogger(__name__)


class SupervisorState(Enum):
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


ALLOWED_TRANSITIONS = {
    None: {SupervisorState.STARTING},
    SupervisorState.STARTING: {SupervisorState.RUNNING, SupervisorState.STOPPING},
    SupervisorState.RUNNING: {SupervisorState.STOPPING},
    SupervisorState.STOPPING: {SupervisorState.STOPPED},
    SupervisorState.STOPPED: set(),
}


class StateMachine:
    """Tracks the supervisor lifecycle and rejects transitions that skip a step."""

    def __init__(self) -> None:
        self.state = None

    def transition(self, new_state: SupervisorState, reason: str = "") -> None:
        """
        Moves to `new_state`.

        :raises RuntimeError: If the transition is not allowed from the current state.
        """
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            current = self.state.value if self.state else "new"
            raise RuntimeError(f"Illegal supervisor transition: {current} -> {new_state.value}")
        suffix = f" ({reason})" if reason else ""
        log.debug(f"Supervisor state: {self.state.value if self.state else 'new'} -> {new_state.value}{suffix}")
        self.state = new_state

    @property
    def is_active(self) -> bool:
        return self.state in (SupervisorState.STARTING, SupervisorState.RUNNING)
