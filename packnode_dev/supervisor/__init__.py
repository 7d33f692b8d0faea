"""
The Supervisor package.
Starts the Electron UI together with its companion processes and ties their lifetimes together.

This package contains the ProcessSupervisor class and its helper modules,
which together handle launching, readiness checks, supervision, the launch
state file and shutdown of every child process.
"""
from .state import SupervisorState
from .readiness import ReadinessProbe
from .process_utils import ChildSpec
from .supervisor import ProcessSupervisor
from .profiles import build_launch_profile

__all__ = ['ProcessSupervisor', 'ChildSpec', 'ReadinessProbe', 'SupervisorState', 'build_launch_profile']
