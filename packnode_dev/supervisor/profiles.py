import logging
from typing import Any, List

from .readiness import ReadinessProbe
from .process_utils import ChildSpec

log = logging.getLogger(__name__)

LAUNCH_PROFILES = ("all", "hot")


def get_process_args(process_name: str, settings: Any, electron_executable: str) -> ChildSpec:
    """
    Returns the child definition for a specific logical process.

    :param process_name: 'sync_service', 'electron', 'hot_server' or 'electron_hot'.
    :param settings: The merged settings object.
    :param electron_executable: The Electron command to use for UI processes.
    :raises ValueError: If the process name is unknown.
    """
    project_dir = settings.PROJECT_DIR
    hot_url = f"http://{settings.HOT_RELOAD_HOST}:{settings.HOT_RELOAD_PORT}/health"

    process_definitions = {
        "sync_service": ChildSpec(
            name="sync_service",
            args=[settings.NODE_EXECUTABLE, str(settings.SYNC_SERVICE_SCRIPT)],
            cwd=project_dir,
            readiness=ReadinessProbe.parse(settings.SYNC_SERVICE_READINESS, settings.READINESS_TIMEOUT),
        ),
        "electron": ChildSpec(
            name="electron",
            args=[electron_executable, str(settings.UI_MAIN_SCRIPT)],
            cwd=project_dir,
        ),
        "hot_server": ChildSpec(
            name="hot_server",
            args=[settings.PYTHON_EXECUTABLE, "-m", "packnode_dev.script_entry.hot_server"],
            cwd=project_dir,
            readiness=ReadinessProbe.parse(hot_url, settings.READINESS_TIMEOUT),
            fate_shared=False,
            capture_output=True,
            env={
                "PACKNODE_PROJECT_DIR": str(project_dir),
                "PACKNODE_UI_DIR": str(settings.UI_DIR),
                "PACKNODE_HOT_HOST": settings.HOT_RELOAD_HOST,
                "PACKNODE_HOT_PORT": str(settings.HOT_RELOAD_PORT),
            },
        ),
        "electron_hot": ChildSpec(
            name="electron",
            args=[electron_executable, str(settings.HOT_ENTRY_PATH), settings.HOT_RELOAD_FLAG],
            cwd=project_dir,
        ),
    }

    if process_name in process_definitions:
        return process_definitions[process_name]
    raise ValueError(f"Unknown process name '{process_name}'. No arguments defined.")


def build_launch_profile(profile: str, settings: Any, electron_executable: str) -> List[ChildSpec]:
    """
    Assembles the ordered child list for a launch profile.

    'all' starts the data sync service and then the Electron UI; both share fate.
    'hot' starts the hot-reload server and then the Electron UI in hot-reload
    mode; only the UI's exit ends the run.

    :raises ValueError: If the profile is unknown.
    """
    launch_order = {
        "all": ["sync_service", "electron"],
        "hot": ["hot_server", "electron_hot"],
    }
    if profile not in launch_order:
        raise ValueError(f"Unknown launch profile '{profile}'. Expected one of: {', '.join(LAUNCH_PROFILES)}")
    return [get_process_args(name, settings, electron_executable) for name in launch_order[profile]]
