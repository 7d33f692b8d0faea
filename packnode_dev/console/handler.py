import sys
import json
import signal
import psutil
import logging
from pathlib import Path
from typing import List

from packnode_dev.config import coerce_override, effective_settings as config
from packnode_dev.supervisor import ProcessSupervisor, build_launch_profile
from packnode_dev.supervisor import persistence
from packnode_dev.tools import (
    DirectoryStatus, MarkerNotFoundError, check_installation, ensure_directories,
    install_electron, patch_html, resolve_electron_executable, sniff_xml_files,
)

log = logging.getLogger(__name__)


def handle_launch_command(profile: str) -> int:
    """
    Runs a launch profile in the foreground until it ends.

    :param profile: 'all' or 'hot'.
    :return: The exit code of the run.
    """
    state_file = config.STATE_FILE_PATH
    if persistence.check_if_already_running(state_file):
        return 1

    electron = config.ELECTRON_EXECUTABLE or resolve_electron_executable(config.PROJECT_DIR)
    try:
        children = build_launch_profile(profile, config, electron)
    except ValueError as e:
        log.error(f"Invalid launch configuration: {e}")
        return 1

    supervisor = ProcessSupervisor(
        children,
        poll_interval=config.SUPERVISOR_POLL_INTERVAL,
        shutdown_timeout=config.GRACEFUL_SHUTDOWN_TIMEOUT,
        state_file=state_file,
    )
    supervisor.install_signal_handlers()
    return supervisor.run()


def handle_hot_server_command() -> int:
    """Runs the hot-reload server in the foreground."""
    from packnode_dev.hotreload import create_app
    from packnode_dev.hotreload.serve import run_server

    app = create_app(config.UI_DIR, config.HOT_RELOAD_WATCH_PATHS, config.WATCH_DEBOUNCE_SECONDS)
    run_server(app, config.HOT_RELOAD_HOST, config.HOT_RELOAD_PORT)
    return 0


def handle_patch_html_command(args: List[str]) -> int:
    """Handles 'patch-html [source] [output]'."""
    source = Path(args[0]) if args else config.HTML_SOURCE_PATH
    output = Path(args[1]) if len(args) > 1 else config.HTML_OUTPUT_PATH
    try:
        fragment = config.HOT_RELOAD_SCRIPT_FRAGMENT.format(host=config.HOT_RELOAD_HOST, port=config.HOT_RELOAD_PORT)
        patch_html(source, output, fragment, config.HTML_MARKER)
    except MarkerNotFoundError as e:
        print(f"{e} Nothing was written.")
        return 1
    except OSError as e:
        log.error(f"Failed to patch '{source}': {e}")
        return 1
    print(f"Created {output}")
    return 0


def handle_create_dirs_command(args: List[str]) -> int:
    """Handles 'create-dirs [dir ...]'. Per-directory failures are reported, not fatal."""
    directories = [Path(arg) for arg in args] if args else config.BACKUP_DIRECTORIES
    results = ensure_directories(directories)
    for path, status in results.items():
        marker = "FAILED" if status is DirectoryStatus.FAILED else status.value
        print(f"  {str(path):<50} {marker}")
    return 0


def handle_sniff_xml_command(args: List[str]) -> int:
    """Handles 'sniff-xml [file ...]'. Always succeeds; findings are logged."""
    files = [Path(arg) for arg in args] if args else config.XML_FILES
    sniff_xml_files(files)
    return 0


def handle_install_command(args: List[str]) -> int:
    """Handles 'install-electron [--no-verify]'."""
    try:
        install_electron(
            config.PROJECT_DIR,
            version=config.ELECTRON_VERSION,
            registry=config.NPM_REGISTRY,
            npm=config.NPM_EXECUTABLE,
            verify="--no-verify" not in args,
            timeout=config.REGISTRY_CHECK_TIMEOUT,
        )
    except RuntimeError as e:
        log.error(f"Error installing Electron: {e}")
        return 1
    return 0


def handle_check_command() -> int:
    """Handles 'check-electron'."""
    checks = check_installation(config.PROJECT_DIR, config.UI_MAIN_SCRIPT)
    return 0 if all(checks.values()) else 1


def display_status() -> int:
    """Checks and displays the current status of the launched processes, including resource usage."""
    pids = persistence.get_pid_info(config.STATE_FILE_PATH)
    if not pids:
        print("\nNothing is running (no launch state file found).\n")
        return 0

    print("\n--- Launch Status ---")
    all_stale = True
    for name, pid in pids.items():
        try:
            p = psutil.Process(pid)
            cpu = p.cpu_percent(interval=0.1)
            mem = p.memory_info().rss
            print(f"  - {name:<15} : PID {pid:<8} | Status: {p.status().upper()} | CPU: {cpu:.1f}% | MEM: {mem/1024/1024:.1f} MB")
            all_stale = False
        except psutil.NoSuchProcess:
            print(f"  - {name:<15} : PID {pid:<8} | Status: STOPPED (Stale PID)")
        except psutil.AccessDenied:
            print(f"  - {name:<15} : PID {pid:<8} | Status: RUNNING (Access Denied)")
            all_stale = False

    if all_stale:
        print("\nWARNING: All processes are stopped but a stale launch state file exists.")
        print("Run 'stop' to clean it up.")
    print("-" * 21 + "\n")
    return 0


def handle_stop_command() -> int:
    """Asks the running supervisor to shut down and waits for it to exit."""
    state_file = config.STATE_FILE_PATH
    pids = persistence.get_pid_info(state_file)
    supervisor_pid = (pids or {}).get(persistence.SUPERVISOR_KEY)
    if not supervisor_pid or not psutil.pid_exists(supervisor_pid):
        log.info("No running supervisor found.")
        persistence.remove_pid_file(state_file)
        return 0

    try:
        proc = psutil.Process(supervisor_pid)
        # The supervisor treats SIGINT and SIGTERM alike; Windows only offers terminate().
        if sys.platform == "win32":
            proc.terminate()
        else:
            proc.send_signal(signal.SIGINT)
        log.info(f"Stop signal sent to supervisor (PID {supervisor_pid}). Waiting for it to exit...")
        proc.wait(timeout=config.GRACEFUL_SHUTDOWN_TIMEOUT * 2)
    except psutil.NoSuchProcess:
        pass
    except psutil.TimeoutExpired:
        log.error(f"Supervisor (PID {supervisor_pid}) did not exit in time.")
        return 1
    except psutil.AccessDenied as e:
        log.error(f"Not allowed to signal the supervisor: {e}")
        return 1

    log.info("Supervisor stopped.")
    return 0


def show_config(args: List[str] = ()) -> int:
    """
    Handles 'config [show]' and 'config set <KEY> <VALUE>'.

    'set' persists a modifiable setting to overrides.json. The value is parsed
    as JSON when possible and must convert to the type of the setting's default.
    """
    args = list(args)
    if args and args[0] == "set":
        if len(args) != 3:
            print("Usage: config set <KEY> <VALUE>")
            return 1
        key, raw_value = args[1], args[2]
        if key not in config.MODIFIABLE_SETTINGS:
            print(f"'{key}' is not a modifiable setting. Modifiable: {', '.join(sorted(config.MODIFIABLE_SETTINGS))}")
            return 1
        try:
            value = json.loads(raw_value)
        except json.JSONDecodeError:
            value = raw_value
        try:
            value = coerce_override(config.get(key), value)
        except ValueError as e:
            print(f"Invalid value for {key}: {e}")
            return 1
        current = {}
        if config.OVERRIDES_JSON_PATH.exists():
            try:
                with config.OVERRIDES_JSON_PATH.open("r", encoding="utf-8") as f:
                    current = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                log.warning(f"Replacing unreadable overrides file: {e}")
        if not isinstance(current, dict):
            current = {}
        current[key] = value
        config.save_overrides(current)
        print(f"{key} = {value} (takes effect on the next command)")
        return 0
    if args and args[0] != "show":
        print(f"Unknown config action '{args[0]}'. Use 'show' or 'set'.")
        return 1

    print("\n--- Recognized Paths ---")
    for key, purpose in config.RECOGNIZED_PATHS.items():
        print(f"  {key} = {config.get(key)}")
        print(f"      {purpose}")

    print("\n--- Modifiable Settings ---")
    for key in sorted(config.MODIFIABLE_SETTINGS):
        print(f"  {key} = {config.get(key)}")
    print(f"\nOverrides are read from {config.OVERRIDES_JSON_PATH}\n")
    return 0


def print_help() -> int:
    """Prints the main help text."""
    print("\nUsage: packnode-dev <command> [args] [--verbose]\n")
    print("Available commands:")
    print("  start-all                - Start the data sync service, then the Electron UI.")
    print("  start-hot                - Start the hot-reload server, then the Electron UI with --hot.")
    print("  hot-server               - Run only the hot-reload server in the foreground.")
    print("  stop                     - Stop a running 'start-all' or 'start-hot'.")
    print("  status                   - Show the processes of the running launch profile.")
    print("  patch-html [src] [out]   - Write a copy of index.html with the hot-reload script injected.")
    print("  create-dirs [dir ...]    - Create the backup directories if they are missing.")
    print("  sniff-xml [file ...]     - Print a superficial format check of XML files.")
    print("  install-electron         - Reinstall the pinned Electron version (--no-verify skips the registry check).")
    print("  check-electron           - Check that Electron and the UI main script are present.")
    print("  config [show]            - Show recognized paths and modifiable settings.")
    print("  config set <KEY> <VAL>   - Persist a modifiable setting to overrides.json.")
    print("  help                     - Show this help message.")
    print()
    return 0
