import time
import logging
from typing import List

from packnode_dev.console.handler import (
    display_status, handle_check_command, handle_create_dirs_command, handle_hot_server_command,
    handle_install_command, handle_launch_command, handle_patch_html_command,
    handle_sniff_xml_command, handle_stop_command, print_help, show_config,
)

log = logging.getLogger(__name__)

EXIT_UNKNOWN_COMMAND = 2


def execute_command(command: str, args: List[str]) -> int:
    """
    Executes a single command from the user.

    :param command: The main command string (e.g., 'start-all', 'patch-html').
    :param args: A list of arguments for the command.
    :return int: The process exit code for the command.
    """
    log.debug(f"Executing command: {command}, args: {args}")
    command_map = {
        "start-all": lambda: handle_launch_command("all"),
        "start-hot": lambda: handle_launch_command("hot"),
        "hot-server": handle_hot_server_command,
        "stop": handle_stop_command,
        "status": display_status,
        "patch-html": lambda: handle_patch_html_command(args),
        "create-dirs": lambda: handle_create_dirs_command(args),
        "sniff-xml": lambda: handle_sniff_xml_command(args),
        "install-electron": lambda: handle_install_command(args),
        "check-electron": handle_check_command,
        "config": lambda: show_config(args),
        "help": print_help,
    }

    if command not in command_map:
        log.info(f"Unknown command: '{command}'. Type 'help' for a list of commands.")
        return EXIT_UNKNOWN_COMMAND

    start_time = time.time()
    exit_code = command_map[command]()
    log.debug(f"Command '{command}' finished with exit code {exit_code} in {time.time() - start_time:.2f}s.")
    return exit_code
