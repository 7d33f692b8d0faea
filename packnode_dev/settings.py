"""
This module contains the configuration defaults for the PackNode developer tools.
It defines paths, child process commands, supervisor timings and the hot-reload
server settings. Values can be overridden with PACKNODE_* environment variables
(also read from a .env file) and, for MODIFIABLE_SETTINGS, from overrides.json.
"""

import os
import sys
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Core Paths ---
PACKAGE_DIR = pathlib.Path(__file__).resolve().parent
PROJECT_DIR = pathlib.Path(os.getenv("PACKNODE_PROJECT_DIR", os.getcwd())).resolve()  # Electron project root
STATE_DIR = PROJECT_DIR / ".packnode"
UI_DIR = pathlib.Path(os.getenv("PACKNODE_UI_DIR", PROJECT_DIR / "src" / "ui"))

#* --- Application File Paths ---
STATE_FILE_PATH = STATE_DIR / "launcher.pid"
OVERRIDES_JSON_PATH = STATE_DIR / "overrides.json"
SYNC_SERVICE_SCRIPT = PROJECT_DIR / "src" / "services" / "main-service.js"
UI_MAIN_SCRIPT = UI_DIR / "electron-main.js"
HTML_SOURCE_PATH = UI_DIR / "index.html"
HTML_OUTPUT_PATH = UI_DIR / "index-with-hot.html"
HOT_ENTRY_PATH = UI_DIR / "index.html"
HOT_CLIENT_SCRIPT_PATH = PACKAGE_DIR / "hotreload" / "static" / "hot-reload-client.js"

#* --- Backup Directories (bootstrapped by 'create-dirs') ---
BACKUP_ROOT = pathlib.Path(os.getenv("PACKNODE_BACKUP_ROOT", "D:/backup_data/backup"))
BACKUP_DIRECTORIES = [
    BACKUP_ROOT / "customer",
    BACKUP_ROOT / "worker",
]

#* --- XML Files (checked by 'sniff-xml') ---
XML_FILES = [
    PROJECT_DIR / "优化文件.xml",
    PROJECT_DIR / "优化文件2.xml",
]

#* --- External Executables ---
PYTHON_EXECUTABLE = os.getenv("PACKNODE_PYTHON", sys.executable)
NODE_EXECUTABLE = os.getenv("PACKNODE_NODE", "node")
NPM_EXECUTABLE = os.getenv("PACKNODE_NPM", "npm")
# Empty means: node_modules/.bin/electron if installed, otherwise 'electron' from PATH.
ELECTRON_EXECUTABLE = os.getenv("PACKNODE_ELECTRON", "")

#* --- Electron Installation ---
ELECTRON_VERSION = os.getenv("PACKNODE_ELECTRON_VERSION", "38.1.0")
NPM_REGISTRY = os.getenv("PACKNODE_NPM_REGISTRY", "https://registry.npmmirror.com")
REGISTRY_CHECK_TIMEOUT = 10  # seconds

#* --- Supervisor Settings ---
SUPERVISOR_POLL_INTERVAL = 0.2   # seconds
GRACEFUL_SHUTDOWN_TIMEOUT = 5.0  # seconds before force-killing
READINESS_TIMEOUT = 30.0         # seconds
# Readiness probe for the data sync service: 'delay:<s>', 'port:<host>:<port>', an http(s) URL or 'none'.
SYNC_SERVICE_READINESS = os.getenv("PACKNODE_SYNC_READINESS", "delay:3")
HOT_RELOAD_FLAG = "--hot"

#* --- Hot-Reload Server Settings ---
HOT_RELOAD_HOST = os.getenv("PACKNODE_HOT_HOST", "127.0.0.1")
HOT_RELOAD_PORT = int(os.getenv("PACKNODE_HOT_PORT", "3001"))
HOT_RELOAD_WATCH_PATHS = [
    UI_DIR / "index.html",
    UI_DIR / "main-ui.js",
]
WATCH_DEBOUNCE_SECONDS = 0.5

#* --- HTML Patcher ---
HTML_MARKER = "</body>"
# {host} and {port} are filled from HOT_RELOAD_HOST and HOT_RELOAD_PORT for pages loaded from file://.
HOT_RELOAD_SCRIPT_FRAGMENT = """
<!-- hot-reload client -->
<script src="hot-reload-client.js" data-hot-host="{host}" data-hot-port="{port}"></script>
"""

#* --- Process Titles ---
HOT_SERVER_PROCESS_TITLE = "PackNode - HotReload"

#* --- MODIFIABLE SETTINGS (Changeable via overrides.json) ---
MODIFIABLE_SETTINGS = {
    "SUPERVISOR_POLL_INTERVAL", "GRACEFUL_SHUTDOWN_TIMEOUT", "READINESS_TIMEOUT",
    "SYNC_SERVICE_READINESS", "HOT_RELOAD_PORT", "WATCH_DEBOUNCE_SECONDS",
    "ELECTRON_VERSION", "NPM_REGISTRY", "BACKUP_ROOT",
}

#* --- Recognized paths and what they are used for ('config show') ---
RECOGNIZED_PATHS = {
    "PROJECT_DIR": "Root of the Electron project; working directory of child processes.",
    "STATE_DIR": "Tool state (launch state file, overrides).",
    "UI_DIR": "Electron UI sources; served by the hot-reload server.",
    "STATE_FILE_PATH": "PIDs of the running launch profile.",
    "OVERRIDES_JSON_PATH": "Runtime overrides for modifiable settings.",
    "SYNC_SERVICE_SCRIPT": "Background data sync service started by 'start-all'.",
    "UI_MAIN_SCRIPT": "Electron main script started by 'start-all'.",
    "HOT_ENTRY_PATH": "Entry passed to Electron by 'start-hot'.",
    "HTML_SOURCE_PATH": "HTML document read by 'patch-html'.",
    "HTML_OUTPUT_PATH": "Patched HTML document written by 'patch-html'.",
    "BACKUP_ROOT": "Parent of the directories created by 'create-dirs'.",
}
