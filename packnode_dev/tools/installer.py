import sys
import shutil
import logging
import requests
import subprocess
from pathlib import Path
from typing import Dict, List

log = logging.getLogger(__name__)


def resolve_electron_executable(project_dir: Path) -> str:
    """
    Returns the Electron command for a project.

    Prefers the project's local install in node_modules/.bin and falls back to
    'electron' on PATH.
    """
    bin_name = "electron.cmd" if sys.platform == "win32" else "electron"
    local_bin = Path(project_dir) / "node_modules" / ".bin" / bin_name
    if local_bin.exists():
        return str(local_bin)
    return shutil.which("electron") or "electron"


def check_installation(project_dir: Path, main_script: Path) -> Dict[str, bool]:
    """
    Reports whether the Electron executable and the UI main script are present.

    :param project_dir: Root of the Electron project.
    :param main_script: The Electron main script.
    :return: A mapping of checked item to whether it exists.
    """
    electron = resolve_electron_executable(project_dir)
    electron_path = Path(electron)
    checks = {
        f"Electron ({electron})": electron_path.is_file() or shutil.which(electron) is not None,
        f"Main script ({Path(main_script).name})": Path(main_script).is_file(),
    }
    for name, ok in checks.items():
        if ok:
            log.info(f"Found {name}")
        else:
            log.error(f"Not found: {name}")
    return checks


def verify_registry_version(registry: str, package: str, version: str, timeout: float = 10) -> bool:
    """
    Checks that `package@version` is published on the registry.

    :return: True if the registry knows the version, False otherwise.
    """
    url = f"{registry.rstrip('/')}/{package}/{version}"
    try:
        response = requests.get(url, timeout=timeout, headers={"Accept": "application/json"})
    except requests.RequestException as e:
        log.error(f"Could not reach registry {registry}: {e}")
        return False
    if response.status_code != 200:
        log.error(f"{package}@{version} is not available on {registry} (HTTP {response.status_code}).")
        return False
    log.info(f"{package}@{version} is available on {registry}.")
    return True


def get_install_steps(npm: str, registry: str, version: str) -> List[List[str]]:
    """Returns the npm commands that reinstall the pinned Electron build, in order."""
    return [
        [npm, "config", "set", "registry", registry],
        [npm, "cache", "clean", "--force"],
        [npm, "uninstall", "electron", "--save-dev"],
        [npm, "install", f"electron@{version}", "--save-dev", "--force"],
    ]


def install_electron(project_dir: Path, version: str, registry: str, npm: str = "npm", verify: bool = True, timeout: float = 10) -> None:
    """
    Points npm at the mirror registry and reinstalls the pinned Electron version.

    :param project_dir: Root of the Electron project (where package.json lives).
    :param version: The Electron version to install.
    :param registry: The npm registry mirror to use.
    :param npm: The npm command.
    :param verify: Check the registry for the version before touching the current install.
    :param timeout: Seconds allowed for the registry check.
    :raises RuntimeError: If the version is unavailable or an npm step fails.
    """
    log.info(f"Installing Electron {version} from {registry}...")
    if verify and not verify_registry_version(registry, "electron", version, timeout):
        raise RuntimeError(f"electron@{version} cannot be installed from {registry}.")

    npm_command = shutil.which(npm) or npm
    for step in get_install_steps(npm_command, registry, version):
        log.info(f"Running: {' '.join(step[1:])}")
        try:
            subprocess.run(step, cwd=str(project_dir), check=True)
        except FileNotFoundError:
            raise RuntimeError(f"npm executable '{npm}' not found.") from None
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"'npm {' '.join(step[1:])}' failed with exit code {e.returncode}.") from e
    log.info("Electron installation completed successfully!")
