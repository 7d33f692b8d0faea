"""
Standalone developer tools.

Each module is a single linear operation: directory bootstrapping, HTML
patching for hot-reload, XML sniffing and the Electron installer.
"""

from .directories import DirectoryStatus, ensure_directories
from .html_patch import MarkerNotFoundError, inject_fragment, patch_html
from .xml_sniff import SniffResult, sniff_xml_file, sniff_xml_files
from .installer import check_installation, install_electron, resolve_electron_executable

__all__ = [
    "DirectoryStatus", "ensure_directories",
    "MarkerNotFoundError", "inject_fragment", "patch_html",
    "SniffResult", "sniff_xml_file", "sniff_xml_files",
    "check_installation", "install_electron", "resolve_electron_executable",
]
