"""
PackNode developer tools.

Launch profiles for the Electron UI and its companion processes, a hot-reload
server, and small helpers for HTML patching, directory bootstrapping, XML
sniffing and installing Electron. Run `packnode-dev help` for the commands.
"""

__version__ = "1.0.0"
