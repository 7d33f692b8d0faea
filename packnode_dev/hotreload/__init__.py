"""
Hot-reload package.

Serves the Electron UI directory, watches UI files and tells connected
clients over a WebSocket when one of them changes.
"""
from .server import ReloadBroadcaster, create_app
from .watcher import UIChangeHandler, start_observer

__all__ = ['ReloadBroadcaster', 'create_app', 'UIChangeHandler', 'start_observer']
