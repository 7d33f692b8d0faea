import asyncio
import logging
import contextlib
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Set

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import FileResponse, PlainTextResponse, Response
from starlette.routing import Route, WebSocketRoute
from starlette.websockets import WebSocket, WebSocketDisconnect

from .watcher import start_observer

log = logging.getLogger("hot_reload")

CLIENT_SCRIPT_NAME = "hot-reload-client.js"
DEFAULT_CLIENT_SCRIPT = Path(__file__).resolve().parent / "static" / CLIENT_SCRIPT_NAME


class ReloadBroadcaster:
    """Keeps track of connected UI clients and pushes change notifications to them."""

    def __init__(self) -> None:
        self.clients: Set[WebSocket] = set()
        self.loop: Optional[asyncio.AbstractEventLoop] = None

    async def broadcast(self, message: Dict[str, Any]) -> None:
        for websocket in list(self.clients):
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as e:
                log.debug(f"Dropping client after failed send: {e}")
                self.clients.discard(websocket)

    def notify(self, path: Path) -> None:
        """
        Announces a changed file to every client.

        Safe to call from any thread, typically the watchdog observer thread.
        """
        if self.loop is None or self.loop.is_closed():
            log.debug(f"Change to {path} ignored, event loop not running.")
            return
        message = {
            "type": "file-changed",
            "path": str(path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        asyncio.run_coroutine_threadsafe(self.broadcast(message), self.loop)


async def health(request: Request) -> Response:
    return PlainTextResponse("ok")


async def client_script(request: Request) -> Response:
    return FileResponse(request.app.state.client_script, media_type="application/javascript")


async def serve_ui_file(request: Request) -> Response:
    """Serves a file from the UI directory; '/' serves index.html."""
    ui_dir: Path = request.app.state.ui_dir
    relative = request.path_params.get("path", "") or "index.html"
    requested = (ui_dir / relative).resolve()
    # Prevent directory traversal.
    if ui_dir not in requested.parents or not requested.is_file():
        log.debug(f"File not found: {request.url.path}")
        return PlainTextResponse("File not found", status_code=404)
    return FileResponse(requested)


async def reload_socket(websocket: WebSocket) -> None:
    """Keeps a UI client registered until it disconnects."""
    broadcaster: ReloadBroadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    broadcaster.clients.add(websocket)
    log.info("Client connected.")
    try:
        await websocket.send_json({"type": "connected", "message": "Hot-reload server connected"})
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.clients.discard(websocket)
        log.info("Client disconnected.")


def create_app(ui_dir: Path, watch_paths: Iterable[Path], debounce_seconds: float = 0.5, client_script_path: Path = DEFAULT_CLIENT_SCRIPT) -> Starlette:
    """
    Builds the hot-reload ASGI application.

    The file watcher runs for the lifetime of the application and forwards
    changes to every connected WebSocket client.

    :param ui_dir: Directory whose files are served over HTTP.
    :param watch_paths: Files and directories that trigger a notification when changed.
    :param debounce_seconds: Minimum seconds between two notifications for the same file.
    :param client_script_path: The browser-side script served at /hot-reload-client.js.
    """
    watch_paths = list(watch_paths)
    broadcaster = ReloadBroadcaster()

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        broadcaster.loop = asyncio.get_running_loop()
        observer = start_observer(watch_paths, broadcaster.notify, debounce_seconds)
        try:
            yield
        finally:
            observer.stop()
            observer.join(timeout=5)
            broadcaster.loop = None

    routes = [
        Route("/health", endpoint=health, methods=["GET"]),
        Route(f"/{CLIENT_SCRIPT_NAME}", endpoint=client_script, methods=["GET"]),
        WebSocketRoute("/", endpoint=reload_socket),
        Route("/{path:path}", endpoint=serve_ui_file, methods=["GET", "HEAD"]),
    ]
    app = Starlette(debug=False, routes=routes, lifespan=lifespan)
    app.state.ui_dir = Path(ui_dir).resolve()
    app.state.client_script = Path(client_script_path)
    app.state.broadcaster = broadcaster
    log.info(f"Hot-reload server configured for {app.state.ui_dir}.")
    return app
