import signal
import asyncio
import logging

from hypercorn.asyncio import serve
from hypercorn.config import Config
from starlette.applications import Starlette

log = logging.getLogger(__name__)


async def _serve_until_signalled(app: Starlette, host: str, port: int) -> None:
    config = Config()
    config.bind = [f"{host}:{port}"]
    # Hypercorn's own errors go to stderr so the supervisor can capture them.
    config.errorlog = "-"

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def handle_shutdown_signal(signum, frame):
        log.debug(f"Signal {signum} received, shutting down hot-reload server.")
        loop.call_soon_threadsafe(shutdown_event.set)

    signal.signal(signal.SIGTERM, handle_shutdown_signal)
    signal.signal(signal.SIGINT, handle_shutdown_signal)

    log.info(f"Hot-reload server running at http://{host}:{port}")
    await serve(app, config, shutdown_trigger=shutdown_event.wait)
    log.info("Hot-reload server stopped.")


def run_server(app: Starlette, host: str, port: int) -> None:
    """Serves `app` with hypercorn until SIGINT or SIGTERM is received."""
    asyncio.run(_serve_until_signalled(app, host, port))
