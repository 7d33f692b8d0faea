"""
This is a minimal entry point script for the hot-reload server process.

Its sole responsibility is to name the process, configure logging and serve
the hot-reload application until the supervisor stops it.
"""
import setproctitle
from packnode_dev.config import effective_settings as config
setproctitle.setproctitle(config.HOT_SERVER_PROCESS_TITLE)

import logging
from packnode_dev.log import setup_logging
from packnode_dev.hotreload import create_app
from packnode_dev.hotreload.serve import run_server


def main() -> None:
    setup_logging(logging.INFO)
    app = create_app(config.UI_DIR, config.HOT_RELOAD_WATCH_PATHS, config.WATCH_DEBOUNCE_SECONDS)
    run_server(app, config.HOT_RELOAD_HOST, config.HOT_RELOAD_PORT)


if __name__ == "__main__":
    main()
