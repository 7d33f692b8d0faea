import sys
import socket
from pathlib import Path

import pytest

from packnode_dev.supervisor import ChildSpec


def find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def python_child(tmp_path):
    """Builds a ChildSpec that runs a short Python snippet instead of Node or Electron."""
    def _make(name: str, code: str, **kwargs) -> ChildSpec:
        return ChildSpec(name=name, args=[sys.executable, "-c", code], cwd=tmp_path, **kwargs)
    return _make


@pytest.fixture
def ui_dir(tmp_path) -> Path:
    """A minimal Electron UI directory."""
    directory = tmp_path / "ui"
    directory.mkdir()
    (directory / "index.html").write_text("<html><body><h1>PackNode</h1></body></html>", encoding="utf-8")
    (directory / "main-ui.js").write_text("console.log('ui');\n", encoding="utf-8")
    return directory
