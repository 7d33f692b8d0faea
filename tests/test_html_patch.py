"""Tests for the hot-reload HTML patcher."""

import pytest

from packnode_dev.settings import HOT_RELOAD_SCRIPT_FRAGMENT
from packnode_dev.tools import MarkerNotFoundError, inject_fragment, patch_html

FRAGMENT = '\n<script src="hot-reload-client.js"></script>\n'


def test_inject_fragment_before_closing_body():
    html = "<html><body><p>hi</p></body></html>"

    result = inject_fragment(html, FRAGMENT)

    assert result == "<html><body><p>hi</p>" + FRAGMENT + "</body></html>"


def test_inject_fragment_uses_last_marker():
    html = "<body><pre></body></pre></body>"

    result = inject_fragment(html, "X")

    assert result == "<body><pre></body></pre>X</body>"


def test_inject_fragment_is_not_idempotent():
    once = inject_fragment("<body></body>", "X")

    assert inject_fragment(once, "X") == "<body>XX</body>"


def test_inject_fragment_without_marker_raises():
    with pytest.raises(MarkerNotFoundError):
        inject_fragment("<html><p>no body end</p></html>", FRAGMENT)


def test_patch_html_writes_output_and_leaves_source_untouched(tmp_path):
    source = tmp_path / "index.html"
    output = tmp_path / "index-with-hot.html"
    original = "<!DOCTYPE html>\r\n<html>\r\n<body>\r\n<h1>中文</h1>\r\n</body>\r\n</html>\r\n"
    source.write_bytes(original.encode("utf-8"))

    patch_html(source, output, HOT_RELOAD_SCRIPT_FRAGMENT)

    position = original.rfind("</body>")
    expected = original[:position] + HOT_RELOAD_SCRIPT_FRAGMENT + original[position:]
    assert output.read_bytes() == expected.encode("utf-8")
    assert source.read_bytes() == original.encode("utf-8")


def test_patch_html_without_marker_writes_nothing(tmp_path):
    source = tmp_path / "index.html"
    output = tmp_path / "index-with-hot.html"
    source.write_text("<html><p>broken</p></html>", encoding="utf-8")

    with pytest.raises(MarkerNotFoundError):
        patch_html(source, output, FRAGMENT)

    assert not output.exists()


def test_patch_html_missing_source_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        patch_html(tmp_path / "missing.html", tmp_path / "out.html", FRAGMENT)
