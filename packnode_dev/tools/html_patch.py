import logging
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_MARKER = "</body>"


class MarkerNotFoundError(ValueError):
    """Raised when the HTML document has no closing body marker to insert before."""


def inject_fragment(html: str, fragment: str, marker: str = DEFAULT_MARKER) -> str:
    """
    Inserts `fragment` immediately before the last occurrence of `marker`.

    No check for an existing copy of the fragment is made, so applying this
    twice inserts the fragment twice.

    :raises MarkerNotFoundError: If `marker` does not occur in `html`.
    """
    position = html.rfind(marker)
    if position == -1:
        raise MarkerNotFoundError(f"Could not find the '{marker}' tag.")
    return html[:position] + fragment + html[position:]


def patch_html(source: Path, output: Path, fragment: str, marker: str = DEFAULT_MARKER) -> Path:
    """
    Writes a copy of `source` with `fragment` injected before its closing body tag.

    The source file is never modified and nothing is written when the marker
    is missing.

    :param source: The HTML document to read.
    :param output: Where the patched document is written.
    :param fragment: The markup to inject.
    :param marker: The tag the fragment is inserted before.
    :return: The output path.
    :raises MarkerNotFoundError: If the source has no `marker`.
    :raises OSError: If the source cannot be read or the output cannot be written.
    """
    # newline="" keeps the document's line endings byte-for-byte.
    with open(source, "r", encoding="utf-8", newline="") as f:
        html = f.read()
    patched = inject_fragment(html, fragment, marker)
    output = Path(output)
    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write(patched)
    log.info(f"Created {output.name} from {Path(source).name}")
    return output
