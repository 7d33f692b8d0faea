"""
A diagnostic print-out for XML files.

This is a sniffer, not a validator: it only looks for a leading XML
declaration, the name of the first opening tag and a few tell-tale signs of
a wrong text encoding. It never builds a tree, so malformed nesting or
unclosed tags go unnoticed.
"""
import re
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Iterable, List, Optional

log = logging.getLogger(__name__)

XML_DECLARATION = "<?xml"
FIRST_TAG_PATTERN = re.compile(r"<(?![?!])([^/\s>]+)")

# Sequences that show up when GBK and UTF-8 get mixed up, plus runs of '?'
# left behind by lossy conversions.
GARBLED_PATTERNS = [
    re.compile("锟斤拷"),
    re.compile("锘"),
    re.compile(r"\?{3,}"),
    re.compile("\ufffd"),
]


@dataclass
class SniffResult:
    """What the sniffer found out about one file."""

    path: Path
    found: bool
    has_declaration: bool = False
    first_tag: Optional[str] = None
    garbled_count: int = 0
    error: Optional[str] = None


def count_garbled(text: str) -> int:
    """Counts occurrences of typical mojibake sequences in `text`."""
    return sum(len(pattern.findall(text)) for pattern in GARBLED_PATTERNS)


def sniff_xml_file(path: Path) -> SniffResult:
    """
    Checks a single file and logs what it finds. Never raises.

    :param path: The XML file to look at.
    """
    path = Path(path)
    log.info(f"Checking file: {path.name}")
    if not path.is_file():
        log.error(f"File not found: {path}")
        return SniffResult(path=path, found=False)

    try:
        # errors="replace" turns undecodable bytes into U+FFFD so they are counted, not raised.
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        log.error(f"Failed to read XML file {path.name}: {e}")
        return SniffResult(path=path, found=True, error=str(e))

    result = SniffResult(path=path, found=True)
    result.has_declaration = text.lstrip().lstrip("\ufeff").startswith(XML_DECLARATION)
    if result.has_declaration:
        log.info("File starts with an XML declaration.")
    else:
        log.warning("File does not start with an XML declaration.")

    match = FIRST_TAG_PATTERN.search(text)
    if match:
        result.first_tag = match.group(1)
        log.info(f"First opening tag: {result.first_tag}")
    else:
        log.warning("No opening tag found.")

    result.garbled_count = count_garbled(text)
    if result.garbled_count:
        log.warning(f"Found {result.garbled_count} garbled character sequence(s); check the file encoding.")

    log.info(f"{path.name}: basic format check finished.")
    return result


def sniff_xml_files(paths: Iterable[Path]) -> List[SniffResult]:
    """Runs `sniff_xml_file` on each path in order."""
    return [sniff_xml_file(path) for path in paths]
