import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable

log = logging.getLogger(__name__)


class DirectoryStatus(Enum):
    CREATED = "created"
    EXISTS = "exists"
    FAILED = "failed"


def ensure_directories(paths: Iterable[Path]) -> Dict[Path, DirectoryStatus]:
    """
    Makes sure every directory in `paths` exists, creating missing ancestors as well.

    A failure on one path is logged and does not stop the remaining paths.

    :param paths: The directories to check.
    :return: The outcome for each path, in the order given.
    """
    log.info("Checking required directories...")
    results: Dict[Path, DirectoryStatus] = {}
    for raw_path in paths:
        path = Path(raw_path)
        try:
            if path.is_dir():
                log.info(f"Directory already exists: {path}")
                results[path] = DirectoryStatus.EXISTS
                continue
            path.mkdir(parents=True, exist_ok=False)
            log.info(f"Created directory: {path}")
            results[path] = DirectoryStatus.CREATED
        except OSError as e:
            log.error(f"Failed to create directory '{path}': {e}")
            results[path] = DirectoryStatus.FAILED

    created = sum(1 for status in results.values() if status is DirectoryStatus.CREATED)
    failed = sum(1 for status in results.values() if status is DirectoryStatus.FAILED)
    log.info(f"Directory check complete: {created} created, {failed} failed, {len(results)} total.")
    return results
