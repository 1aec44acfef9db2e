"""Write binary downloads (NetCDF, PNG) to disk."""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Union
import requests

from .constants import DOWNLOAD_CHUNK_SIZE, PARTIAL_SUFFIX
from .models import FileIOError

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


def create_path(file_name: PathLike) -> Path:
    """Create the parent directories of ``file_name`` if they are missing."""
    path = Path(file_name)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileIOError(f"Cannot create directory {path.parent}: {exc}") from exc
    return path


def write_file(response: requests.Response, file_name: PathLike) -> Path:
    """Stream the response body into ``file_name``, replacing any existing file.

    The body is written to a ``.part`` file next to the target and moved into
    place once complete, so an interrupted download leaves any previous file
    untouched.

    Args:
        response: Successful response carrying the binary payload.
        file_name: Destination path. Parent directories are created.

    Returns:
        The written path.

    Raises:
        FileIOError: If the directory or file cannot be written.
    """
    path = create_path(file_name)
    part_path = path.with_name(f"{path.name}{PARTIAL_SUFFIX}")
    written = 0
    try:
        with part_path.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if chunk:
                    handle.write(chunk)
                    written += len(chunk)
        part_path.replace(path)
    except OSError as exc:
        raise FileIOError(f"Cannot write {path}: {exc}") from exc
    finally:
        part_path.unlink(missing_ok=True)
    LOGGER.debug("Wrote %d bytes to %s", written, path)
    return path


__all__ = ["create_path", "write_file"]
