"""Write the extracted map to a file or to a caller-provided stream."""

from __future__ import annotations

import io
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from exorcist.errors import MapWriteError

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> Path:
    """Create ``path`` and its parents when absent."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise MapWriteError(f"Unable to create directory {path}: {exc}") from exc
    return path


def write_map_file(path: Path, payload: str) -> Path:
    """Write ``payload`` to ``path`` through a temporary file in the same directory.

    Readers never observe a half-written map: the file appears via
    ``os.replace`` once its contents are flushed.
    """
    directory = ensure_directory(path.parent)
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=directory,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, _default_file_mode())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise MapWriteError(f"Unable to write source map to {path}: {exc}") from exc

    logger.debug("wrote %d characters of source map to %s", len(payload), path)
    return path


def write_to_stream(stream: Any, payload: str) -> None:
    """Write ``payload`` to ``stream``: ``str`` for text streams, UTF-8 bytes otherwise."""
    data: str | bytes = payload if is_text_stream(stream) else payload.encode("utf-8")
    try:
        stream.write(data)
        flush = getattr(stream, "flush", None)
        if callable(flush):
            flush()
    except OSError as exc:
        raise MapWriteError(f"Unable to write source map to stream: {exc}") from exc


def write_map(destination: Any, payload: str) -> None:
    if isinstance(destination, Path):
        write_map_file(destination, payload)
    else:
        write_to_stream(destination, payload)


def _default_file_mode() -> int:
    """Mode a plain ``open(path, "w")`` would give: 0o666 minus the umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def is_text_stream(stream: Any) -> bool:
    if isinstance(stream, io.TextIOBase):
        return True
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return False
    return getattr(stream, "encoding", None) is not None
