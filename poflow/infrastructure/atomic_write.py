"""Atomic replacement of text files."""
import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import IO, Iterator

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def atomic_write(path: Path) -> Iterator[IO[str]]:
    """Write a text file through a temporary file renamed over ``path``.

    The temporary file lives in the destination directory so the final rename
    never crosses a filesystem. It is flushed and closed before the rename,
    and removed if the block raises; ``path`` is left untouched in that case.

    Args:
        path: The file to create or replace.

    Yields:
        The temporary file, opened for writing UTF-8 text.
    """
    temp_file = tempfile.NamedTemporaryFile(  # pylint: disable=consider-using-with
        mode="w",
        encoding="utf-8",
        newline="",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_file.name)
    try:
        with temp_file:
            yield temp_file
            temp_file.flush()
            os.fsync(temp_file.fileno())
        if path.exists():
            shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            temp_path.unlink()
        raise
    logger.debug("Replaced %s", path)
