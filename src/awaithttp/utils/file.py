"""File operation utilities."""

import os
import tempfile
from pathlib import Path
from typing import Union


def ensure_dir(path: Path) -> Path:
    """Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The path object
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write_text(path: Union[str, Path], text: str, encoding: str = "utf-8") -> Path:
    """Write text to a file by replacing it atomically.

    The text goes to a temporary file in the same directory, which is then
    renamed over `path`. Readers see either the old or the new content.

    Args:
        path: Destination file
        text: Content to write
        encoding: Text encoding

    Returns:
        The destination path
    """
    path = Path(path)
    ensure_dir(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path
