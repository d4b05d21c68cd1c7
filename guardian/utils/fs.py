"""Filesystem helpers."""

import os
import tempfile
from pathlib import Path


def atomic_write(path: Path, data: bytes, fsync: bool = True) -> None:
    """
    Write data to path atomically using a temp file and rename.

    The temp file lives in the destination directory so the final
    os.replace() never crosses a filesystem boundary. On failure the temp
    file is removed and the original OSError propagates.

    Args:
        path: Destination file (its directory must exist)
        data: Bytes to write
        fsync: Flush the temp file to disk before renaming
    """
    path = Path(path)
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name[:16]}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            if fsync:
                f.flush()
                os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def atomic_write_text(path: Path, text: str, fsync: bool = True) -> None:
    """Text variant of atomic_write (UTF-8)."""
    atomic_write(path, text.encode('utf-8'), fsync=fsync)
