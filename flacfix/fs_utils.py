from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import Optional

from .models import FilesystemError


def modified_time_ns(path: Path) -> Optional[int]:
    """Return the mtime of ``path`` in nanoseconds, or None when it is missing."""
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise FilesystemError("stat", path, exc) from exc


def ensure_directory(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError("create directory", path, exc) from exc


def atomic_replace(src: Path, dst: Path) -> None:
    """Move ``src`` onto ``dst`` in one step; both must share a filesystem."""
    try:
        os.replace(src, dst)
        return
    except OSError as exc:
        if exc.errno != errno.ENAMETOOLONG:
            raise FilesystemError("rename", src, exc) from exc
    src_dir_fd = os.open(src.parent, os.O_RDONLY)
    try:
        dst_dir_fd = os.open(dst.parent, os.O_RDONLY)
        try:
            os.replace(src.name, dst.name, src_dir_fd=src_dir_fd, dst_dir_fd=dst_dir_fd)
        except OSError as exc:
            raise FilesystemError("rename", src, exc) from exc
        finally:
            os.close(dst_dir_fd)
    finally:
        os.close(src_dir_fd)


def remove_file(path: Path, *, missing_ok: bool = True) -> bool:
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        if missing_ok:
            return False
        raise
    except OSError as exc:
        raise FilesystemError("remove", path, exc) from exc


def remove_empty_directory(path: Path) -> bool:
    # Non-empty or already gone directories are left alone.
    try:
        path.rmdir()
        return True
    except OSError:
        return False


def is_hidden(name: str) -> bool:
    return name.startswith(".")
