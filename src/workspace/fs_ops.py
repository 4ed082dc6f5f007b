"""Low-level copy helpers shared by the mirror and the overlay.

Copies preserve modification time and permission bits where the platform
supports them. Metadata copying is best-effort: a platform without equivalent
permission semantics simply keeps whatever the copy produced.
"""

import logging
import os
import shutil
import stat
from typing import Callable, List, Optional, Tuple

from .models import FileRecord

logger = logging.getLogger(__name__)

# Signature: (relative_path, is_dir) -> bool
ExcludeFn = Callable[[str, bool], bool]


def _record(relative_path: str, st: os.stat_result, kind: str) -> FileRecord:
    return FileRecord(
        relative_path=relative_path.replace(os.sep, "/"),
        kind=kind,
        mtime=st.st_mtime,
        mode=stat.S_IMODE(st.st_mode),
    )


def copy_metadata(src: str, dest: str) -> None:
    """Copy mtime/atime and permission bits from ``src`` to ``dest``."""
    try:
        shutil.copystat(src, dest, follow_symlinks=False)
    except (OSError, NotImplementedError) as e:
        logger.debug(f"Could not copy metadata {src} -> {dest}: {e}")


def copy_file(src: str, dest: str, relative_path: str) -> FileRecord:
    """Copy one file (or symlink) with its metadata.

    Parent directories of ``dest`` are created as needed. An existing
    destination is overwritten.

    Args:
        src: Source file path
        dest: Destination file path
        relative_path: Path relative to the copy root, used for the record

    Returns:
        FileRecord describing the copied entry

    Raises:
        OSError: If the copy itself fails
    """
    parent = os.path.dirname(dest)
    if parent:
        os.makedirs(parent, exist_ok=True)

    if os.path.islink(src):
        if os.path.lexists(dest):
            _remove_path(dest)
        os.symlink(os.readlink(src), dest)
        st = os.lstat(src)
        logger.debug(f"Linked {relative_path}")
        return _record(relative_path, st, "symlink")

    if os.path.isdir(dest) and not os.path.islink(dest):
        shutil.rmtree(dest)
    shutil.copy2(src, dest)
    st = os.stat(src)
    logger.debug(f"Copied {relative_path}")
    return _record(relative_path, st, "file")


def copy_tree(
    src_dir: str,
    dest_dir: str,
    relative_root: str = "",
    exclude: Optional[ExcludeFn] = None,
) -> Tuple[List[FileRecord], List[str], List[Tuple[str, str]]]:
    """Recursively copy ``src_dir`` into ``dest_dir``.

    Existing destination files are overwritten; destination entries without
    a source counterpart are left alone. Directory metadata is applied after
    the directory's children are written so the copied directory keeps the
    source timestamp.

    A single entry that cannot be copied is logged and recorded as failed;
    the walk continues with the next entry.

    Args:
        src_dir: Source directory
        dest_dir: Destination directory
        relative_root: Relative path of ``src_dir`` from the logical copy root,
            used for matching and for the returned records
        exclude: Optional predicate deciding which entries to skip

    Returns:
        Tuple of (copied records, skipped relative paths, failed (path, reason))
    """
    copied: List[FileRecord] = []
    skipped: List[str] = []
    failed: List[Tuple[str, str]] = []

    os.makedirs(dest_dir, exist_ok=True)

    try:
        entries = sorted(os.scandir(src_dir), key=lambda e: e.name)
    except OSError as e:
        logger.warning(f"Could not read directory {src_dir}: {e}")
        failed.append((relative_root, str(e)))
        return copied, skipped, failed

    for entry in entries:
        rel = f"{relative_root}/{entry.name}" if relative_root else entry.name
        is_real_dir = entry.is_dir(follow_symlinks=False)

        if exclude is not None and exclude(rel, is_real_dir):
            skipped.append(rel)
            continue

        dest_path = os.path.join(dest_dir, entry.name)
        if is_real_dir:
            sub_copied, sub_skipped, sub_failed = copy_tree(
                entry.path, dest_path, rel, exclude
            )
            copied.extend(sub_copied)
            skipped.extend(sub_skipped)
            failed.extend(sub_failed)
            continue

        try:
            copied.append(copy_file(entry.path, dest_path, rel))
        except OSError as e:
            logger.warning(f"Warning: Could not copy {entry.path}: {e}")
            failed.append((rel, str(e)))

    copy_metadata(src_dir, dest_dir)
    try:
        copied.append(_record(relative_root or ".", os.stat(src_dir), "directory"))
    except OSError as e:
        logger.debug(f"Could not stat {src_dir}: {e}")
    return copied, skipped, failed


def _remove_path(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        os.remove(path)


def remove_path(path: str) -> bool:
    """Remove a file, symlink or directory tree if it exists.

    Args:
        path: Path to remove

    Returns:
        True if something was removed
    """
    if not os.path.lexists(path):
        return False
    _remove_path(path)
    return True
