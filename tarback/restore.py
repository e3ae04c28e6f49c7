from __future__ import annotations

import os
import stat
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import ArchiveIOError
from .header import Header
from .logs import logger, logger_print
from .pathutil import member_target
from .reader import ArchiveReader, Member


@dataclass
class RestoreResult:
    files: int = 0
    dirs: int = 0
    bytes: int = 0
    metadata_warnings: int = 0


def _safe_chown(path: str, uid: int, gid: int, result: RestoreResult) -> None:
    """Best‑effort chown that never raises.

    Args:
        path: Destination filesystem path to update.
        uid: Owner id from the archive.
        gid: Group id from the archive.
    """
    chown = getattr(os, "chown", None)
    if chown is None:
        return
    try:
        chown(path, uid, gid)
    except OSError as exc:
        result.metadata_warnings += 1
        logger.warning(f"failed to set owner {uid}:{gid} on {path}: {exc.strerror}")


def _safe_chmod(path: str, mode: int, result: RestoreResult) -> None:
    """Best‑effort chmod that never raises.

    Args:
        path: Destination filesystem path to update.
        mode: Permission bits to apply (e.g., 0o755).
    """
    try:
        os.chmod(path, mode)
    except OSError as exc:
        result.metadata_warnings += 1
        logger.warning(f"failed to set mode {mode:o} on {path}: {exc.strerror}")


def _safe_utime(path: str, atime: float, mtime: int, result: RestoreResult) -> None:
    """Best‑effort utime that never raises.

    Args:
        path: Destination filesystem path to update.
        atime: Access time (seconds since epoch).
        mtime: Modification time (seconds since epoch).
    """
    try:
        os.utime(path, (atime, mtime))
    except OSError as exc:
        result.metadata_warnings += 1
        logger.warning(f"failed to set timestamps on {path}: {exc.strerror}")


def _ensure_parent(target: str) -> None:
    parent = os.path.dirname(target)
    if parent:
        try:
            os.makedirs(parent, exist_ok=True)
        except OSError as exc:
            raise ArchiveIOError(f"cannot create directory {parent}: {exc.strerror}") from exc


def _make_dir(target: str, hdr: Header, result: RestoreResult) -> None:
    _ensure_parent(target)
    # owner rwx until the deferred pass, so children can be created inside
    try:
        os.mkdir(target, hdr.permissions | stat.S_IRWXU)
    except FileExistsError:
        try:
            st = os.stat(target)
        except OSError as exc:
            raise ArchiveIOError(f"cannot inspect existing {target}: {exc.strerror}") from exc
        if not stat.S_ISDIR(st.st_mode):
            raise ArchiveIOError(f"cannot create directory {target}: a non-directory is in the way")
        _safe_chmod(target, stat.S_IMODE(st.st_mode) | stat.S_IRWXU, result)
    except OSError as exc:
        raise ArchiveIOError(f"cannot create directory {target}: {exc.strerror}") from exc
    _safe_chown(target, hdr.uid, hdr.gid, result)


def _restore_file(r: ArchiveReader, member: Member, target: str, atime: float, result: RestoreResult) -> None:
    hdr = member.header
    _ensure_parent(target)
    try:
        out = open(target, "wb")
    except OSError as exc:
        raise ArchiveIOError(f"cannot create {target}: {exc.strerror}") from exc
    with out:
        r.copy_data(member, out)
    # after close, so the write cannot disturb mode or mtime
    _safe_chown(target, hdr.uid, hdr.gid, result)
    _safe_chmod(target, hdr.permissions, result)
    _safe_utime(target, atime, hdr.mtime, result)


def restore_archive(archive: str, dest: str = ".", *, atime: Optional[float] = None) -> RestoreResult:
    """Recreate the archived tree under ``dest``.

    Entries are materialized in archive order. Directory modes and mtimes are
    applied afterwards, deepest first, since creating entries inside a
    directory updates its mtime. Ownership, mode and timestamp failures are
    logged and counted; any decode or I/O failure aborts the restore.
    """
    if atime is None:
        atime = time.time()
    result = RestoreResult()
    pending_dirs: List[Tuple[str, Header]] = []
    with ArchiveReader(archive) as r:
        for member in r.members():
            hdr = member.header
            target = member_target(dest, hdr.name)
            if hdr.is_dir:
                _make_dir(target, hdr, result)
                pending_dirs.append((target, hdr))
                result.dirs += 1
            else:
                _restore_file(r, member, target, atime, result)
                result.files += 1
                result.bytes += hdr.size
            logger_print.info(f"restored: {hdr.name}")
    for target, hdr in reversed(pending_dirs):
        _safe_chmod(target, hdr.permissions, result)
        _safe_utime(target, atime, hdr.mtime, result)
    return result
