from __future__ import annotations

import os
import stat
import time
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .errors import FieldOverflow, StartPathError, UnreadableSource
from .header import encode_header
from .logs import logger, logger_print
from .policy import FilterPolicy
from .walker import TreeNode, walk
from .writer import ArchiveWriter


@dataclass
class BackupResult:
    archive: str
    files: int = 0
    dirs: int = 0
    skipped: int = 0
    bytes: int = 0


@dataclass
class BackupContext:
    """State shared by every visit of one backup run."""
    policy: FilterPolicy
    name_offset: int
    writer: ArchiveWriter
    result: BackupResult


def _open_source(path: str) -> BinaryIO:
    try:
        return open(path, "rb")
    except OSError as exc:
        raise UnreadableSource(f"{path}: {exc.strerror}") from exc


def _resolve_stat(node: TreeNode) -> Optional[os.stat_result]:
    """Return the stat to archive ``node`` with, or None to skip it.

    Symbolic links to regular files are stored as copies of their target.
    """
    st = node.stat
    if stat.S_ISDIR(st.st_mode) or stat.S_ISREG(st.st_mode):
        return st
    if stat.S_ISLNK(st.st_mode):
        try:
            target = os.stat(node.path)
        except OSError as exc:
            logger.warning(f"skipping dangling symlink {node.path}: {exc.strerror}")
            return None
        if stat.S_ISREG(target.st_mode):
            return target
        logger.warning(f"skipping symlink to non-regular file: {node.path}")
        return None
    logger.warning(f"skipping special file: {node.path}")
    return None


def _visit(ctx: BackupContext, node: TreeNode) -> None:
    st = _resolve_stat(node)
    if st is None:
        ctx.result.skipped += 1
        return
    if not ctx.policy.accepts(st):
        return
    name = node.path[ctx.name_offset:]
    # PathTooLong propagates; only the numeric fields are entry-local
    try:
        header = encode_header(st, name)
    except FieldOverflow as exc:
        logger.warning(f"entry skipped: {node.path}: {exc}")
        ctx.result.skipped += 1
        return
    if stat.S_ISDIR(st.st_mode):
        ctx.writer.add_dir(name, st, header)
        ctx.result.dirs += 1
        logger_print.info(f"archived: {node.path}")
        return
    try:
        src = _open_source(node.path)
    except UnreadableSource as exc:
        logger.warning(f"file skipped: {exc}")
        ctx.result.skipped += 1
        return
    with src:
        ctx.writer.add_file(name, st, src, header)
    ctx.result.files += 1
    ctx.result.bytes += st.st_size
    logger_print.info(f"archived: {node.path}")


def run_backup(
    start: str,
    archive: str,
    *,
    cutoff: int = 0,
    run_start: Optional[int] = None,
) -> BackupResult:
    """Archive every eligible entry under ``start`` into ``archive``.

    Names are stored relative to the parent of ``start``, so the start
    directory itself is the first archived entry. ``run_start`` defaults to
    now and must be taken before the archive is created. On any fatal error
    the partial archive is removed before the error propagates.
    """
    if run_start is None:
        run_start = int(time.time())
    root = os.path.realpath(start)
    if not os.path.lexists(root):
        raise StartPathError(f"cannot resolve start path: {start}")
    if not os.path.basename(root):
        raise StartPathError("refusing to archive the filesystem root, start from a named directory")
    name_offset = len(root) - len(os.path.basename(root))

    result = BackupResult(archive=archive)
    with ArchiveWriter(archive) as w:
        ctx = BackupContext(
            policy=FilterPolicy(cutoff=cutoff, run_start=run_start),
            name_offset=name_offset,
            writer=w,
            result=result,
        )
        walk(root, lambda node: _visit(ctx, node))
        w.finalize()
    return result
