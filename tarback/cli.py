from __future__ import annotations

import sys
import time
import logging
import argparse

from typing import List, Optional

from tarback.backup import run_backup
from tarback.constants import DEFAULT_ARCHIVE_FORMAT
from tarback.errors import TarbackError
from tarback.listing import list_archive, list_tree
from tarback.logs import logger, logger_print
from tarback.policy import resolve_cutoff
from tarback.restore import restore_archive


def default_archive_name(run_start: int) -> str:
    return time.strftime(DEFAULT_ARCHIVE_FORMAT, time.localtime(run_start))


def cmd_backup(path: str, *, archive: Optional[str] = None, cutoff: Optional[str] = None, run_start: Optional[int] = None) -> bool:
    """Back up the tree at ``path``.

    Args:
        path: Directory (or file) where the walk starts.
        archive: Output archive path; defaults to a timestamped name in the
            current directory.
        cutoff: '-t' value, a 'YYYY-MM-DD hh:mm:ss' date or a reference file.
        run_start: Run start time; defaults to now.
    """
    if run_start is None:
        run_start = int(time.time())
    # resolved before the archive exists, so a bad -t value leaves nothing behind
    cutoff_ts = resolve_cutoff(cutoff)
    if archive is None:
        archive = default_archive_name(run_start)
        logger_print.info(f"Default file used: ./{archive}")
    t0 = time.time()
    result = run_backup(path, archive, cutoff=cutoff_ts, run_start=run_start)
    dt = max(0.000001, time.time() - t0)
    mib = result.bytes / (1024.0 * 1024.0)
    logger_print.info(
        f"Done: {result.files} files, {result.dirs} dirs, {result.skipped} skipped; "
        f"{mib:.2f} MiB in {dt:.1f}s -> {archive}"
    )
    return True


def cmd_restore(archive: str, *, outdir: str = ".") -> bool:
    """Restore an archive into ``outdir``."""
    logger_print.info(f"Archive opened: {archive}")
    result = restore_archive(archive, outdir)
    if result.metadata_warnings:
        logger.warning(f"{result.metadata_warnings} ownership/permission/timestamp change(s) could not be applied")
    logger_print.info(f"Done: restored {result.files} files, {result.dirs} dirs ({result.bytes} bytes)")
    return True


def cmd_list(archive: str) -> bool:
    """Print an ls-style line per archive member."""
    for line in list_archive(archive):
        print(line)
    return True


def cmd_ls(path: str, *, cutoff: Optional[str] = None) -> bool:
    """Print an ls-style line per entry under ``path`` newer than ``cutoff``."""
    cutoff_ts = resolve_cutoff(cutoff) if cutoff is not None else None
    for line in list_tree(path, cutoff_ts):
        print(line)
    return True


def _add_verbosity(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("-q", "--quiet", action="store_true", help="only report warnings and errors")
    ap.add_argument("--debug", action="store_true", help="enable debug diagnostics")


def _add_backup_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument(
        "-t",
        dest="cutoff",
        metavar="{<filename>,<date>}",
        help="only archive entries modified since this date ('YYYY-MM-DD hh:mm:ss') or since this file's modification time",
    )
    ap.add_argument("-f", dest="archive", metavar="FILE", help="archive to write (default: backup_<date>.tar)")
    ap.add_argument("path", help="directory where the walk starts")
    _add_verbosity(ap)


def _add_restore_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("-f", dest="archive", metavar="FILE", required=True, help="archive to restore")
    ap.add_argument("-C", dest="outdir", default=".", metavar="DIR", help="restore into this directory (default: .)")
    ap.add_argument("-l", "--list", action="store_true", help="list archive members instead of restoring")
    ap.add_argument("-t", dest="cutoff", help=argparse.SUPPRESS)
    _add_verbosity(ap)


def _add_ls_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument(
        "-t",
        dest="cutoff",
        metavar="{<filename>,<date>}",
        help="only list entries modified since this date ('YYYY-MM-DD hh:mm:ss') or this file's modification time",
    )
    ap.add_argument("path", nargs="?", default=".", help="directory where the walk starts (default: .)")


def _configure_logging(args: argparse.Namespace) -> None:
    if getattr(args, "quiet", False):
        logger_print.setLevel(logging.WARNING)
    else:
        logger_print.setLevel(logging.INFO)
    if getattr(args, "debug", False):
        logger.setLevel(logging.DEBUG)


def _dispatch(cmd: str, ap: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    _configure_logging(args)
    try:
        if cmd == "backup":
            cmd_backup(args.path, archive=args.archive, cutoff=args.cutoff)
        elif cmd == "restore":
            if args.cutoff is not None:
                ap.error("-t switch not required for restore, use -h for help")
            if args.list:
                cmd_list(args.archive)
            else:
                cmd_restore(args.archive, outdir=args.outdir)
        elif cmd == "ls":
            cmd_ls(args.path, cutoff=args.cutoff)
        else:
            raise RuntimeError("Unknown command")
    except (TarbackError, OSError, RuntimeError) as e:
        logger_print.error(f"Error: {e}")
        sys.exit(2)


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="tarback",
        description="Date-filtered tree backup and restore using a 512-byte block archive",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)
    _add_backup_args(sub.add_parser("backup", help="Archive a directory tree"))
    _add_restore_args(sub.add_parser("restore", help="Restore an archive"))
    _add_ls_args(sub.add_parser("ls", help="List entries a backup would consider"))
    args = ap.parse_args(argv)
    _dispatch(args.cmd, ap, args)


def backup_main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="tarback-backup",
        description="Archive every file and directory under PATH, optionally only those modified since a date",
    )
    _add_backup_args(ap)
    _dispatch("backup", ap, ap.parse_args(argv))


def restore_main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="tarback-restore",
        description="Recreate the archived tree, with permissions, ownership and modification times",
    )
    _add_restore_args(ap)
    _dispatch("restore", ap, ap.parse_args(argv))


def ls_main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(prog="tarback-ls", description="List entries under PATH in ls style")
    _add_ls_args(ap)
    _dispatch("ls", ap, ap.parse_args(argv))


if __name__ == "__main__":
    main()
