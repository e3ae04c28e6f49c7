from __future__ import annotations

import grp
import pwd
import stat
import time
from typing import Iterator, Optional

from .header import Header
from .reader import ArchiveReader
from .walker import TreeNode, iter_tree


def owner_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def format_mtime(mtime: float) -> str:
    return time.strftime("%b %d %H:%M", time.localtime(mtime))


def format_node(node: TreeNode) -> str:
    """One ls-style line: permissions, links, owner, group, size, date, name."""
    st = node.stat
    return "  {}  {:2d}  {:>8}  {:>10}  {:6d}  {}  {:<16}".format(
        stat.filemode(st.st_mode),
        st.st_nlink,
        owner_name(st.st_uid),
        group_name(st.st_gid),
        st.st_size,
        format_mtime(st.st_mtime),
        node.name,
    )


def format_header(hdr: Header) -> str:
    size = 0 if hdr.is_dir else hdr.size
    return "{} {}/{} {:>10} {} {}".format(
        stat.filemode(hdr.mode),
        owner_name(hdr.uid),
        group_name(hdr.gid),
        size,
        time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(hdr.mtime)),
        hdr.name,
    )


def list_tree(top: str, cutoff: Optional[int] = None) -> Iterator[str]:
    """Yield a line per node under ``top``; with a cutoff, only nodes strictly newer than it."""
    for node in iter_tree(top):
        if cutoff is not None and int(node.stat.st_mtime) <= cutoff:
            continue
        yield format_node(node)


def list_archive(archive: str) -> Iterator[str]:
    with ArchiveReader(archive) as r:
        for member in r.members():
            yield format_header(member.header)
