from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from .errors import WalkAborted
from .logs import logger


@dataclass
class TreeNode:
    path: str
    stat: os.stat_result
    base: int  # offset in ``path`` where the node's own name begins

    @property
    def name(self) -> str:
        return self.path[self.base:]


def _name_offset(path: str) -> int:
    tail = os.path.basename(path)
    if not tail:
        return len(path)
    return len(path) - len(tail)


def iter_tree(top: str) -> Iterator[TreeNode]:
    """Yield every node under ``top`` once, parents before children.

    The walk is physical: nodes are stat'ed with lstat and symbolic links are
    reported but never descended into. Children are visited in name order.
    A directory that cannot be listed is reported and skipped.
    """
    st = os.lstat(top)
    yield TreeNode(top, st, _name_offset(top))
    if stat.S_ISDIR(st.st_mode):
        yield from _iter_children(top)


def _iter_children(dirpath: str) -> Iterator[TreeNode]:
    try:
        with os.scandir(dirpath) as it:
            names = sorted(e.name for e in it)
    except OSError as exc:
        logger.warning(f"cannot read directory {dirpath}: {exc}")
        return
    prefix = dirpath if dirpath.endswith(os.sep) else dirpath + os.sep
    for name in names:
        path = prefix + name
        try:
            st = os.lstat(path)
        except OSError as exc:
            logger.warning(f"cannot stat {path}: {exc}")
            continue
        yield TreeNode(path, st, len(prefix))
        if stat.S_ISDIR(st.st_mode):
            yield from _iter_children(path)


def walk(top: str, visit: Callable[[TreeNode], Optional[bool]]) -> None:
    """Call ``visit`` for each node of ``top`` in walk order.

    A truthy return value stops the walk and raises WalkAborted. Exceptions
    raised by ``visit`` propagate unchanged.
    """
    for node in iter_tree(top):
        if visit(node):
            raise WalkAborted(f"walk aborted at {node.path}")
