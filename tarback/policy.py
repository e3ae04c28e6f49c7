from __future__ import annotations

import os
import stat
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .constants import CUTOFF_DATE_FORMAT
from .errors import InvalidCutoffSpec


@dataclass(frozen=True)
class FilterPolicy:
    """Decide which walked entries go into the archive.

    cutoff: entries modified strictly before this time are left out.
    run_start: captured once when the run begins. Non-directories modified at
        or after it are left out, which keeps the archive being written out of
        itself. Directories are kept because creating the archive inside them
        bumps their mtime.
    """

    cutoff: int = 0
    run_start: Optional[int] = None

    def accepts(self, st: os.stat_result) -> bool:
        mtime = int(st.st_mtime)
        if mtime < self.cutoff:
            return False
        if self.run_start is not None and mtime >= self.run_start and not stat.S_ISDIR(st.st_mode):
            return False
        return True


def _looks_like_date(text: str) -> bool:
    return len(text) >= 17 and text[4] == "-" and text[7] == "-" and text[13] == ":" and text[16] == ":"


def resolve_cutoff(text: Optional[str]) -> int:
    """Turn a '-t' argument into a cutoff timestamp.

    Accepts a local date 'YYYY-MM-DD hh:mm:ss' or the path of a reference
    file whose modification time is used. None means the epoch.
    """
    if text is None:
        return 0
    if _looks_like_date(text):
        try:
            when = datetime.strptime(text, CUTOFF_DATE_FORMAT)
        except ValueError as exc:
            raise InvalidCutoffSpec(f"date format not recognised: {text!r} ({exc})")
        return int(time.mktime(when.timetuple()))
    try:
        st = os.stat(text)
    except OSError as exc:
        raise InvalidCutoffSpec(f"not a date and not a readable reference file: {text!r} ({exc.strerror})")
    return int(st.st_mtime)
