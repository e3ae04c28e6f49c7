from __future__ import annotations

import os
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional

from .constants import BLOCK_SIZE, TRAILER_SIZE
from .errors import ArchiveIOError, TarbackError, TruncatedArchive
from .header import Header, decode_header


@dataclass
class Member:
    header: Header
    offset: int        # header block offset
    data_offset: int   # first data byte (regular files)

    @property
    def next_offset(self) -> int:
        return self.data_offset + self.header.data_blocks * BLOCK_SIZE


def read_exact(f: BinaryIO, n: int, what: str = "data") -> bytes:
    b = f.read(n)
    if len(b) != n:
        raise TruncatedArchive(f"unexpected end of archive while reading {what}")
    return b


class ArchiveReader:
    """Sequential reader for archives produced by ArchiveWriter.

    The logical end of the archive is its length minus the 1024-byte zero
    trailer; scanning stops there without looking for an end marker.
    """
    def __init__(self, path: str):
        self.path = path
        self.f: Optional[BinaryIO] = None
        self.size = 0
        self.end = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        try:
            self.f = open(self.path, "rb")
        except OSError as exc:
            raise ArchiveIOError(f"cannot open archive {self.path}: {exc.strerror}") from exc
        try:
            self._check_layout()
        except (TarbackError, OSError):
            self.close()
            raise

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def _check_layout(self):
        assert self.f is not None
        self.size = os.fstat(self.f.fileno()).st_size
        if self.size < TRAILER_SIZE or self.size % BLOCK_SIZE:
            raise TruncatedArchive(
                f"{self.path}: length {self.size} is not a whole number of {BLOCK_SIZE}-byte blocks ending in a trailer"
            )
        self.end = self.size - TRAILER_SIZE
        self.f.seek(self.end)
        if read_exact(self.f, TRAILER_SIZE, "trailer").count(0) != TRAILER_SIZE:
            raise TruncatedArchive(f"{self.path}: missing end-of-archive trailer")

    def members(self) -> Iterator[Member]:
        """Decode headers from offset 0 up to the logical end."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        cursor = 0
        while cursor < self.end:
            self.f.seek(cursor)
            raw = read_exact(self.f, BLOCK_SIZE, f"header at offset {cursor}")
            hdr = decode_header(raw, cursor)
            member = Member(hdr, cursor, cursor + BLOCK_SIZE)
            if member.next_offset > self.end:
                raise TruncatedArchive(f"data for {hdr.name} runs past the end of the archive")
            yield member
            cursor = member.next_offset

    def copy_data(self, member: Member, dst: BinaryIO) -> int:
        """Copy a regular file's data to ``dst``: whole blocks, then the remainder."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        if member.header.is_dir:
            return 0
        self.f.seek(member.data_offset)
        blocks, remainder = divmod(member.header.size, BLOCK_SIZE)
        for _ in range(blocks):
            dst.write(read_exact(self.f, BLOCK_SIZE, member.header.name))
        if remainder:
            dst.write(read_exact(self.f, remainder, member.header.name))
        return member.header.size
