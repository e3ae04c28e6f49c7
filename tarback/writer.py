from __future__ import annotations

import os
import stat
from typing import BinaryIO, Optional

from .constants import BLOCK_SIZE, TRAILER_SIZE, COPY_CHUNK_SIZE, NUL
from .errors import ArchiveIOError
from .header import encode_header
from .logs import logger


class ArchiveWriter:
    """Append-only writer for the 512-byte block archive format.

    Each entry is a header block; regular files follow it with their data,
    zero padded to a block boundary. ``finalize`` appends the zero trailer.
    """
    def __init__(self, out_path: str, chunk_size: int = COPY_CHUNK_SIZE):
        self.out_path = out_path
        self.chunk_size = chunk_size
        self.f: Optional[BinaryIO] = None
        self.offset = 0
        self.finalized = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None and not self.finalized:
            self.discard()
        else:
            self.close()

    def open(self):
        if self.f is not None:
            return
        try:
            self.f = open(self.out_path, "wb")
        except OSError as exc:
            raise ArchiveIOError(f"cannot create archive {self.out_path}: {exc.strerror}") from exc
        self.offset = 0

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def discard(self):
        """Close and delete a partially written archive."""
        self.close()
        try:
            os.remove(self.out_path)
        except FileNotFoundError:
            pass

    def _write(self, data: bytes) -> None:
        assert self.f is not None
        self.f.write(data)
        self.offset += len(data)

    def _pad_to_block(self) -> None:
        rem = self.offset % BLOCK_SIZE
        if rem:
            self._write(NUL * (BLOCK_SIZE - rem))

    def add_dir(self, name: str, st: os.stat_result, header: Optional[bytes] = None) -> int:
        """Append a directory header. Returns the header's archive offset.

        ``header`` is a block already built by encode_header for this entry.
        """
        if not stat.S_ISDIR(st.st_mode):
            raise ValueError(f"not a directory: {name}")
        hdr = header if header is not None else encode_header(st, name)
        off = self.offset
        self._write(hdr)
        return off

    def add_file(self, name: str, st: os.stat_result, src: BinaryIO, header: Optional[bytes] = None) -> int:
        """Append a regular file header followed by its padded data.

        Exactly ``st.st_size`` bytes are stored so the data block always
        matches the header: a source that shrank while being read is zero
        filled, growth past the recorded size is not read.
        """
        if not stat.S_ISREG(st.st_mode):
            raise ValueError(f"not a regular file: {name}")
        hdr = header if header is not None else encode_header(st, name)
        off = self.offset
        self._write(hdr)
        remaining = st.st_size
        while remaining > 0:
            buf = src.read(min(self.chunk_size, remaining))
            if not buf:
                logger.warning(f"{name}: file shrank while archiving, {remaining} byte(s) zero filled")
                while remaining > 0:
                    n = min(self.chunk_size, remaining)
                    self._write(NUL * n)
                    remaining -= n
                break
            self._write(buf)
            remaining -= len(buf)
        self._pad_to_block()
        return off

    def finalize(self):
        if self.finalized:
            return
        self._write(NUL * TRAILER_SIZE)
        assert self.f is not None
        self.f.flush()
        self.finalized = True
