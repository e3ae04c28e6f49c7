from __future__ import annotations

import os
import re
import stat
import struct
from dataclasses import dataclass

from .constants import (
    BLOCK_SIZE,
    NAME_LEN,
    MODE_LEN,
    UID_LEN,
    GID_LEN,
    SIZE_LEN,
    MTIME_LEN,
    CHKSUM_LEN,
    TYPE_LEN,
    LINK_LEN,
    PAD_LEN,
    CHKSUM_OFFSET,
    MODE_DIGITS,
    ID_DIGITS,
    SIZE_DIGITS,
    MTIME_DIGITS,
    CHKSUM_DIGITS,
    DIRTYPE,
    REGTYPE,
    NUL,
)
from .errors import (
    CorruptArchive,
    ChecksumMismatch,
    FieldOverflow,
    PathTooLong,
    TruncatedArchive,
)


# Header block (512 bytes):
#  - name[100]      relative path, NUL terminated, trailing '/' for directories
#  - mode[8]        st_mode, octal
#  - owner[8]       uid, octal
#  - group[8]       gid, octal
#  - size[12]       st_size, octal (directories carry no data block)
#  - modified[12]   mtime in whole seconds, octal
#  - checksum[8]    octal sum of the block with this field read as spaces
#  - type[1]        '5' directory, '0' regular file
#  - link[100]      reserved, zero
#  - padding[255]   zero
_HEADER_STRUCT = struct.Struct(
    f"{NAME_LEN}s{MODE_LEN}s{UID_LEN}s{GID_LEN}s{SIZE_LEN}s{MTIME_LEN}s{CHKSUM_LEN}s{TYPE_LEN}s{LINK_LEN}s{PAD_LEN}s"
)
assert _HEADER_STRUCT.size == BLOCK_SIZE

_OCTAL_RE = re.compile(r"[0-7]*")


@dataclass
class Header:
    name: str
    mode: int
    uid: int
    gid: int
    size: int
    mtime: int
    typeflag: bytes

    @property
    def is_dir(self) -> bool:
        return self.typeflag == DIRTYPE

    @property
    def path(self) -> str:
        """Archived name without the directory slash."""
        return self.name.rstrip("/") if self.is_dir else self.name

    @property
    def permissions(self) -> int:
        return stat.S_IMODE(self.mode)

    @property
    def data_blocks(self) -> int:
        """Number of 512-byte blocks occupied by this entry's data."""
        if self.is_dir:
            return 0
        return (self.size + BLOCK_SIZE - 1) // BLOCK_SIZE

    def pack(self) -> bytes:
        raw_name = os.fsencode(self.name)
        if len(raw_name) >= NAME_LEN:
            raise PathTooLong(self.name)
        block = _HEADER_STRUCT.pack(
            raw_name,
            _itn(self.mode, MODE_DIGITS, MODE_LEN, "mode"),
            _itn(self.uid, ID_DIGITS, UID_LEN, "owner"),
            _itn(self.gid, ID_DIGITS, GID_LEN, "group"),
            _itn(self.size, SIZE_DIGITS, SIZE_LEN, "size"),
            _itn(self.mtime, MTIME_DIGITS, MTIME_LEN, "modified"),
            b" " * CHKSUM_LEN,
            self.typeflag,
            b"",
            b"",
        )
        chksum = calc_checksum(block)
        # six digits, NUL, and the last space left over from the blanked field
        field = b"%0*o" % (CHKSUM_DIGITS, chksum) + NUL + b" "
        return block[:CHKSUM_OFFSET] + field + block[CHKSUM_OFFSET + CHKSUM_LEN:]


def calc_checksum(block: bytes) -> int:
    """Sum all 512 bytes of a header, counting the checksum field as spaces."""
    return (
        sum(block[:CHKSUM_OFFSET])
        + ord(" ") * CHKSUM_LEN
        + sum(block[CHKSUM_OFFSET + CHKSUM_LEN:BLOCK_SIZE])
    )


def _itn(value: int, digits: int, width: int, field: str) -> bytes:
    """Render a number as zero-padded octal ASCII, NUL filled to ``width``."""
    if value < 0:
        raise FieldOverflow(f"negative value for {field}: {value}")
    text = b"%0*o" % (digits, value)
    if len(text) > width - 1:
        raise FieldOverflow(f"{field} value {value} does not fit in {width} bytes")
    return text + NUL * (width - len(text))


def _nts(raw: bytes) -> bytes:
    p = raw.find(NUL)
    if p != -1:
        raw = raw[:p]
    return raw


def _nti(raw: bytes, field: str, offset: int) -> int:
    text = _nts(raw).strip()
    try:
        s = text.decode("ascii")
    except UnicodeDecodeError:
        raise CorruptArchive(f"invalid {field} field in header at offset {offset}")
    if not _OCTAL_RE.fullmatch(s):
        raise CorruptArchive(f"invalid {field} field in header at offset {offset}: {s!r}")
    return int(s or "0", 8)


def encode_header(st: os.stat_result, name: str) -> bytes:
    """Build the header block for a directory or regular file.

    ``name`` is the archive-relative name; directories get a trailing '/'.
    Raises PathTooLong when the name (with the slash) leaves no room for the
    terminating NUL, and FieldOverflow when a numeric value cannot be stored.
    """
    is_dir = stat.S_ISDIR(st.st_mode)
    return Header(
        name=name + "/" if is_dir else name,
        mode=st.st_mode,
        uid=st.st_uid,
        gid=st.st_gid,
        size=st.st_size,
        mtime=int(st.st_mtime),
        typeflag=DIRTYPE if is_dir else REGTYPE,
    ).pack()


def decode_header(raw: bytes, offset: int = 0) -> Header:
    """Parse and validate a header block read at ``offset``.

    The checksum is verified before any other field is trusted.
    """
    if len(raw) != BLOCK_SIZE:
        raise TruncatedArchive(f"short header at offset {offset}: {len(raw)} of {BLOCK_SIZE} bytes")
    stored = _nti(raw[CHKSUM_OFFSET:CHKSUM_OFFSET + CHKSUM_LEN], "checksum", offset)
    computed = calc_checksum(raw)
    if stored != computed:
        raise ChecksumMismatch(offset, stored, computed)
    name, mode, uid, gid, size, mtime, _chksum, typeflag, _link, _pad = _HEADER_STRUCT.unpack(raw)
    if typeflag not in (DIRTYPE, REGTYPE):
        raise CorruptArchive(f"unsupported entry type {typeflag!r} at offset {offset}")
    return Header(
        name=os.fsdecode(_nts(name)),
        mode=_nti(mode, "mode", offset),
        uid=_nti(uid, "owner", offset),
        gid=_nti(gid, "group", offset),
        size=_nti(size, "size", offset),
        mtime=_nti(mtime, "modified", offset),
        typeflag=typeflag,
    )
