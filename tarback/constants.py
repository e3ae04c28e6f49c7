# Block layout
BLOCK_SIZE = 512
TRAILER_SIZE = 2 * BLOCK_SIZE  # two empty header blocks mark the logical end

# Header field widths, in on-disk order (total 512)
NAME_LEN = 100
MODE_LEN = 8
UID_LEN = 8
GID_LEN = 8
SIZE_LEN = 12
MTIME_LEN = 12
CHKSUM_LEN = 8
TYPE_LEN = 1
LINK_LEN = 100
PAD_LEN = 255

CHKSUM_OFFSET = NAME_LEN + MODE_LEN + UID_LEN + GID_LEN + SIZE_LEN + MTIME_LEN  # 148

# Octal digits written into each numeric field
MODE_DIGITS = 6
ID_DIGITS = 6
SIZE_DIGITS = 11
MTIME_DIGITS = 11
CHKSUM_DIGITS = 6

# Entry type markers
DIRTYPE = b"5"
REGTYPE = b"0"

NUL = b"\x00"

COPY_CHUNK_SIZE = 64 * 1024

DEFAULT_ARCHIVE_FORMAT = "backup_%Y-%m-%d_%H-%M-%S.tar"
CUTOFF_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
