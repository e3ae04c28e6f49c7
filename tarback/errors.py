class TarbackError(Exception):
    """Base class for tarback errors."""


# Backup side
class PathTooLong(TarbackError):
    """An archive-relative name does not fit the 100-byte name field."""

    def __init__(self, name: str):
        super().__init__(
            f"path does not fit in the archive name field, try archiving from a deeper root directory: {name}"
        )
        self.name = name


class FieldOverflow(TarbackError):
    pass


class UnreadableSource(TarbackError):
    pass


class InvalidCutoffSpec(TarbackError):
    pass


class StartPathError(TarbackError):
    pass


class WalkAborted(TarbackError):
    pass


# Archive I/O
class ArchiveIOError(TarbackError):
    pass


# Structural damage; fatal to restore
class CorruptArchive(TarbackError):
    pass


class ChecksumMismatch(CorruptArchive):
    def __init__(self, offset: int, stored: int, computed: int):
        super().__init__(
            f"checksum incorrect at offset {offset} (stored {stored:o}, computed {computed:o}), archive possibly corrupted"
        )
        self.offset = offset
        self.stored = stored
        self.computed = computed


class TruncatedArchive(CorruptArchive):
    pass


class UnsafeEntryPath(CorruptArchive):
    pass
