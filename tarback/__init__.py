"""
tarback: date-filtered backup and restore of directory trees.

Archives use a fixed 512-byte block layout:

- One checksummed header block per entry (name, mode, owner, group, size,
  mtime as octal ASCII; type '5' directory or '0' regular file).
- File data follows its header, zero padded to the next block boundary.
- Two zero blocks (1024 bytes) mark the logical end of the archive.

Backups walk the tree physically and keep only entries modified since a
cutoff, leaving out the archive being written. Restores recreate the tree and
reapply ownership, permissions and modification times.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "header",
    "walker",
    "policy",
    "writer",
    "reader",
    "backup",
    "restore",
    "listing",
]

# Programmatic API: tarback.backup.run_backup / tarback.restore.restore_archive,
# and the CLI functions in tarback.cli (cmd_backup/cmd_restore) which take normal parameters.
