from __future__ import annotations


class ConfigError(Exception):
    pass


class ArchiveError(Exception):
    """Base class for everything that aborts building or loading an archive."""


class TraversalError(ArchiveError):
    pass


class EntryIOError(ArchiveError):
    pass


class FinalizeError(ArchiveError):
    pass


class MalformedArchiveError(ArchiveError):
    pass


class ArchiveCancelledError(ArchiveError):
    pass


class UploadError(Exception):
    pass


class StatusError(Exception):
    pass
