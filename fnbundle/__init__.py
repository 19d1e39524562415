from .archive import archive, create_zip_archive, load_zip_archive, open_function_code, write_entries
from .errors import (
    ArchiveCancelledError,
    ArchiveError,
    EntryIOError,
    FinalizeError,
    MalformedArchiveError,
    TraversalError,
)
from .models import ArchiveArtifact, ArchiveEntry, SourceEntry
from .observer import ArchiveObserver, LoggingObserver
from .path_filter import PathFilter, matches

__version__ = "0.1.0"
