from __future__ import annotations

import logging
import os
import shutil
import stat
import sys
import tempfile
import time
import zipfile
import zlib
from datetime import datetime
from typing import BinaryIO, Callable, Iterable, Optional, Protocol, Union

from .errors import (
    ArchiveCancelledError,
    ArchiveError,
    EntryIOError,
    FinalizeError,
    MalformedArchiveError,
)
from .models import ArchiveArtifact, ArchiveEntry, SourceEntry
from .observer import ArchiveObserver, LoggingObserver
from .path_filter import PathFilter
from .walker import iter_source_entries

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

# zip stores DOS timestamps
ZIP_MIN_DATE_TIME = (1980, 1, 1, 0, 0, 0)
ZIP_MAX_DATE_TIME = (2107, 12, 31, 23, 59, 58)

Opener = Callable[[str], BinaryIO]
Excludes = Union[PathFilter, Iterable[str]]


class Cancel(Protocol):
    def is_set(self) -> bool: ...


def _open_source(path: str) -> BinaryIO:
    return open(path, "rb")


def _as_filter(excludes: Optional[Excludes]) -> PathFilter:
    if isinstance(excludes, PathFilter):
        return excludes
    return PathFilter(excludes or ())


def _date_time(mtime: float) -> tuple:
    dt = tuple(time.localtime(mtime)[:6])
    return min(max(dt, ZIP_MIN_DATE_TIME), ZIP_MAX_DATE_TIME)


def _zip_info(entry: SourceEntry) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(entry.relpath, date_time=_date_time(entry.mtime))
    info.create_system = 3
    info.external_attr = (entry.mode & 0xFFFF) << 16
    info.compress_type = zipfile.ZIP_DEFLATED
    # lets zipfile pick zip64 up front for large files
    info.file_size = entry.size
    return info


def _entry_from_info(info: zipfile.ZipInfo) -> ArchiveEntry:
    mode = info.external_attr >> 16
    if not mode:
        mode = stat.S_IFREG | 0o644
    return ArchiveEntry(
        name=info.filename,
        mode=mode,
        size=info.file_size,
        modified=datetime(*info.date_time),
        compress_type=info.compress_type,
    )


def write_entries(
    zf: zipfile.ZipFile,
    entries: Iterable[SourceEntry],
    path_filter: PathFilter,
    observer: ArchiveObserver,
    opener: Opener = _open_source,
    cancel: Optional[Cancel] = None,
) -> list[ArchiveEntry]:
    """Stream every non-directory, non-excluded entry into ``zf``.

    Works on any iterable of :class:`SourceEntry`, so the entries do not have
    to come from a real filesystem walk as long as ``opener`` can read them.
    """
    written: list[ArchiveEntry] = []
    seen: set[str] = set()
    for entry in entries:
        if cancel is not None and cancel.is_set():
            raise ArchiveCancelledError(f"archive build cancelled before {entry.relpath}")
        if entry.is_dir:
            continue
        if path_filter.matches(entry.relpath):
            observer.entry_skipped(entry.relpath, "excluded")
            continue
        if entry.relpath in seen:
            raise ArchiveError(f"duplicate entry name {entry.relpath} from {entry.path}")
        seen.add(entry.relpath)

        info = _zip_info(entry)
        try:
            with opener(entry.path) as src:
                with zf.open(info, "w") as dst:
                    shutil.copyfileobj(src, dst, CHUNK_SIZE)
        except OSError as e:
            raise EntryIOError(f"failed to add {entry.path} as {entry.relpath}: {e}") from e

        archived = ArchiveEntry(
            name=info.filename,
            mode=entry.mode,
            size=info.file_size,
            modified=datetime(*info.date_time),
        )
        observer.entry_added(archived)
        written.append(archived)
    return written


def create_zip_archive(
    src: str,
    excludes: Optional[Excludes] = None,
    observer: Optional[ArchiveObserver] = None,
    follow_symlinks: bool = True,
    cancel: Optional[Cancel] = None,
) -> ArchiveArtifact:
    """Build a deflated zip of ``src`` into a temporary file.

    ``src`` may be a directory or a single file; a single file becomes the
    only entry, named by its basename. The returned artifact is rewound and
    belongs to the caller. On any error the temporary file is closed before
    the exception propagates.
    """
    observer = observer or LoggingObserver()
    path_filter = _as_filter(excludes)
    observer.build_started(src)

    try:
        tmpfile = tempfile.TemporaryFile(prefix="archive", suffix=".zip")
    except OSError as e:
        raise EntryIOError(f"failed to open temp file: {e}") from e

    w = None
    try:
        w = zipfile.ZipFile(tmpfile, "w", compression=zipfile.ZIP_DEFLATED)
        source = iter_source_entries(src, follow_symlinks=follow_symlinks, on_skip=observer.entry_skipped)
        entries = write_entries(w, source, path_filter, observer, cancel=cancel)
        try:
            w.close()
        except OSError as e:
            raise FinalizeError(f"failed to create zip archive from {src}: {e}") from e
        size = tmpfile.seek(0, os.SEEK_END)
        tmpfile.seek(0)
    except BaseException:
        if w is not None:
            # abandon the writer so it never finalizes into a closed file
            w.fp = None
        tmpfile.close()
        raise

    observer.build_finished(size, len(entries))
    return ArchiveArtifact(fileobj=tmpfile, size=size, entries=entries)


def load_zip_archive(src: str, observer: Optional[ArchiveObserver] = None) -> ArchiveArtifact:
    """Check that ``src`` is a sound zip and reopen it for reading."""
    observer = observer or LoggingObserver()
    logger.info("reading zip archive from %s", src)
    try:
        with zipfile.ZipFile(src) as r:
            bad = r.testzip()
            infos = [i for i in r.infolist() if not i.is_dir()]
    except (zipfile.BadZipFile, EOFError, zlib.error, RuntimeError, NotImplementedError) as e:
        raise MalformedArchiveError(f"failed to open zip file {src}: {e}") from e
    except OSError as e:
        raise EntryIOError(f"failed to open zip file {src}: {e}") from e
    if bad is not None:
        raise MalformedArchiveError(f"zip file {src} has a corrupt member: {bad}")

    entries = [_entry_from_info(i) for i in infos]
    for entry in entries:
        observer.entry_listed(entry)

    try:
        fh = open(src, "rb")
    except OSError as e:
        raise EntryIOError(f"failed to open {src}: {e}") from e
    size = os.fstat(fh.fileno()).st_size
    observer.archive_loaded(src, size)
    return ArchiveArtifact(fileobj=fh, size=size, entries=entries)


def open_function_code(
    src: str,
    excludes: Optional[Excludes] = None,
    observer: Optional[ArchiveObserver] = None,
    follow_symlinks: bool = True,
    cancel: Optional[Cancel] = None,
) -> ArchiveArtifact:
    """A directory is zipped; any other path is taken as a ready-made zip."""
    if os.path.isdir(src):
        return create_zip_archive(src, excludes, observer, follow_symlinks=follow_symlinks, cancel=cancel)
    return load_zip_archive(src, observer)


def _dest_relpath(src: str, dest: str) -> Optional[str]:
    if not os.path.isdir(src):
        return None
    src_abs = os.path.abspath(src)
    dest_abs = os.path.abspath(dest)
    if os.path.commonpath([src_abs, dest_abs]) != src_abs:
        return None
    return os.path.relpath(dest_abs, src_abs).replace(os.sep, "/")


def _write_file(artifact: ArchiveArtifact, dest: str) -> None:
    dest_dir = os.path.dirname(os.path.abspath(dest))
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".fnbundle-", suffix=".zip", dir=dest_dir)
    except OSError as e:
        raise EntryIOError(f"failed to create {dest}: {e}") from e
    try:
        with os.fdopen(fd, "wb") as out:
            shutil.copyfileobj(artifact.fileobj, out, CHUNK_SIZE)
        os.replace(tmp_path, dest)
    except OSError as e:
        os.unlink(tmp_path)
        raise EntryIOError(f"failed to write {dest}: {e}") from e
    except BaseException:
        os.unlink(tmp_path)
        raise


def archive(
    src: str,
    dest: str,
    excludes: Optional[Iterable[str]] = None,
    observer: Optional[ArchiveObserver] = None,
    follow_symlinks: bool = True,
    cancel: Optional[Cancel] = None,
    stdout: Optional[BinaryIO] = None,
) -> int:
    """Zip ``src`` and copy the result to ``dest`` (``-`` for stdout).

    The destination only appears once it is complete. Returns the number of
    bytes written.
    """
    patterns = list(excludes or ())
    inside = _dest_relpath(src, dest) if dest != "-" else None
    if inside:
        patterns.append(inside)

    with create_zip_archive(src, patterns, observer, follow_symlinks=follow_symlinks, cancel=cancel) as artifact:
        if dest == "-":
            logger.info("writing zip archive to stdout")
            out = stdout if stdout is not None else sys.stdout.buffer
            shutil.copyfileobj(artifact.fileobj, out, CHUNK_SIZE)
            out.flush()
        else:
            logger.info("writing zip archive to %s", dest)
            _write_file(artifact, dest)
        return artifact.size
