"""Filesystem traversal producing :class:`SourceEntry` records.

Symlink policy: with ``follow_symlinks=True`` a symlinked file is read
through its target and a symlinked directory is descended into. Each real
directory is walked at most once, so links back into the tree (to an
ancestor or to a sibling that links back) are skipped instead of looping.
With ``follow_symlinks=False`` every symlink is reported as skipped.
Anything that is neither a regular file nor a directory is skipped as well.
"""
from __future__ import annotations

import os
import stat
from typing import Callable, Iterator, Optional

from .errors import TraversalError
from .models import SourceEntry

SkipCallback = Callable[[str, str], None]


def _to_slash(relpath: str) -> str:
    return relpath.replace(os.sep, "/")


def _entry(path: str, relpath: str, st: os.stat_result) -> SourceEntry:
    return SourceEntry(
        path=path,
        relpath=_to_slash(relpath),
        is_dir=stat.S_ISDIR(st.st_mode),
        mode=st.st_mode,
        mtime=st.st_mtime,
        size=st.st_size,
    )


def _stat(path: str, follow_symlinks: bool) -> os.stat_result:
    try:
        return os.stat(path, follow_symlinks=follow_symlinks)
    except OSError as e:
        raise TraversalError(f"failed to stat {path}: {e}") from e


def _raise_walk_error(err: OSError) -> None:
    raise TraversalError(f"failed to walk {err.filename}: {err}") from err


def iter_source_entries(
    src: str,
    follow_symlinks: bool = True,
    on_skip: Optional[SkipCallback] = None,
) -> Iterator[SourceEntry]:
    """Yield every directory and regular file under ``src``.

    The root itself is not yielded. A single file yields one entry named by
    its basename. Directories and files come out in sorted order per level.
    """
    def skip(relpath: str, reason: str) -> None:
        if on_skip is not None:
            on_skip(_to_slash(relpath), reason)

    root = _stat(src, follow_symlinks=True)
    if not stat.S_ISDIR(root.st_mode):
        if not stat.S_ISREG(root.st_mode):
            raise TraversalError(f"{src} is neither a directory nor a regular file")
        yield _entry(src, os.path.basename(os.path.normpath(src)), root)
        return

    # (st_dev, st_ino) of every directory scheduled for descent
    visited = {(root.st_dev, root.st_ino)}
    for dirpath, dirnames, filenames in os.walk(src, onerror=_raise_walk_error, followlinks=follow_symlinks):
        keep = []
        for name in sorted(dirnames):
            full = os.path.join(dirpath, name)
            relpath = os.path.relpath(full, src)
            is_link = os.path.islink(full)
            if is_link and not follow_symlinks:
                skip(relpath, "symlink")
                continue
            st = _stat(full, follow_symlinks=True)
            key = (st.st_dev, st.st_ino)
            if key in visited:
                skip(relpath, "symlink loop" if is_link else "already visited")
                continue
            visited.add(key)
            keep.append(name)
            yield _entry(full, relpath, st)
        dirnames[:] = keep

        for name in sorted(filenames):
            full = os.path.join(dirpath, name)
            relpath = os.path.relpath(full, src)
            if os.path.islink(full) and not follow_symlinks:
                skip(relpath, "symlink")
                continue
            st = _stat(full, follow_symlinks=True)
            if not stat.S_ISREG(st.st_mode):
                skip(relpath, "not a regular file")
                continue
            yield _entry(full, relpath, st)
