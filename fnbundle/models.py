from __future__ import annotations

import stat
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, List
from zipfile import ZIP_DEFLATED


@dataclass(frozen=True)
class SourceEntry:
    path: str
    relpath: str  # always slash-separated
    is_dir: bool
    mode: int
    mtime: float
    size: int


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    mode: int
    size: int
    modified: datetime
    compress_type: int = ZIP_DEFLATED

    def describe(self) -> str:
        return f"{stat.filemode(self.mode)} {self.size:10d} {self.modified.isoformat()} {self.name}"


@dataclass
class ArchiveArtifact:
    """A finished zip held in ``fileobj``, positioned at offset 0.

    Whoever receives the artifact owns it and must close it; for a freshly
    built archive that also removes the temporary backing file.
    """

    fileobj: BinaryIO
    size: int
    entries: List[ArchiveEntry] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.entries]

    def read(self, n: int = -1) -> bytes:
        return self.fileobj.read(n)

    def rewind(self) -> None:
        self.fileobj.seek(0)

    @property
    def closed(self) -> bool:
        return self.fileobj.closed

    def close(self) -> None:
        self.fileobj.close()

    def __enter__(self) -> "ArchiveArtifact":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
