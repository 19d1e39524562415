import io
import zipfile
from pathlib import Path

import pytest


def write_tree(root: Path, files: dict) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for rel, data in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            data = data.encode("utf-8")
        p.write_bytes(data)
    return root


def _zip_contents(data: bytes) -> dict:
    with zipfile.ZipFile(io.BytesIO(data)) as z:
        return {name: z.read(name) for name in z.namelist()}


@pytest.fixture
def make_tree(tmp_path: Path):
    def _make(files: dict, name: str = "src") -> Path:
        return write_tree(tmp_path / name, files)
    return _make


@pytest.fixture
def sample_tree(make_tree) -> Path:
    return make_tree({
        "a.txt": "alpha\n",
        "sub/b.txt": "bravo\n" * 100,
        "sub/c.log": "noise\n",
    })


@pytest.fixture
def unzip():
    return _zip_contents
