"""Tests for source tree traversal."""
import os

import pytest

from fnbundle.errors import TraversalError
from fnbundle.walker import iter_source_entries

needs_symlinks = pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")


def _files(entries):
    return sorted(e.relpath for e in entries if not e.is_dir)


class TestWalk:
    def test_yields_files_and_dirs(self, sample_tree):
        entries = list(iter_source_entries(str(sample_tree)))
        assert _files(entries) == ["a.txt", "sub/b.txt", "sub/c.log"]
        dirs = [e.relpath for e in entries if e.is_dir]
        assert dirs == ["sub"]

    def test_entry_metadata(self, sample_tree):
        entries = {e.relpath: e for e in iter_source_entries(str(sample_tree))}
        b = entries["sub/b.txt"]
        assert b.size == len("bravo\n" * 100)
        assert b.path == os.path.join(str(sample_tree), "sub", "b.txt")
        assert b.mtime == os.stat(b.path).st_mtime

    def test_single_file(self, make_tree):
        root = make_tree({"app.bin": b"\x00\x01"})
        entries = list(iter_source_entries(str(root / "app.bin")))
        assert len(entries) == 1
        assert entries[0].relpath == "app.bin"
        assert not entries[0].is_dir

    def test_empty_dir(self, make_tree):
        root = make_tree({})
        assert list(iter_source_entries(str(root))) == []

    def test_missing_source(self, tmp_path):
        with pytest.raises(TraversalError, match="does-not-exist"):
            list(iter_source_entries(str(tmp_path / "does-not-exist")))


@needs_symlinks
class TestSymlinks:
    def test_follows_file_and_dir_links(self, make_tree, tmp_path):
        outside = make_tree({"shared/lib.py": "x = 1\n", "note.txt": "hi"}, name="outside")
        root = make_tree({"main.py": "print()\n"})
        os.symlink(outside / "shared", root / "shared")
        os.symlink(outside / "note.txt", root / "note.txt")
        entries = list(iter_source_entries(str(root)))
        assert _files(entries) == ["main.py", "note.txt", "shared/lib.py"]

    def test_loop_is_cut(self, make_tree):
        root = make_tree({"sub/f.txt": "f"})
        os.symlink("..", root / "sub" / "loop")
        skipped = []
        entries = list(iter_source_entries(str(root), on_skip=lambda p, r: skipped.append((p, r))))
        assert _files(entries) == ["sub/f.txt"]
        assert skipped == [("sub/loop", "symlink loop")]

    def test_not_following(self, make_tree):
        outside = make_tree({"d/x.txt": "x", "y.txt": "y"}, name="outside")
        root = make_tree({"keep.txt": "k"})
        os.symlink(outside / "d", root / "d")
        os.symlink(outside / "y.txt", root / "y.txt")
        skipped = []
        entries = list(iter_source_entries(str(root), follow_symlinks=False, on_skip=lambda p, r: skipped.append((p, r))))
        assert _files(entries) == ["keep.txt"]
        assert sorted(skipped) == [("d", "symlink"), ("y.txt", "symlink")]

    def test_broken_link_fails(self, make_tree):
        root = make_tree({"ok.txt": "ok"})
        os.symlink(root / "gone.txt", root / "dangling.txt")
        with pytest.raises(TraversalError, match="dangling.txt"):
            list(iter_source_entries(str(root)))

    def test_sibling_loop_is_cut(self, make_tree):
        root = make_tree({"a/f.txt": "f", "b/g.txt": "g"})
        os.symlink(os.path.join("..", "b"), root / "a" / "tob")
        os.symlink(os.path.join("..", "a"), root / "b" / "toa")
        skipped = []
        entries = list(iter_source_entries(str(root), on_skip=lambda p, r: skipped.append((p, r))))
        assert _files(entries) == ["a/f.txt", "b/g.txt"]
        assert sorted(skipped) == [("a/tob", "symlink loop"), ("b/toa", "symlink loop")]
