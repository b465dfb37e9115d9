"""
Tests for tree rendering, bundle assembly and file output.
"""

from copyprompt.core import PRETEXT, OutputError, build_bundle, write_bundle
from copyprompt.tools import AsciiTreeRenderer

import pytest

from conftest import write


class TestAsciiTree:
    def test_layout(self, tmp_path):
        root = tmp_path / "proj"
        paths = [root / "b.txt", root / "src" / "pkg" / "m.py", root / "a.txt", root / "src" / "z.py"]
        assert AsciiTreeRenderer().render(root, paths) == "\n".join(
            [
                "proj/",
                "├── src/",
                "│   ├── pkg/",
                "│   │   └── m.py",
                "│   └── z.py",
                "├── a.txt",
                "└── b.txt",
            ]
        )

    def test_empty(self, tmp_path):
        assert AsciiTreeRenderer().render(tmp_path / "proj", []) == "proj/"


class TestBuildBundle:
    def test_text_layout(self, tmp_path):
        a = write(tmp_path, "a.txt", "alpha\n")
        b = write(tmp_path, "sub/b.py", "beta")
        bundle = build_bundle([a, b], tmp_path, "TREE")
        assert bundle.text == (
            f"{PRETEXT}\n\n"
            "File Tree:\nTREE\n\n"
            "Concatenated Files:\n"
            "--- File: a.txt ---\nalpha\n\n"
            "--- File: sub/b.py ---\nbeta\n"
        )
        assert bundle.files == [a, b]
        assert bundle.tree == "TREE"

    def test_missing_files_skipped(self, tmp_path):
        a = write(tmp_path, "a.txt", "alpha\n")
        gone = write(tmp_path, "gone.txt", "bye\n")
        gone.unlink()
        bundle = build_bundle([a, gone], tmp_path, "")
        assert bundle.files == [a]
        assert "gone.txt" not in bundle.text

    def test_out_of_scope_files_skipped(self, tmp_path):
        inside = write(tmp_path, "scope/in.txt", "in\n")
        outside = write(tmp_path, "other/out.txt", "out\n")
        bundle = build_bundle([inside, outside], tmp_path / "scope", "")
        assert bundle.files == [inside]
        assert "out.txt" not in bundle.text

    def test_directories_skipped(self, tmp_path):
        (tmp_path / "dir").mkdir()
        a = write(tmp_path, "a.txt", "a")
        assert build_bundle([tmp_path / "dir", a], tmp_path, "").files == [a]

    def test_each_file_once(self, tmp_path):
        a = write(tmp_path, "a.txt", "a")
        bundle = build_bundle([a], tmp_path, "")
        assert bundle.text.count("--- File: a.txt ---") == 1

    def test_binary_inlined(self, tmp_path):
        blob = tmp_path / "blob.bin"
        blob.write_bytes(b"\x00\x01abc")
        bundle = build_bundle([blob], tmp_path, "")
        assert "--- File: blob.bin ---\n\x00\x01abc\n" in bundle.text


class TestWriteBundle:
    def test_round_trip_bytes(self, tmp_path):
        text = "line one\nüñíçødé\n"
        out = write_bundle(text, tmp_path / "nested" / "out.txt")
        assert out.read_bytes() == text.encode("utf-8")

    def test_unwritable(self, tmp_path):
        target = tmp_path / "dir"
        target.mkdir()
        with pytest.raises(OutputError):
            write_bundle("x", target)
