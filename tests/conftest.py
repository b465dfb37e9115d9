"""
Pytest configuration and shared fixtures.

Provides a small on-disk project and fakes for the external programs so the
pipeline can run without a clipboard, ``tree`` or ``git``.
"""

from pathlib import Path
from typing import List

import pytest

from copyprompt.tools import AsciiTreeRenderer, ClipboardWriter, GitTrackedFiles


class FakeClipboard(ClipboardWriter):
    def __init__(self):
        self.copied: List[str] = []

    def copy(self, text: str) -> None:
        self.copied.append(text)


class FakeLister(GitTrackedFiles):
    def __init__(self, tracked=(), work_tree=True):
        super().__init__()
        self.tracked = list(tracked)
        self.work_tree = work_tree
        self.listed = 0

    def is_work_tree(self, root: Path) -> bool:
        return self.work_tree

    def list_files(self, root: Path) -> List[str]:
        self.listed += 1
        return list(self.tracked)


def write(root: Path, rel: str, content: str = "") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path, monkeypatch) -> Path:
    """
    A project directory that is also the working directory:

        x.txt  y.py  z.md  docs/readme.md  node_modules/pkg/index.js
    """
    root = tmp_path / "project"
    write(root, "x.txt", "x contents\n")
    write(root, "y.py", "print('y')\n")
    write(root, "z.md", "# z\n")
    write(root, "docs/readme.md", "docs\n")
    write(root, "node_modules/pkg/index.js", "module.exports = {}\n")
    monkeypatch.chdir(root)
    return root.resolve()


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def renderer() -> AsciiTreeRenderer:
    return AsciiTreeRenderer()
