"""
Adapters around the external programs copyprompt relies on: ``tree`` for
rendering, ``git`` for tracked-file listing and ``pyperclip`` for the system
clipboard.

Each concern is a small class with a single method so the pipeline can be
driven with fakes.
"""

from __future__ import annotations

import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pyperclip

from .core import (
    ClipboardError,
    ClipboardUnavailableError,
    NotAWorkingCopyError,
)


# Tree rendering
class TreeRenderer(ABC):
    @abstractmethod
    def render(self, root: Path, paths: Sequence[Path]) -> str:
        ...


class AsciiTreeRenderer(TreeRenderer):
    """
    Return an ASCII tree (à la the Unix ``tree`` utility).

    • Shows every ancestor directory so the hierarchy is complete.
    • Directories are listed before files.
    • Works purely from the *paths* list, so directories left without files
      after filtering never show up.
    """

    def render(self, root: Path, paths: Sequence[Path]) -> str:
        tree: Dict[str, Optional[dict]] = {}
        for p in paths:
            parts = p.relative_to(root).parts
            cur = tree
            for part in parts[:-1]:
                cur = cur.setdefault(part, {})  # type: ignore[assignment]
            cur[parts[-1]] = None

        lines: List[str] = [f"{root.name or root.as_posix()}/"]

        def _walk(node: Dict[str, Optional[dict]], prefix: str = "") -> None:
            items = sorted(node.items(), key=lambda kv: (kv[1] is None, kv[0]))  # dirs first
            for idx, (name, child) in enumerate(items):
                last = idx == len(items) - 1
                connector = "└── " if last else "├── "
                lines.append(f"{prefix}{connector}{name}{'/' if child is not None else ''}")
                if child is not None:
                    _walk(child, prefix + ("    " if last else "│   "))

        _walk(tree)
        return "\n".join(lines)


class TreeCommandRenderer(TreeRenderer):
    """
    Feed the path list to ``tree --fromfile`` and return what it prints.

    Falls back to the ASCII renderer when ``tree`` cannot run or is too old
    to know ``--fromfile`` (before 1.8).
    """

    def __init__(self, executable: str = "tree"):
        self.executable = executable

    def render(self, root: Path, paths: Sequence[Path]) -> str:
        listing = "".join(f"{p.relative_to(root).as_posix()}\n" for p in paths)
        try:
            out = subprocess.run(
                [self.executable, "-a", "--noreport", "--fromfile", "."],
                input=listing,
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=True,
            )
        except (OSError, subprocess.CalledProcessError):
            return AsciiTreeRenderer().render(root, paths)
        return out.stdout.rstrip("\n")


def default_tree_renderer() -> TreeRenderer:
    if shutil.which("tree"):
        return TreeCommandRenderer()
    return AsciiTreeRenderer()


# Tracked files
class GitTrackedFiles:
    """List the files git tracks under a directory."""

    def __init__(self, executable: str = "git"):
        self.executable = executable

    def is_work_tree(self, root: Path) -> bool:
        try:
            proc = subprocess.run(
                [self.executable, "rev-parse", "--is-inside-work-tree"],
                cwd=str(root),
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            return False
        return proc.returncode == 0 and proc.stdout.strip() == "true"

    def ensure_work_tree(self, root: Path) -> None:
        if not self.is_work_tree(root):
            raise NotAWorkingCopyError(f"'{root}' is not inside a git working tree")

    def list_files(self, root: Path) -> List[str]:
        """Tracked paths relative to *root*, restricted to *root*'s subtree."""
        try:
            out = subprocess.run(
                [self.executable, "ls-files", "-z", "--", "."],
                cwd=str(root),
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise NotAWorkingCopyError(f"Could not list tracked files in '{root}': {e}")
        return [line for line in out.stdout.split("\0") if line]


# Clipboard
class ClipboardWriter(ABC):
    @abstractmethod
    def copy(self, text: str) -> None:
        ...


class PyperclipClipboard(ClipboardWriter):
    """Copy through pyperclip, which picks the platform's clipboard mechanism."""

    def copy(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            if "could not find a copy/paste mechanism" in str(e):
                raise ClipboardUnavailableError(f"No clipboard utility found: {e}")
            raise ClipboardError(f"Clipboard copy failed: {e}")
        except OSError as e:
            raise ClipboardError(f"Clipboard copy failed: {e}")
