"""
Core logic for copyprompt package.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from colorama import Fore, Style, init as colorama_init

try:
    from pathspec.patterns import GitWildMatchPattern  # type: ignore
except ImportError:  # pragma: no cover
    sys.stderr.write(
        "Error: 'pathspec' library is required. Install via 'pip install pathspec'.\n"
    )
    sys.exit(1)

colorama_init()

# Exceptions
class CopypromptError(Exception): ...
class ConfigurationError(CopypromptError): ...
class InvalidRootError(ConfigurationError): ...
class InvalidPatternError(ConfigurationError): ...
class NotAWorkingCopyError(ConfigurationError): ...
class ConfigFileError(ConfigurationError): ...
class ClipboardError(CopypromptError): ...
class ClipboardUnavailableError(ClipboardError): ...
class OutputError(CopypromptError): ...

# Defaults
DEFAULT_PATTERNS: List[str] = [
    ".git",
    "node_modules",
    "__pycache__",
    ".env",
    ".gitignore",
    ".copypromptignore",
]
GITIGNORE_NAME = ".gitignore"
TOOL_IGNORE_NAME = ".copypromptignore"
SELF_PATTERN = "copyprompt.py"  # exclude the tool itself

PRETEXT = (
    "The following is the file tree of a project directory, "
    "followed by the concatenated contents of its files."
)


def log(msg: str, colour: str = "") -> None:
    """Print a ``[copyprompt]`` progress line, optionally coloured."""
    line = f"[copyprompt] {msg}"
    if colour:
        line = colour + line + Style.RESET_ALL
    print(line)


# Pattern matching
def check_pattern(pat: str, source: str = "") -> None:
    """Reject character classes; *source* names where the pattern came from."""
    if "[" in pat or "]" in pat:
        where = f" ({source})" if source else ""
        raise InvalidPatternError(
            f"Pattern '{pat}'{where} uses a character class ([...]), which is not supported"
        )


class PatternSet:
    """
    An ordered, de-duplicated collection of glob patterns.

    Each pattern is compiled on its own with pathspec's gitwildmatch rules and
    matched against root-relative POSIX paths. Character classes are rejected.
    """

    def __init__(self, patterns: Iterable[str] = (), case_sensitive: bool = False):
        self.case_sensitive = case_sensitive
        self.patterns: Tuple[str, ...] = tuple(merge_patterns([], patterns))
        self._compiled = []
        for pat in self.patterns:
            check_pattern(pat)
            try:
                compiled = GitWildMatchPattern(pat if case_sensitive else pat.lower())
            except ValueError as e:
                raise InvalidPatternError(f"Invalid pattern '{pat}': {e}")
            # negated lines (``!foo``) and no-op lines never exclude anything
            if compiled.include:
                self._compiled.append(compiled)

    def __len__(self) -> int:
        return len(self.patterns)

    def __iter__(self):
        return iter(self.patterns)

    def __repr__(self) -> str:
        return f"PatternSet({list(self.patterns)!r}, case_sensitive={self.case_sensitive})"

    def match(self, rel_path: str) -> bool:
        if not self.case_sensitive:
            rel_path = rel_path.lower()
        return any(p.match_file(rel_path) is not None for p in self._compiled)


def matches(rel_path: str, include: PatternSet) -> bool:
    """True when *rel_path* passes the include filter; an empty set matches all."""
    if not include:
        return True
    return include.match(rel_path)


def excluded(rel_path: str, exclude: PatternSet) -> bool:
    return exclude.match(rel_path)


def split_include(value: Optional[str]) -> List[str]:
    """Split a ``|``-delimited ``-M`` argument into patterns."""
    if not value:
        return []
    return [p.strip() for p in value.split("|") if p.strip()]


# Ignore-file utilities
def load_patterns(path: Path) -> List[str]:
    """Read ignore patterns from *path*; a missing file yields no patterns."""
    if not path.is_file():
        return []
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = fh.readlines()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read ignore file '{path}': {e}")

    patterns: List[str] = []
    for lineno, line in enumerate(raw, 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line[0] in ("/", os.sep):
            line = line[1:]
        check_pattern(line, f"{path}:{lineno}")
        if line and line not in patterns:
            patterns.append(line)
    return patterns


def merge_patterns(existing: Iterable[str], new: Iterable[str]) -> List[str]:
    merged = list(existing)
    for pat in new:
        if pat not in merged:
            merged.append(pat)
    return merged


def build_exclude_patterns(dirs: Sequence[Path]) -> List[str]:
    """
    Merge built-in defaults, every ``.gitignore`` then every
    ``.copypromptignore`` found in *dirs*, and finally the tool's own name.
    """
    patterns = list(DEFAULT_PATTERNS)
    for name in (GITIGNORE_NAME, TOOL_IGNORE_NAME):
        for d in dirs:
            patterns = merge_patterns(patterns, load_patterns(d / name))
    return merge_patterns(patterns, [SELF_PATTERN])


# Configuration
def resolve_root(root: Path) -> Path:
    try:
        resolved = root.expanduser().resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{root}': {e}")
    if not resolved.exists():
        raise InvalidRootError(f"Root directory '{root}' does not exist")
    if not resolved.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")
    return resolved


@dataclass(frozen=True)
class BundleConfig:
    root: Path
    include: PatternSet = field(default_factory=PatternSet)
    exclude: PatternSet = field(default_factory=PatternSet)
    git_only: bool = False
    case_sensitive: bool = False
    out_path: Optional[Path] = None
    verbose: bool = False


def build_config(
    root: Path,
    include: Sequence[str] = (),
    git_only: bool = False,
    case_sensitive: bool = False,
    out_path: Optional[Path] = None,
    verbose: bool = False,
    cwd: Optional[Path] = None,
) -> BundleConfig:
    """Validate the user's choices and assemble an immutable config."""
    root = resolve_root(root)
    include_set = PatternSet(include, case_sensitive=case_sensitive)

    cwd = (cwd or Path.cwd()).resolve()
    ignore_dirs = [cwd] if cwd == root else [cwd, root]
    exclude_set = PatternSet(
        build_exclude_patterns(ignore_dirs), case_sensitive=case_sensitive
    )
    return BundleConfig(
        root=root,
        include=include_set,
        exclude=exclude_set,
        git_only=git_only,
        case_sensitive=case_sensitive,
        out_path=out_path,
        verbose=verbose,
    )


# File enumeration
def _keep(rel: str, config: BundleConfig) -> bool:
    return matches(rel, config.include) and not excluded(rel, config.exclude)


def walk_files(config: BundleConfig) -> List[Path]:
    """Collect files under the root, pruning excluded directories on the way."""
    root = config.root
    kept: List[Path] = []

    def _on_error(e: OSError) -> None:
        # unreadable subdirectories are skipped, an unreadable root is fatal
        if e.filename is None or Path(e.filename) == root:
            raise InvalidRootError(f"Could not scan directory '{root}': {e}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        base = Path(dirpath)
        rel_dir = base.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"
        dirnames[:] = sorted(
            d for d in dirnames if not excluded(f"{prefix}{d}/", config.exclude)
        )
        for name in sorted(filenames):
            if _keep(prefix + name, config):
                kept.append(base / name)
    return sorted(kept)


def scan_files(config: BundleConfig, lister=None) -> List[Path]:
    """
    Return the sorted absolute paths eligible for the bundle.

    In git mode *lister* supplies the tracked files (relative to the root) and
    tracked files deleted from the working tree are dropped; otherwise the
    filesystem is walked.
    """
    if not config.git_only:
        return walk_files(config)

    if lister is None:
        from .tools import GitTrackedFiles

        lister = GitTrackedFiles()
    tracked = lister.list_files(config.root)
    kept = (config.root / rel for rel in tracked if _keep(rel, config))
    return sorted(p for p in kept if p.is_file())


# Bundle building
@dataclass
class Bundle:
    tree: str
    files: List[Path]
    text: str


def _within(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


def build_bundle(
    paths: Iterable[Path],
    root: Path,
    tree: str,
    verbose: bool = False,
) -> Bundle:
    """Concatenate every readable in-scope file after the tree view."""
    root = root.resolve()
    sections: List[str] = []
    included: List[Path] = []
    for p in paths:
        try:
            resolved = p.resolve()
        except (OSError, RuntimeError):
            continue
        if not resolved.is_file() or not _within(resolved, root):
            if verbose:
                log(f"- Skipping {p}", Fore.YELLOW)
            continue
        try:
            raw = p.read_bytes()
        except OSError as e:
            if verbose:
                log(f"! Could not read {p}: {e}", Fore.YELLOW)
            continue
        try:
            rel = p.relative_to(root).as_posix()
        except ValueError:
            rel = resolved.relative_to(root).as_posix()
        sections.append(f"--- File: {rel} ---\n{raw.decode('utf-8', errors='replace')}\n")
        included.append(p)

    text = (
        f"{PRETEXT}\n\n"
        f"File Tree:\n{tree}\n\n"
        f"Concatenated Files:\n" + "".join(sections)
    )
    return Bundle(tree=tree, files=included, text=text)


# Output
def write_bundle(text: str, out_path: Path) -> Path:
    try:
        out_path = out_path.resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output path '{out_path}': {e}")

    if not out_path.parent.exists():
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create directory '{out_path.parent}': {e}")

    try:
        with out_path.open("w", encoding="utf-8", newline="\n") as out_fh:
            out_fh.write(text)
    except OSError as e:
        raise OutputError(f"Could not write to output file '{out_path}': {e}")
    return out_path
