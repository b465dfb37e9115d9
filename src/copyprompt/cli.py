"""
CLI entrypoint for copyprompt package.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from colorama import Fore

from . import __version__
from .core import (
    build_bundle,
    build_config,
    log,
    resolve_root,
    scan_files,
    split_include,
    write_bundle,
    BundleConfig,
    ClipboardError,
    ConfigurationError,
    OutputError,
)
from .tools import (
    default_tree_renderer,
    ClipboardWriter,
    PyperclipClipboard,
    GitTrackedFiles,
    TreeRenderer,
)

MANUAL = """\
copyprompt - copy a project's file tree and file contents to the clipboard

SYNOPSIS
    copyprompt [-P PATH] [-F FILE] [-M PATTERNS] [-g] [-c] [-v]

DESCRIPTION
    Builds a single text bundle made of a short preamble, the file tree of
    PATH and the contents of every selected file, each introduced by a
    "--- File: <path> ---" header. The bundle is copied to the clipboard
    and, with -F, also written to FILE.

OPTIONS
    -P PATH      Directory to bundle (default: the current directory).
    -F FILE      Also write the bundle to FILE.
    -M PATTERNS  Only include files matching one of the |-separated globs,
                 e.g. -M "*.py|*.md". Wildcards * and ? are supported;
                 character classes ([...]) are rejected.
    -g           Only consider files tracked by git. PATH must be inside a
                 git working tree.
    -c           Match patterns case-sensitively (default: insensitive).
    -v           Print progress information.

EXCLUSIONS
    Built-in defaults (.git, node_modules, __pycache__, .env, ...) are always
    excluded, followed by the entries of .gitignore and .copypromptignore in
    the current directory and in PATH. Blank lines and lines starting with #
    are ignored; a leading / is dropped. A file that matches both an include
    and an exclude pattern is excluded.

CLIPBOARD
    The first available of pbcopy, wl-copy, xclip, xsel, clip.exe and clip
    is used. The run fails when none is installed.

EXIT STATUS
    0 on success, 1 on any error.
"""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


class _ManualAction(argparse.Action):
    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings=option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        sys.stdout.write(MANUAL)
        parser.exit(0)


def _build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="copyprompt",
        description="Copy a project's file tree + file contents to the clipboard.",
    )
    p.add_argument("-P", dest="path", type=Path, default=Path("."), help="Directory to bundle (default: .)")
    p.add_argument("-F", dest="out", type=Path, help="Also write the bundle to this file")
    p.add_argument("-M", dest="match", metavar="PATTERNS", help="Include globs, separated by '|'")
    p.add_argument("-g", dest="git", action="store_true", help="Only use files tracked by git")
    p.add_argument("-c", dest="case_sensitive", action="store_true", help="Case-sensitive pattern matching")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    p.add_argument("--manual", action=_ManualAction, help="Show the full manual and exit")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def run(
    config: BundleConfig,
    renderer: Optional[TreeRenderer] = None,
    lister: Optional[GitTrackedFiles] = None,
    clipboard: Optional[ClipboardWriter] = None,
) -> None:
    """Enumerate, bundle, copy, optionally save, then print a summary."""
    renderer = renderer or default_tree_renderer()
    clipboard = clipboard or PyperclipClipboard()

    if config.verbose:
        mode = "git tracked files" if config.git_only else "filesystem"
        log(f"Scanning {config.root} ({mode}) …")

    files = scan_files(config, lister=lister)
    tree = renderer.render(config.root, files)
    bundle = build_bundle(files, config.root, tree, verbose=config.verbose)
    if config.verbose:
        log(f"{len(files)} files selected, {len(bundle.files)} concatenated.")

    clipboard.copy(bundle.text)

    if config.out_path is not None:
        written = write_bundle(bundle.text, config.out_path)
        if config.verbose:
            log(f"Done → {written}", Fore.GREEN)

    print(f"Prompt bundle built from {config.root}")
    print(bundle.tree)
    print(f"Copied to clipboard ({len(bundle.files)} files, {len(bundle.text)} characters).")
    if config.out_path is not None:
        print(f"Saved to {config.out_path}")


def main(
    argv: Optional[List[str]] = None,
    renderer: Optional[TreeRenderer] = None,
    lister: Optional[GitTrackedFiles] = None,
    clipboard: Optional[ClipboardWriter] = None,
) -> None:
    parser = _build_parser()
    try:
        ns = parser.parse_args(argv)
        lister = lister or GitTrackedFiles()

        try:
            if ns.git:
                lister.ensure_work_tree(resolve_root(ns.path))
            config = build_config(
                ns.path,
                include=split_include(ns.match),
                git_only=ns.git,
                case_sensitive=ns.case_sensitive,
                out_path=ns.out,
                verbose=ns.verbose,
            )
        except ConfigurationError as e:
            parser.error(str(e))

        try:
            run(config, renderer=renderer, lister=lister, clipboard=clipboard)
        except (ConfigurationError, ClipboardError, OutputError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
