"""
copyprompt - build an LLM prompt bundle from a project directory.

This package renders the file tree of a directory, concatenates the contents
of the selected files after it and places the result on the system clipboard,
optionally saving it to a file as well. Files can be limited to those tracked
by git, filtered with include globs and excluded through .gitignore,
.copypromptignore and built-in defaults.
"""

__version__ = "0.1.0"
__author__ = "copyprompt Team"
