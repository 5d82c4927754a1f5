"""
folder2txt - Combine the text files of a folder tree into a single file.

This package walks a directory depth-first, skips ignored names, binary and
oversized files, and concatenates what remains into one annotated text file,
handy as LLM context or as a quick archive of a codebase.
"""

__version__ = "0.1.0"
__author__ = "folder2txt Team"
