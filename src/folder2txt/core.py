"""
Core logic for folder2txt package.
"""

from __future__ import annotations

import math
import os
import re
import shutil
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

# Third-party dependency
try:
    import pathspec  # type: ignore
    from pathspec.pattern import RegexPattern  # type: ignore
except ImportError:  # pragma: no cover
    sys.stderr.write(
        "Error: 'pathspec' library is required. Install via 'pip install pathspec'.\n"
    )
    sys.exit(1)

# Exceptions
class Folder2txtError(Exception): ...
class ConfigError(Folder2txtError): ...
class InvalidRootError(Folder2txtError): ...
class TraversalError(Folder2txtError): ...
class OutputError(Folder2txtError): ...

PathLike = Union[str, "os.PathLike[str]"]
EventHook = Callable[[str, Path, Optional[BaseException]], None]

SEPARATOR = "=" * 80
DEFAULT_THRESHOLD_MB = 0.1
DEFAULT_OUTPUT = Path("output.txt")


# Configuration
@dataclass(frozen=True)
class Config:
    threshold: float = DEFAULT_THRESHOLD_MB
    include_all: bool = False
    output_path: Path = DEFAULT_OUTPUT

    def __post_init__(self) -> None:
        try:
            threshold = float(self.threshold)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid threshold {self.threshold!r}: {e}") from e
        if math.isnan(threshold) or threshold < 0:
            raise ConfigError(f"Threshold must be >= 0 MB, got {self.threshold!r}")
        object.__setattr__(self, "threshold", threshold)
        object.__setattr__(self, "output_path", Path(self.output_path))

    @property
    def threshold_bytes(self) -> float:
        return self.threshold * 1024 * 1024

    def resolved_output(self) -> Path:
        try:
            return self.output_path.resolve()
        except (OSError, RuntimeError) as e:
            raise ConfigError(
                f"Could not resolve output path '{self.output_path}': {e}"
            ) from e


# Ignore rules
IGNORE_PATTERNS: Tuple[str, ...] = (
    # directories
    "node_modules",
    "vendor",
    ".git",
    ".github",
    # files
    "*.lock",
    "package-lock.json",
    ".env",
)


class IgnoreRule(RegexPattern):
    """
    Name pattern where ``*`` stands for any run of characters.

    The compiled regex is not anchored, so a rule matches any name that
    *contains* it: ``.git`` rejects ``.gitignore`` as well.
    """

    @classmethod
    def pattern_to_regex(cls, pattern: str) -> Tuple[str, bool]:
        body = ".*".join(re.escape(part) for part in pattern.split("*"))
        return f".*{body}", True


IGNORE_SPEC = pathspec.PathSpec.from_lines(IgnoreRule, IGNORE_PATTERNS)


def is_ignored(name: str) -> bool:
    return IGNORE_SPEC.match_file(name)


# Misc helpers
_SNIFF_BYTES = 512
_TEXT_CONTROLS = frozenset(b"\b\t\n\f\r\x1b")
_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def _is_binary(data: bytes) -> bool:
    if not data:
        return False
    if b"\0" in data:
        return True
    suspicious = sum(1 for b in data if b < 0x20 and b not in _TEXT_CONTROLS)
    return suspicious * 10 > len(data)


def is_binary_file(path: PathLike) -> bool:
    """Sniff the head of *path*; raises ``OSError`` when it cannot be read."""
    with Path(path).open("rb") as fh:
        return _is_binary(fh.read(_SNIFF_BYTES))


def format_size(num_bytes: int) -> str:
    value = float(num_bytes)
    unit = 0
    # compare the rounded value so 1023.999 KB reads as 1 MB
    while round(value, 2) >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_UNITS[unit]}"


def format_block(rel_path: str, size: int, content: str) -> str:
    return (
        f"\n{SEPARATOR}\n"
        f"File: {rel_path}\n"
        f"Size: {format_size(size)}\n"
        f"{SEPARATOR}\n\n"
        f"{content}\n"
    )


# Traversal
@dataclass
class Snapshot:
    content: str = ""
    processed: int = 0
    skipped: int = 0


def _resolve_root(root: PathLike) -> Path:
    try:
        resolved = Path(root).resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{root}': {e}") from e
    if not resolved.exists():
        raise InvalidRootError(f"Root directory '{resolved}' does not exist")
    if not resolved.is_dir():
        raise InvalidRootError(f"Root path '{resolved}' is not a directory")
    return resolved


def _list_dir(directory: Path) -> List[os.DirEntry]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise TraversalError(f"Could not list directory '{directory}': {e}") from e


def process_files(
    root: PathLike,
    config: Config,
    on_event: Optional[EventHook] = None,
) -> Snapshot:
    """
    Walk *root* depth-first and render every qualifying file as a block.

    Entries are visited in name order. Ignore rules are checked first, then
    the output file and its directory are left out; directories recurse,
    symlinks and other special files are passed over, and regular files go
    through the size and binary filters unless ``config.include_all`` is
    set. Files that cannot be read or decoded as UTF-8 count as skipped.

    *on_event* receives ``(kind, path, error)`` for every decision, with
    kind one of ``ignored``, ``output``, ``too-large``, ``binary``,
    ``unreadable`` or ``included``.
    """
    root = _resolve_root(root)
    out_path = config.resolved_output()
    out_dir, out_name = out_path.parent, out_path.name
    limit = config.threshold_bytes
    snap = Snapshot()
    blocks: List[str] = []

    def notify(kind: str, path: Path, error: Optional[BaseException] = None) -> None:
        if on_event is not None:
            on_event(kind, path, error)

    def skip(kind: str, path: Path, error: Optional[BaseException] = None) -> None:
        snap.skipped += 1
        notify(kind, path, error)

    def walk(directory: Path) -> None:
        for entry in _list_dir(directory):
            path = directory / entry.name

            if is_ignored(entry.name):
                notify("ignored", path)
                continue

            if path == out_dir or entry.name == out_name:
                notify("output", path)
                continue

            if entry.is_dir(follow_symlinks=False):
                walk(path)
                continue

            if not entry.is_file(follow_symlinks=False):
                continue

            try:
                size = entry.stat(follow_symlinks=False).st_size
                if not config.include_all and size > limit:
                    skip("too-large", path)
                    continue
                if not config.include_all and is_binary_file(path):
                    skip("binary", path)
                    continue
                text = path.read_bytes().decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                skip("unreadable", path, e)
                continue

            blocks.append(format_block(path.relative_to(root).as_posix(), size, text))
            snap.processed += 1
            notify("included", path)

    walk(root)
    snap.content = "".join(blocks)
    return snap


# Output
def _new_file_mode() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask


def write_output(content: str, out_path: PathLike) -> Path:
    """
    Replace *out_path* with *content* (UTF-8) via a uniquely named temporary
    sibling, so no other file in the directory is touched. An existing
    target keeps its permission bits; a new one gets the umask default.
    """
    try:
        target = Path(out_path).resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output path '{out_path}': {e}") from e

    tmp: Optional[Path] = None
    try:
        fd, name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        tmp = Path(name)
        with os.fdopen(fd, "wb") as fh:
            fh.write(content.encode("utf-8"))
        if target.is_file():
            shutil.copymode(target, tmp)
        else:
            os.chmod(tmp, _new_file_mode())
        os.replace(tmp, target)
    except OSError as e:
        if tmp is not None:
            try:
                tmp.unlink()
            except FileNotFoundError:
                pass
        raise OutputError(f"Could not write to output file '{target}': {e}") from e
    return target
