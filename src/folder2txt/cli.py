"""
CLI entrypoint for folder2txt package.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from colorama import Fore, Style, init as colorama_init

from . import __version__
from .core import (
    DEFAULT_OUTPUT,
    DEFAULT_THRESHOLD_MB,
    Config,
    EventHook,
    Folder2txtError,
    process_files,
    write_output,
)

colorama_init()

_DEBUG_MESSAGES = {
    "ignored": "Skipping ignored item",
    "output": "Skipping output item",
    "too-large": "Skipping large file",
    "binary": "Skipping binary file",
    "unreadable": "Could not read",
    "included": "Added",
}


def _say(msg: str, color: str = "", err: bool = False) -> None:
    text = f"[folder2txt] {msg}"
    if color:
        text = color + text + Style.RESET_ALL
    print(text, file=sys.stderr if err else sys.stdout)


def _debug_hook() -> EventHook:
    def hook(kind, path, error=None):
        msg = f"{_DEBUG_MESSAGES.get(kind, kind)}: {path}"
        if error is not None:
            msg += f" ({error})"
        _say(msg, Fore.YELLOW if kind != "included" else "")

    return hook


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="folder2txt",
        description="Combine the text files under a folder into a single output file.",
    )
    p.add_argument("--root", type=Path, default=Path("."), help="Folder to process")
    p.add_argument(
        "-o",
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f"Output file (default: {DEFAULT_OUTPUT})",
    )
    p.add_argument(
        "-t",
        "--threshold",
        type=float,
        default=DEFAULT_THRESHOLD_MB,
        help=f"File size threshold in MB (default: {DEFAULT_THRESHOLD_MB})",
    )
    p.add_argument(
        "--include-all",
        action="store_true",
        help="Include all files regardless of size or type",
    )
    p.add_argument("--debug", action="store_true", help="Log every skipped or added item")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)
        config = Config(
            threshold=ns.threshold,
            include_all=ns.include_all,
            output_path=ns.output,
        )
        hook = _debug_hook() if ns.debug else None

        if ns.debug:
            _say(f"Processing {ns.root.resolve()} …")

        try:
            snap = process_files(ns.root, config, on_event=hook)
        except Folder2txtError:
            _say("Failed to process files", Fore.RED, err=True)
            raise

        _say(
            f"Processed {snap.processed} files ({snap.skipped} skipped)",
            Fore.GREEN,
        )
        if not snap.content:
            raise Folder2txtError("No content was generated")

        target = write_output(snap.content, config.output_path)
        _say(f"Output saved to {Fore.GREEN}{target}{Style.RESET_ALL}")

    except Folder2txtError as e:
        print(f"{Fore.RED}Error:{Style.RESET_ALL} {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
