"""
Dated log file access.

A channel directory holds one file per day named ``YYYY-MM-DD.log`` or
``YYYY-MM-DD.log.zst``. Compressed files are decoded transparently.
"""

from __future__ import annotations

import io

from pathlib import Path

import zstandard

from irclogs.core.constants import DATE_LENGTH, LOG_SUFFIXES


def date_from_filename(name: str) -> str | None:
    """Return the date stem of a log file name, or None if it is not a dated log."""
    for suffix in LOG_SUFFIXES:
        if name.endswith(suffix):
            stem = name[: -len(suffix)]
            return stem if len(stem) == DATE_LENGTH else None
    return None


def list_dates(directory: Path) -> list[str]:
    """Sorted dates that have a log file in ``directory``."""
    try:
        entries = list(directory.iterdir())
    except OSError:
        return []
    dates = {date for entry in entries if entry.is_file() and (date := date_from_filename(entry.name))}
    return sorted(dates)


def resolve_log_path(directory: Path, date: str) -> Path | None:
    """Path of the log for ``date`` in ``directory``; the plain file wins over the compressed one."""
    for suffix in LOG_SUFFIXES:
        candidate = directory / f"{date}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def read_log_file(path: Path) -> str:
    """Read a log file as text, decompressing ``.zst`` files.

    Undecodable bytes are replaced rather than failing the whole file.

    Raises:
        OSError: If the file cannot be read or a compressed file is corrupt.
    """
    if path.suffix == ".zst":
        try:
            with path.open("rb") as fh:
                reader = zstandard.ZstdDecompressor().stream_reader(fh)
                with io.TextIOWrapper(reader, encoding="utf-8", errors="replace") as text:
                    return text.read()
        except zstandard.ZstdError as e:
            raise OSError(f"corrupt compressed log {path.name}: {e}") from e
    return path.read_text(encoding="utf-8", errors="replace")


def split_lines(content: str) -> list[str]:
    """Split file content into lines without terminators (a final newline adds no empty line).

    Only ``\\n`` (optionally preceded by ``\\r``) ends a line. ``str.splitlines``
    would also split on ``\\x1d``, which IRC uses for italics.
    """
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]
