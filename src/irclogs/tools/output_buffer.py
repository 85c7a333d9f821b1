"""
Per-session output buffer, slug derivation and artifact writing.
"""

from __future__ import annotations

from pathlib import Path

from irclogs.core.constants import DEFAULT_SLUG, OUTPUT_BUFFER_MAX_BYTES, SLUG_MAX_LENGTH

TRUNCATION_NOTE = "output buffer truncated to 100KB"


class OutputBuffer:
    """Growable UTF-8 text region with a hard byte cap.

    After every append the buffer is cut to exactly ``max_bytes`` bytes if it
    grew past that, even when the cut lands inside a line or a multi-byte
    character.
    """

    def __init__(self, max_bytes: int = OUTPUT_BUFFER_MAX_BYTES):
        self.max_bytes = max_bytes
        self._data = bytearray()

    def append(self, text: str) -> bool:
        """Append text; returns True if the cap truncated the buffer."""
        self._data += text.encode("utf-8")
        if len(self._data) > self.max_bytes:
            del self._data[self.max_bytes :]
            return True
        return False

    def clear(self) -> None:
        self._data.clear()

    def is_blank(self) -> bool:
        return not self.text().strip()

    def text(self) -> str:
        return self._data.decode("utf-8", errors="replace")

    def to_bytes(self) -> bytes:
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)


def slugify(title: str) -> str:
    """Derive a file-name slug from a title.

    ASCII letters and digits are lower-cased, ``-`` is kept and every other
    character becomes ``-``. Leading and trailing hyphen runs are trimmed,
    internal runs are kept. The result is capped at 120 characters with any
    trailing hyphen exposed by the cut removed.
    """
    chars = []
    for ch in title:
        lowered = ch.lower() if ch.isascii() else ch
        chars.append(lowered if (lowered.isascii() and lowered.isalnum()) or lowered == "-" else "-")
    slug = "".join(chars).strip("-")
    if len(slug) > SLUG_MAX_LENGTH:
        slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug


def artifact_filename(title: str) -> tuple[str, str]:
    """Return ``(slug, "<slug>.md")``; titles with no usable characters map to ``output``."""
    slug = slugify(title) or DEFAULT_SLUG
    return slug, f"{slug}.md"


def write_artifact(output_dir: Path, filename: str, buffer: OutputBuffer) -> Path:
    """Write the buffer bytes verbatim to ``output_dir/filename``.

    Raises:
        OSError: If the file cannot be written.
    """
    path = output_dir / filename
    path.write_bytes(buffer.to_bytes())
    return path
