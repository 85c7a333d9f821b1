"""Tests for the output buffer, slugs and artifact writing."""

from __future__ import annotations

from pathlib import Path

import pytest

from irclogs.tools.output_buffer import OutputBuffer, artifact_filename, slugify, write_artifact


class TestOutputBuffer:
    """Tests for OutputBuffer."""

    def test_append_and_text(self) -> None:
        buffer = OutputBuffer()
        assert buffer.append("hello\n") is False
        assert buffer.append("world\n") is False
        assert buffer.text() == "hello\nworld\n"
        assert len(buffer) == 12

    def test_truncates_to_exact_byte_cap(self) -> None:
        """The cap is in bytes and the cut may split a line."""
        buffer = OutputBuffer(max_bytes=10)
        assert buffer.append("12345678") is False
        assert buffer.append("abcdef") is True
        assert buffer.to_bytes() == b"12345678ab"

    def test_truncation_may_split_multibyte_character(self) -> None:
        """Bytes are kept verbatim; text() decodes the partial character leniently."""
        buffer = OutputBuffer(max_bytes=4)
        buffer.append("abcé")  # é is two bytes
        assert buffer.to_bytes() == b"abc\xc3"
        assert buffer.text().startswith("abc")

    def test_clear(self) -> None:
        buffer = OutputBuffer()
        buffer.append("something")
        buffer.clear()
        assert len(buffer) == 0
        assert buffer.is_blank()

    def test_is_blank_ignores_whitespace(self) -> None:
        buffer = OutputBuffer()
        buffer.append("  \n\t\n")
        assert buffer.is_blank()
        buffer.append("x")
        assert not buffer.is_blank()

    def test_default_cap_is_100kb(self) -> None:
        buffer = OutputBuffer()
        assert buffer.append("a" * 100_001) is True
        assert len(buffer) == 100_000


class TestSlugify:
    """Tests for slug derivation."""

    @pytest.mark.parametrize(
        ("title", "slug"),
        [
            ("Latency Report", "latency-report"),
            ("  Build: broken!  ", "build--broken"),
            ("--already-slugged--", "already-slugged"),
            ("a--b", "a--b"),
            ("Café au lait", "caf--au-lait"),
            ("2024 Q1", "2024-q1"),
        ],
    )
    def test_slugify(self, title: str, slug: str) -> None:
        assert slugify(title) == slug

    def test_long_titles_capped_without_trailing_hyphen(self) -> None:
        """A cut exposing a hyphen drops it."""
        title = "a" * 119 + " rest of title"
        slug = slugify(title)
        assert slug == "a" * 119
        assert len(slugify("b" * 300)) == 120

    def test_title_without_usable_characters_maps_to_output(self) -> None:
        assert slugify("!!!") == ""
        assert artifact_filename("!!!") == ("output", "output.md")

    def test_artifact_filename(self) -> None:
        assert artifact_filename("Latency Report") == ("latency-report", "latency-report.md")


class TestWriteArtifact:
    """Tests for write_artifact."""

    def test_writes_buffer_bytes_verbatim(self, tmp_path: Path) -> None:
        buffer = OutputBuffer()
        buffer.append("# Title\n\nbody ✓\n")
        path = write_artifact(tmp_path, "title.md", buffer)
        assert path == tmp_path / "title.md"
        assert path.read_bytes() == buffer.to_bytes()

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        (tmp_path / "same.md").write_text("old", encoding="utf-8")
        buffer = OutputBuffer()
        buffer.append("new")
        write_artifact(tmp_path, "same.md", buffer)
        assert (tmp_path / "same.md").read_text(encoding="utf-8") == "new"

    def test_missing_directory_raises_oserror(self, tmp_path: Path) -> None:
        buffer = OutputBuffer()
        buffer.append("x")
        with pytest.raises(OSError):
            write_artifact(tmp_path / "nope", "x.md", buffer)
