"""Tests for checktree.buffer."""

from __future__ import annotations

from pathlib import Path

import pytest

from checktree.buffer import EditRejected, FileBuffer, MemoryBuffer


class TestMemoryBuffer:
    def test_line_access(self) -> None:
        buf = MemoryBuffer("a\r\nb\nc")
        assert buf.line_count() == 3
        assert buf.line_at(0) == "a"
        assert buf.line_at(2) == "c"

    def test_line_at_out_of_range(self) -> None:
        with pytest.raises(IndexError):
            MemoryBuffer("a").line_at(1)

    def test_replace_keeps_terminator(self) -> None:
        buf = MemoryBuffer("a\r\nb\nc")
        buf.replace_line(0, "A")
        buf.replace_line(2, "C")
        assert buf.text() == "A\r\nb\nC"

    def test_replace_notifies(self) -> None:
        seen: list[str] = []
        buf = MemoryBuffer("a\nb\n", on_change=seen.append)
        buf.replace_line(1, "B")
        assert seen == ["a\nB\n"]

    def test_set_text_notifies(self) -> None:
        seen: list[str] = []
        buf = MemoryBuffer("a", on_change=seen.append)
        buf.set_text("b")
        assert seen == ["b"]

    def test_replace_rejects_multiline(self) -> None:
        with pytest.raises(EditRejected):
            MemoryBuffer("a\nb").replace_line(0, "x\ny")

    def test_replace_out_of_range_rejected(self) -> None:
        with pytest.raises(EditRejected, match="out of range"):
            MemoryBuffer("a").replace_line(3, "x")

    def test_closed_buffer_rejects(self) -> None:
        buf = MemoryBuffer("a")
        buf.close()
        assert buf.closed
        with pytest.raises(EditRejected, match="closed"):
            buf.replace_line(0, "b")
        with pytest.raises(EditRejected):
            buf.set_text("b")


class TestFileBuffer:
    def test_reads_crlf_verbatim(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.md"
        doc.write_bytes(b"a\r\nb\r\n")
        assert FileBuffer(doc).text() == "a\r\nb\r\n"

    def test_replace_writes_file(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.md"
        doc.write_bytes("# Ünïcode\n- [ ] a\n".encode("utf-8"))
        FileBuffer(doc).replace_line(1, "- [x] a")
        assert doc.read_text(encoding="utf-8") == "# Ünïcode\n- [x] a\n"

    def test_rereads_each_time(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.md"
        doc.write_text("one\n")
        buf = FileBuffer(doc)
        doc.write_text("one\ntwo\n")
        assert buf.line_count() == 2

    def test_missing_file_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(EditRejected, match="cannot read"):
            FileBuffer(tmp_path / "missing.md").replace_line(0, "x")
