"""Tests for reading command scripts from disk."""

from __future__ import annotations

from pathlib import Path

import pytest

from storectl.infrastructure.script_source import read_script


class TestReadScript:
    def test_numbers_lines_from_one(self, tmp_path: Path) -> None:
        script = tmp_path / "s.script"
        script.write_text("define_basket B1\n\n# note\r\ndefine_basket B2", encoding="utf-8")
        assert list(read_script(script)) == [
            (1, "define_basket B1"),
            (2, ""),
            (3, "# note"),
            (4, "define_basket B2"),
        ]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            list(read_script(tmp_path / "missing.script"))

    def test_decode_error_after_good_lines(self, tmp_path: Path) -> None:
        """Lines before the undecodable byte are still yielded."""
        script = tmp_path / "bad.script"
        script.write_bytes(b"define_basket B1\n" + b"x" * 10_000 + b"\n\xff\xfe\n")
        lines = []
        with pytest.raises(UnicodeDecodeError):
            for item in read_script(script, encoding="utf-8"):
                lines.append(item)
        assert lines[0] == (1, "define_basket B1")

    def test_encoding_option(self, tmp_path: Path) -> None:
        script = tmp_path / "latin.script"
        script.write_bytes("define_store S1 Caf\xe9 here\n".encode("latin-1"))
        assert list(read_script(script, encoding="latin-1")) == [(1, "define_store S1 Caf\xe9 here")]
