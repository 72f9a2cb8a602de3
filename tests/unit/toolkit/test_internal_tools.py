"""Unit tests for the Python analysis helpers run as subprocesses."""
import subprocess
import sys

import pytest

from stegforge.toolkit.internal_tools import bitplanes, spammimic, zero_width

ZERO = "\u200c"  # ZWNJ reads as 0
ONE = "\u200b"   # ZWSP reads as 1


def _hide(message: str) -> str:
    bits = "".join(f"{ord(ch):08b}" for ch in message)
    return "".join(ONE if b == "1" else ZERO for b in bits)


class TestZeroWidth:
    def test_clean_text(self):
        assert zero_width.analyze("nothing to see here") == ["No zero-width Unicode steganography detected."]

    def test_counts_and_decodes(self):
        text = "Hello" + _hide("Hi") + " world"
        lines = zero_width.analyze(text)

        assert lines[0] == "[!] Zero-width Unicode characters detected!"
        assert "    Total: 16 hidden characters" in lines
        assert "    Possible decoded message:" in lines
        assert lines[-1] == "    Hi"

    def test_too_few_bits_to_decode(self):
        lines = zero_width.analyze("a\u200bb\u200dc")
        assert "    Possible decoded message:" not in lines
        assert "    Total: 2 hidden characters" in lines

    def test_decode_bits_ignores_trailing_partial_byte(self):
        assert zero_width.decode_bits(list("01000001" + "101")) == "A"

    def test_main_reads_file(self, tmp_path, capsys):
        target = tmp_path / "msg.txt"
        target.write_text("x" + _hide("ok"), encoding="utf-8")
        assert zero_width.main([str(target)]) == 0
        assert "ok" in capsys.readouterr().out

    def test_main_usage(self, capsys):
        assert zero_width.main([]) == 2


class TestSpamMimic:
    SPAMMY = (
        "Dear Friend, this is a limited time offer! Click here to act now "
        "and make money from a risk free opportunity."
    )

    def test_score(self):
        total, matches = spammimic.score("Dear Friend, click here")
        assert total == 2
        assert dict(matches) == {"dear friend": 1, "click here": 1}

    def test_below_threshold(self):
        assert spammimic.analyze("Dear Friend, click here") == ["No SpamMimic steganography patterns detected."]

    def test_suspected(self):
        lines = spammimic.analyze(self.SPAMMY)
        assert lines[0] == "[!] SpamMimic-style steganography SUSPECTED!"
        assert any("'click here': 1x" in line for line in lines)
        assert lines[-1].endswith(spammimic.DECODER_URL)

    def test_runs_as_module(self, tmp_path):
        target = tmp_path / "mail.txt"
        target.write_text(self.SPAMMY)
        proc = subprocess.run(
            [sys.executable, "-m", "stegforge.toolkit.internal_tools.spammimic", str(target)],
            capture_output=True, text=True, timeout=30,
        )
        assert proc.returncode == 0
        assert "SUSPECTED" in proc.stdout


class TestBitplanes:
    def test_extracts_24_planes(self, tmp_path):
        Image = pytest.importorskip("PIL.Image")
        src = tmp_path / "tiny.png"
        Image.new("RGB", (4, 4), (0b10101010, 0b01010101, 0xFF)).save(src)

        written = bitplanes.extract_planes(str(src), str(tmp_path))

        assert len(written) == 24
        assert (tmp_path / "Red_bit0.png").exists()
        assert (tmp_path / "Blue_bit7.png").exists()
        with Image.open(tmp_path / "Red_bit1.png") as plane:
            assert plane.getpixel((0, 0)) == 255
        with Image.open(tmp_path / "Red_bit0.png") as plane:
            assert plane.getpixel((0, 0)) == 0

    def test_main_reports_plane_count(self, tmp_path, capsys):
        Image = pytest.importorskip("PIL.Image")
        src = tmp_path / "tiny.png"
        Image.new("RGB", (2, 2)).save(src)
        out = tmp_path / "planes"

        assert bitplanes.main([str(src), str(out)]) == 0
        assert f"Extracted 24 RGB bitplanes to {out}/" in capsys.readouterr().out

    def test_main_usage(self):
        assert bitplanes.main(["only-one-arg"]) == 2
