"""Unit tests for the tool registry and its command builders."""
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from stegforge.base.options import RunOptions
from stegforge.errors import NotApplicable
from stegforge.toolkit.filetype import FileCategory
from stegforge.toolkit.registry import CATEGORIES, CommandSpec, ToolDescriptor, ToolRegistry, build_registry


class FakeWordlists:
    def __init__(self, path=None):
        self.path = path
        self.calls = 0

    def ensure(self):
        self.calls += 1
        return self.path


@pytest.fixture
def options(tmp_path):
    return RunOptions(password="s3cret", output_dir=tmp_path / "out")


@pytest.fixture
def registry(options):
    return build_registry(options, wordlists=FakeWordlists())


class TestBuildRegistry:
    def test_catalog_size_and_unique_names(self, registry):
        names = registry.names()
        assert len(registry) == 23
        assert len(set(names)) == len(names)

    def test_creates_output_dir(self, registry, options):
        assert options.output_path.is_dir()

    def test_deterministic(self, options):
        first = build_registry(options, wordlists=FakeWordlists())
        second = build_registry(options, wordlists=FakeWordlists())
        assert first.names() == second.names()
        assert list(first.descriptors) == list(second.descriptors)

    def test_categories_are_known(self, registry):
        assert {t.category for t in registry} <= set(CATEGORIES)

    def test_general_and_text_tools_apply_to_everything(self, registry):
        for tool in registry:
            if tool.category in ("general", "text"):
                assert tool.applies(FileCategory.UNKNOWN), tool.name
                assert tool.applies(FileCategory.WAV), tool.name

    def test_image_tools_never_apply_to_audio(self, registry):
        for tool in registry:
            if tool.category == "image":
                assert not tool.applies(FileCategory.MP3), tool.name

    def test_lookup_is_case_insensitive(self, registry):
        assert "ZSTEG" in registry
        assert registry.get("Zsteg").name == "zsteg"
        assert registry.get("nope") is None

    def test_duplicate_names_rejected(self):
        tool = ToolDescriptor(name="dup", binary="dup", category="general", build=lambda fp, o: CommandSpec(("dup",)))
        with pytest.raises(ValueError):
            ToolRegistry([tool, tool])


class TestBuilders:
    def test_simple_builder_places_file(self, registry, options):
        spec = registry.get("zsteg").build("/data/a.png", options)
        assert spec.argv == ("zsteg", "/data/a.png", "--all")

    def test_hexdump_avoids_shell(self, registry, options):
        spec = registry.get("hexdump").build("/data/a; rm -rf ~", options)
        assert spec.argv == ("xxd", "-l", "800", "/data/a; rm -rf ~")

    def test_steghide_extract_uses_password_and_artifact(self, registry, options):
        spec = registry.get("steghide-extract").build("/data/a.jpg", options)
        assert "s3cret" in spec.argv
        assert str(options.output_path / "steghide_extracted.txt") in spec.argv

        audio = registry.get("steghide-audio").build("/data/a.wav", options)
        assert str(options.output_path / "steghide_audio_extracted.txt") in audio.argv

    def test_openstego_password_is_optional(self, registry, options, tmp_path):
        assert "-p" in registry.get("openstego").build("/a.png", options).argv
        no_pass = RunOptions(output_dir=tmp_path / "out")
        assert "-p" not in registry.get("openstego").build("/a.png", no_pass).argv

    def test_foremost_clears_previous_output(self, registry, options):
        stale = options.output_path / "foremost"
        stale.mkdir(parents=True)
        (stale / "audit.txt").write_text("old")
        registry.get("foremost").build("/a.png", options)
        assert not stale.exists()

    def test_stegoveritas_gets_fresh_dir(self, registry, options):
        out = options.output_path / "stegoveritas"
        out.mkdir(parents=True)
        (out / "leftover.png").write_bytes(b"x")
        registry.get("stegoveritas").build("/a.png", options)
        assert out.is_dir()
        assert list(out.iterdir()) == []

    def test_identify_falls_back_to_magick(self, registry, options):
        with patch("stegforge.toolkit.registry.first_available", return_value=None):
            spec = registry.get("identify").build("/a.png", options)
        assert spec.argv[:2] == ("magick", "identify")
        assert registry.get("identify").alt_binaries == ("magick",)

    def test_stegseek_without_wordlist_is_not_applicable(self, options):
        wordlists = FakeWordlists(None)
        reg = build_registry(options, wordlists=wordlists)
        with pytest.raises(NotApplicable) as exc_info:
            reg.get("stegseek").build("/a.jpg", options)
        assert exc_info.value.reason == "rockyou.txt wordlist unavailable"
        assert wordlists.calls == 1

    def test_stegseek_with_wordlist(self, options, tmp_path):
        rockyou = tmp_path / "rockyou.txt"
        reg = build_registry(options, wordlists=FakeWordlists(rockyou))
        spec = reg.get("stegseek-audio").build("/a.wav", options)
        assert spec.argv == (
            "stegseek", "/a.wav", str(rockyou), str(options.output_path / "stegseek_audio_extracted.txt"), "--force",
        )

    def test_internal_tools_run_with_current_interpreter(self, registry, options):
        for name, module in (("unicode-steg", "zero_width"), ("spammimic", "spammimic")):
            tool = registry.get(name)
            spec = tool.build("/a.txt", options)
            assert tool.binary == sys.executable
            assert spec.argv == (sys.executable, "-m", f"stegforge.toolkit.internal_tools.{module}", "/a.txt")

    def test_stegsolve_writes_planes_dir(self, registry, options):
        spec = registry.get("stegsolve").build("/a.png", options)
        planes = Path(spec.argv[-1])
        assert planes == options.output_path / "stegsolve_planes"
        assert planes.is_dir()

    def test_command_spec_rejects_empty(self):
        with pytest.raises(ValueError):
            CommandSpec(())
