"""Tool registry: the catalog of steganography analysis tools StegForge can run."""
import logging
import shutil
import sys
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterator, Mapping, Optional, Sequence, Tuple

from stegforge.base.options import RunOptions
from stegforge.errors import NotApplicable
from stegforge.toolkit.filetype import IMAGE_CATEGORIES, FileCategory
from stegforge.toolkit.probe import first_available
from stegforge.toolkit.wordlists import RockyouManager

logger = logging.getLogger(__name__)

# Display / grouping order used by the reporter
CATEGORIES: Tuple[str, ...] = ("general", "image", "audio", "text")

ALL = frozenset()

PYTHON = sys.executable or "python3"
INTERNAL_TOOLS = "stegforge.toolkit.internal_tools"


@dataclass(frozen=True)
class CommandSpec:
    argv: Tuple[str, ...]
    cwd: Optional[str] = None
    env: Optional[Mapping[str, str]] = None

    def __post_init__(self):
        object.__setattr__(self, "argv", tuple(str(a) for a in self.argv))
        if not self.argv:
            raise ValueError("Empty command")

    def display(self) -> str:
        return " ".join(self.argv)


CommandBuilder = Callable[[str, RunOptions], CommandSpec]


@dataclass(frozen=True)
class ToolDescriptor:
    """
    Static definition of one analysis tool.

    ``applies_to`` lists the file categories the tool understands; an empty set
    means every category, ``unknown`` included. ``build`` turns (file path, run
    options) into a CommandSpec, or raises NotApplicable.
    """

    name: str
    binary: str
    category: str
    build: CommandBuilder = field(compare=False)
    applies_to: FrozenSet[FileCategory] = ALL
    alt_binaries: Tuple[str, ...] = ()
    description: str = ""

    def applies(self, category: FileCategory) -> bool:
        return not self.applies_to or category in self.applies_to


class ToolRegistry:
    """Ordered, read-only collection of ToolDescriptors keyed by name."""

    def __init__(self, descriptors: Sequence[ToolDescriptor]):
        self._tools: Tuple[ToolDescriptor, ...] = tuple(descriptors)
        self._by_name: Dict[str, ToolDescriptor] = {}
        for tool in self._tools:
            key = tool.name.lower()
            if key in self._by_name:
                raise ValueError(f"Duplicate tool name in registry: {tool.name}")
            self._by_name[key] = tool

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._by_name

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._by_name.get(name.lower())

    def names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self._tools)

    @property
    def descriptors(self) -> Tuple[ToolDescriptor, ...]:
        return self._tools


# ----------------------------------------------------------------------------
# Command builders
# ----------------------------------------------------------------------------
# Each builder is a plain function of (file path, options). Builders that need
# extra state (artifact names, wordlists) are bound with functools.partial.

def _simple(*args: str) -> CommandBuilder:
    """Builder for tools that take fixed args around the file path ('{file}')."""
    def build(fp: str, opts: RunOptions) -> CommandSpec:
        return CommandSpec(tuple(fp if a == "{file}" else a for a in args))
    return build


def _fresh_dir(path: Path) -> Path:
    shutil.rmtree(path, ignore_errors=True)
    path.mkdir(parents=True, exist_ok=True)
    return path


def build_hexdump(fp: str, opts: RunOptions) -> CommandSpec:
    # First 50 rows of 16 bytes
    return CommandSpec(("xxd", "-l", "800", fp))


def build_foremost(fp: str, opts: RunOptions) -> CommandSpec:
    out_dir = opts.output_path / "foremost"
    # foremost refuses to write into a non-empty directory
    shutil.rmtree(out_dir, ignore_errors=True)
    return CommandSpec(("foremost", "-t", "all", "-i", fp, "-o", str(out_dir)))


def build_steghide_extract(fp: str, opts: RunOptions, artifact: str) -> CommandSpec:
    out_file = opts.output_path / artifact
    return CommandSpec(("steghide", "extract", "-sf", fp, "-p", opts.password, "-xf", str(out_file), "-f"))


def build_steghide_info(fp: str, opts: RunOptions) -> CommandSpec:
    # -p "" answers the passphrase prompt
    return CommandSpec(("steghide", "info", fp, "-p", ""))


def build_identify(fp: str, opts: RunOptions) -> CommandSpec:
    if first_available(("gm",)):
        return CommandSpec(("gm", "identify", "-verbose", fp))
    return CommandSpec(("magick", "identify", "-verbose", fp))


def build_openstego(fp: str, opts: RunOptions) -> CommandSpec:
    out = opts.output_path / "openstego_extracted"
    argv = ["openstego", "extract", "--algorithm", "RandomLSB", "-sf", fp, "-xd", str(out)]
    if opts.password:
        argv += ["-p", opts.password]
    return CommandSpec(tuple(argv))


def build_stegoveritas(fp: str, opts: RunOptions) -> CommandSpec:
    out_dir = _fresh_dir(opts.output_path / "stegoveritas")
    return CommandSpec(("stegoveritas", "-out", str(out_dir), fp))


def build_stegseek(fp: str, opts: RunOptions, artifact: str, wordlists: RockyouManager) -> CommandSpec:
    rockyou = wordlists.ensure()
    if rockyou is None:
        logger.info(f"[{artifact}] no rockyou.txt available, skipping brute force")
        raise NotApplicable("rockyou.txt wordlist unavailable")
    out_file = opts.output_path / artifact
    return CommandSpec(("stegseek", fp, str(rockyou), str(out_file), "--force"))


def build_stegsolve(fp: str, opts: RunOptions) -> CommandSpec:
    out_dir = opts.output_path / "stegsolve_planes"
    out_dir.mkdir(parents=True, exist_ok=True)
    return CommandSpec((PYTHON, "-m", f"{INTERNAL_TOOLS}.bitplanes", fp, str(out_dir)))


def build_wavsteg(fp: str, opts: RunOptions) -> CommandSpec:
    out_file = opts.output_path / "wavsteg_extracted.txt"
    return CommandSpec(("stegolsb", "wavsteg", "-r", "-i", fp, "-o", str(out_file), "-n", "2", "-b", "1000"))


def build_spectrogram(fp: str, opts: RunOptions) -> CommandSpec:
    out_file = opts.output_path / "spectrogram.png"
    return CommandSpec(("sox", fp, "-n", "spectrogram", "-o", str(out_file)))


def _internal(module: str) -> CommandBuilder:
    def build(fp: str, opts: RunOptions) -> CommandSpec:
        return CommandSpec((PYTHON, "-m", f"{INTERNAL_TOOLS}.{module}", fp))
    return build


# ----------------------------------------------------------------------------
# Registry construction
# ----------------------------------------------------------------------------

_STEGHIDE_TYPES = frozenset({FileCategory.JPG, FileCategory.BMP, FileCategory.WAV, FileCategory.AU})
_STEGHIDE_AUDIO = frozenset({FileCategory.WAV, FileCategory.AU})


def build_registry(options: Optional[RunOptions] = None, wordlists: Optional[RockyouManager] = None) -> ToolRegistry:
    """
    Build the tool catalog for one scan.

    The only side effect is creating the output directory. Identical options
    always produce the same descriptors in the same order.
    """
    options = options or RunOptions()
    options.output_path.mkdir(parents=True, exist_ok=True)
    wordlists = wordlists or RockyouManager()

    return ToolRegistry([
        # ========================
        # GENERAL TOOLS
        # ========================
        ToolDescriptor(
            name="file", binary="file", category="general",
            build=_simple("file", "-b", "--mime", "{file}"),
            description="File type identification",
        ),
        ToolDescriptor(
            name="exiftool", binary="exiftool", category="general",
            build=_simple("exiftool", "{file}"),
            description="Metadata extraction",
        ),
        ToolDescriptor(
            name="binwalk", binary="binwalk", category="general",
            build=_simple("binwalk", "{file}"),
            description="Embedded file detection",
        ),
        ToolDescriptor(
            name="strings", binary="strings", category="general",
            build=_simple("strings", "-n", "8", "{file}"),
            description="Printable strings (8+ chars)",
        ),
        ToolDescriptor(
            name="hexdump", binary="xxd", category="general",
            build=build_hexdump,
            description="Hex dump of the first 800 bytes",
        ),
        ToolDescriptor(
            name="foremost", binary="foremost", category="general",
            build=build_foremost,
            description="File carving",
        ),

        # ========================
        # IMAGE TOOLS
        # ========================
        ToolDescriptor(
            name="zsteg", binary="zsteg", category="image",
            applies_to=frozenset({FileCategory.PNG, FileCategory.BMP}),
            build=_simple("zsteg", "{file}", "--all"),
            description="LSB steganography (PNG/BMP)",
        ),
        ToolDescriptor(
            name="steghide-extract", binary="steghide", category="image",
            applies_to=_STEGHIDE_TYPES,
            build=partial(build_steghide_extract, artifact="steghide_extracted.txt"),
            description="steghide extraction with the given passphrase",
        ),
        ToolDescriptor(
            name="steghide-info", binary="steghide", category="image",
            applies_to=_STEGHIDE_TYPES,
            build=build_steghide_info,
            description="steghide embedded data info",
        ),
        ToolDescriptor(
            name="pngcheck", binary="pngcheck", category="image",
            applies_to=frozenset({FileCategory.PNG}),
            build=_simple("pngcheck", "-vtp", "{file}"),
            description="PNG chunk integrity check",
        ),
        ToolDescriptor(
            name="identify", binary="gm", category="image",
            alt_binaries=("magick",),
            applies_to=IMAGE_CATEGORIES,
            build=build_identify,
            description="Image identification and analysis",
        ),
        ToolDescriptor(
            name="jsteg", binary="jsteg", category="image",
            applies_to=frozenset({FileCategory.JPG}),
            build=_simple("jsteg", "reveal", "{file}"),
            description="JPEG steganography (no password)",
        ),
        ToolDescriptor(
            name="openstego", binary="openstego", category="image",
            applies_to=frozenset({FileCategory.PNG}),
            build=build_openstego,
            description="OpenStego RandomLSB extraction",
        ),
        ToolDescriptor(
            name="stegoveritas", binary="stegoveritas", category="image",
            applies_to=IMAGE_CATEGORIES,
            build=build_stegoveritas,
            description="Advanced image steganalysis",
        ),
        ToolDescriptor(
            name="stegseek", binary="stegseek", category="image",
            applies_to=_STEGHIDE_TYPES,
            build=partial(build_stegseek, artifact="stegseek_extracted.txt", wordlists=wordlists),
            description="steghide passphrase cracking (rockyou)",
        ),
        ToolDescriptor(
            name="stegsolve", binary=PYTHON, category="image",
            applies_to=frozenset({FileCategory.PNG, FileCategory.BMP, FileCategory.JPG}),
            build=build_stegsolve,
            description="Stegsolve-like RGB bit plane extraction",
        ),

        # ========================
        # AUDIO TOOLS
        # ========================
        ToolDescriptor(
            name="steghide-audio", binary="steghide", category="audio",
            applies_to=_STEGHIDE_AUDIO,
            build=partial(build_steghide_extract, artifact="steghide_audio_extracted.txt"),
            description="steghide extraction from audio",
        ),
        ToolDescriptor(
            name="steghide-audio-info", binary="steghide", category="audio",
            applies_to=_STEGHIDE_AUDIO,
            build=build_steghide_info,
            description="steghide audio embedded data info",
        ),
        ToolDescriptor(
            name="wavsteg", binary="stegolsb", category="audio",
            applies_to=frozenset({FileCategory.WAV}),
            build=build_wavsteg,
            description="WAV LSB extraction",
        ),
        ToolDescriptor(
            name="sox-spectrogram", binary="sox", category="audio",
            applies_to=frozenset({FileCategory.WAV, FileCategory.MP3, FileCategory.FLAC, FileCategory.OGG}),
            build=build_spectrogram,
            description="Spectrogram rendering",
        ),
        ToolDescriptor(
            name="stegseek-audio", binary="stegseek", category="audio",
            applies_to=_STEGHIDE_AUDIO,
            build=partial(build_stegseek, artifact="stegseek_audio_extracted.txt", wordlists=wordlists),
            description="steghide passphrase cracking on audio (rockyou)",
        ),

        # ========================
        # TEXT / MISC TOOLS
        # ========================
        ToolDescriptor(
            name="unicode-steg", binary=PYTHON, category="text",
            build=_internal("zero_width"),
            description="Zero-width Unicode character detection",
        ),
        ToolDescriptor(
            name="spammimic", binary=PYTHON, category="text",
            build=_internal("spammimic"),
            description="SpamMimic-style text detection",
        ),
    ])


__all__ = [
    "CATEGORIES",
    "CommandSpec",
    "CommandBuilder",
    "ToolDescriptor",
    "ToolRegistry",
    "build_registry",
]
