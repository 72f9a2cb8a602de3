"""
File classification for scan targets.

Magic bytes are checked first, in a fixed priority order, and the lower-cased
extension is only consulted when no signature matches. A PNG renamed to
``.txt`` is still a PNG.
"""

from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Tuple, Union

from stegforge.errors import AccessError, ReadError

logger = logging.getLogger(__name__)

HEADER_SIZE = 512


class FileCategory(str, Enum):
    PNG = "png"
    JPG = "jpg"
    BMP = "bmp"
    GIF = "gif"
    TIFF = "tiff"
    WEBP = "webp"
    WAV = "wav"
    MP3 = "mp3"
    FLAC = "flac"
    OGG = "ogg"
    AU = "au"
    UNKNOWN = "unknown"


IMAGE_CATEGORIES = frozenset({
    FileCategory.PNG, FileCategory.JPG, FileCategory.BMP,
    FileCategory.GIF, FileCategory.TIFF, FileCategory.WEBP,
})

AUDIO_CATEGORIES = frozenset({
    FileCategory.WAV, FileCategory.MP3, FileCategory.FLAC,
    FileCategory.OGG, FileCategory.AU,
})

_CATEGORY_MIME = {
    FileCategory.PNG: "image/png",
    FileCategory.JPG: "image/jpeg",
    FileCategory.BMP: "image/bmp",
    FileCategory.GIF: "image/gif",
    FileCategory.TIFF: "image/tiff",
    FileCategory.WEBP: "image/webp",
    FileCategory.WAV: "audio/wav",
    FileCategory.MP3: "audio/mpeg",
    FileCategory.FLAC: "audio/flac",
    FileCategory.OGG: "application/ogg",
    FileCategory.AU: "audio/basic",
}


@dataclass(frozen=True)
class FileRecord:
    path: str
    name: str
    size: int
    category: FileCategory
    mime_type: str
    extension: str

    def is_image(self) -> bool:
        return self.category in IMAGE_CATEGORIES

    def is_audio(self) -> bool:
        return self.category in AUDIO_CATEGORIES


# --- signatures -----------------------------------------------------------------

def _is_riff(header: bytes, form: bytes) -> bool:
    return header[:4] == b"RIFF" and len(header) >= 12 and header[8:12] == form


def _is_mp3(header: bytes) -> bool:
    # MPEG frame sync (11 set bits) or an ID3v2 tag
    return (header[0] == 0xFF and (header[1] & 0xE0) == 0xE0) or header[:3] == b"ID3"


# Priority order matters: JPEG (FF D8 FF) must win over the MP3 frame sync.
SIGNATURES: Tuple[Tuple[FileCategory, Callable[[bytes], bool]], ...] = (
    (FileCategory.PNG, lambda h: h[:4] == b"\x89PNG"),
    (FileCategory.JPG, lambda h: h[:3] == b"\xff\xd8\xff"),
    (FileCategory.BMP, lambda h: h[:2] == b"BM"),
    (FileCategory.GIF, lambda h: h[:4] == b"GIF8"),
    (FileCategory.TIFF, lambda h: h[:4] in (b"II*\x00", b"MM\x00*")),
    (FileCategory.WAV, lambda h: _is_riff(h, b"WAVE")),
    (FileCategory.WEBP, lambda h: _is_riff(h, b"WEBP")),
    (FileCategory.FLAC, lambda h: h[:4] == b"fLaC"),
    (FileCategory.OGG, lambda h: h[:4] == b"OggS"),
    (FileCategory.MP3, _is_mp3),
    (FileCategory.AU, lambda h: h[:4] == b".snd"),
)

EXTENSIONS = {
    ".png": FileCategory.PNG,
    ".jpg": FileCategory.JPG,
    ".jpeg": FileCategory.JPG,
    ".jfif": FileCategory.JPG,
    ".jpe": FileCategory.JPG,
    ".bmp": FileCategory.BMP,
    ".gif": FileCategory.GIF,
    ".tiff": FileCategory.TIFF,
    ".tif": FileCategory.TIFF,
    ".webp": FileCategory.WEBP,
    ".wav": FileCategory.WAV,
    ".mp3": FileCategory.MP3,
    ".flac": FileCategory.FLAC,
    ".ogg": FileCategory.OGG,
    ".au": FileCategory.AU,
}


def detect_category(header: bytes, extension: str) -> FileCategory:
    """Classify by magic bytes, falling back to the (lower-cased) extension."""
    if len(header) >= 8:
        for category, matches in SIGNATURES:
            if matches(header):
                return category

    return EXTENSIONS.get(extension.lower(), FileCategory.UNKNOWN)


def sniff_mime(header: bytes, category: FileCategory, extension: str) -> str:
    if category in _CATEGORY_MIME:
        return _CATEGORY_MIME[category]

    if b"\x00" not in header:
        try:
            header.decode("utf-8")
            return "text/plain; charset=utf-8"
        except UnicodeDecodeError as exc:
            # a multibyte sequence cut at the header boundary is still text
            if len(header) >= HEADER_SIZE and exc.start >= len(header) - 3:
                return "text/plain; charset=utf-8"

    guessed, _ = mimetypes.guess_type(f"file{extension}")
    return guessed or "application/octet-stream"


def detect(file_path: Union[str, os.PathLike]) -> FileRecord:
    """
    Inspect a file and return its FileRecord.

    Raises:
        AccessError: path missing, a directory, or cannot be opened
        ReadError: reading the header bytes failed
    """
    try:
        abs_path = Path(file_path).expanduser().resolve()
    except (OSError, RuntimeError) as exc:
        raise AccessError(f"invalid file path: {exc}", details={"path": str(file_path)}) from exc

    try:
        stat = abs_path.stat()
    except OSError as exc:
        raise AccessError(f"cannot access file: {exc}", details={"path": str(abs_path)}) from exc

    if abs_path.is_dir():
        raise AccessError("path is a directory, not a file", details={"path": str(abs_path)})

    try:
        handle = abs_path.open("rb")
    except OSError as exc:
        raise AccessError(f"cannot open file: {exc}", details={"path": str(abs_path)}) from exc

    with handle:
        try:
            header = handle.read(HEADER_SIZE)
        except OSError as exc:
            raise ReadError(f"cannot read file: {exc}", details={"path": str(abs_path)}) from exc

    extension = abs_path.suffix.lower()
    category = detect_category(header, extension)
    record = FileRecord(
        path=str(abs_path),
        name=abs_path.name,
        size=stat.st_size,
        category=category,
        mime_type=sniff_mime(header, category, extension),
        extension=extension,
    )
    logger.debug(f"Classified {record.path} as {category.value} ({record.mime_type})")
    return record
