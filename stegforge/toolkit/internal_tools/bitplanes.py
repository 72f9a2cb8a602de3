"""
Stegsolve-like bit plane extraction.

Writes one 1-bit PNG per (channel, bit) pair: Red_bit0.png ... Blue_bit7.png.
"""

from __future__ import annotations

import os
import sys
from typing import List, Optional, Sequence

CHANNELS = ("Red", "Green", "Blue")


def extract_planes(image_path: str, out_dir: str) -> List[str]:
    from PIL import Image

    written = []
    with Image.open(image_path) as src:
        img = src.convert("RGB")
    for index, channel in enumerate(CHANNELS):
        band = img.getchannel(index)
        for bit in range(8):
            # map each pixel to its selected bit, then to a 1-bit image
            plane = band.point(lambda v, b=bit: 255 if (v >> b) & 1 else 0).convert("1")
            path = os.path.join(out_dir, f"{channel}_bit{bit}.png")
            plane.save(path)
            written.append(path)
    return written


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("usage: bitplanes <image> <out_dir>", file=sys.stderr)
        return 2
    image_path, out_dir = args
    try:
        import PIL  # noqa: F401
    except ImportError:
        print("Pillow not installed. Run 'pip install Pillow'")
        return 1

    os.makedirs(out_dir, exist_ok=True)
    try:
        written = extract_planes(image_path, out_dir)
    except Exception as e:
        print(f"Error extracting bitplanes: {e}")
        return 0
    print(f"Extracted {len(written)} RGB bitplanes to {out_dir}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
