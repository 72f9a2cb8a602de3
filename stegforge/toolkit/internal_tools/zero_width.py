"""
Zero-width Unicode steganography detector.

Run as ``python -m stegforge.toolkit.internal_tools.zero_width <file>``.
Counts invisible formatting characters and, when there are enough of them,
tries a naive 1-bit-per-character decode.
"""

from __future__ import annotations

import sys
from collections import Counter
from typing import List, Optional, Sequence

ZERO_WIDTH = {
    "\u200b": "ZWSP",
    "\u200c": "ZWNJ",
    "\u200d": "ZWJ",
    "\ufeff": "BOM/ZWNBS",
    "\u200e": "LRM",
    "\u200f": "RLM",
    "\u202a": "LRE",
    "\u202b": "RLE",
    "\u202c": "PDF",
    "\u202d": "LRO",
    "\u202e": "RLO",
    "\u2060": "WJ",
    "\u2061": "FA",
    "\u2062": "IT",
    "\u2063": "IS",
    "\u2064": "IP",
}

# Characters read as a 1 bit; every other zero-width character is a 0
ONE_BITS = frozenset({"\u200b", "\u200d", "\u200e"})

MAX_DECODE_BITS = 800
MAX_MESSAGE_CHARS = 500


def decode_bits(bits: Sequence[str]) -> str:
    decoded = []
    usable = min(len(bits), MAX_DECODE_BITS)
    for i in range(0, usable - usable % 8, 8):
        ch = chr(int("".join(bits[i:i + 8]), 2))
        if ch.isprintable() or ch in "\n\r\t":
            decoded.append(ch)
    return "".join(decoded)


def analyze(text: str) -> List[str]:
    """Return the report lines for ``text``."""
    found: Counter = Counter()
    bits: List[str] = []
    for ch in text:
        name = ZERO_WIDTH.get(ch)
        if name:
            found[name] += 1
            bits.append("1" if ch in ONE_BITS else "0")

    if not found:
        return ["No zero-width Unicode steganography detected."]

    lines = ["[!] Zero-width Unicode characters detected!"]
    for name, count in found.most_common():
        lines.append(f"    {name}: {count} occurrences")
    lines.append(f"    Total: {sum(found.values())} hidden characters")

    if len(bits) >= 8:
        message = decode_bits(bits)
        if message.strip():
            lines.append("")
            lines.append("    Possible decoded message:")
            lines.append(f"    {message[:MAX_MESSAGE_CHARS]}")
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("usage: zero_width <file>", file=sys.stderr)
        return 2
    try:
        with open(args[0], "r", encoding="utf-8", errors="ignore") as f:
            data = f.read()
    except OSError as e:
        print(f"Error: {e}")
        return 0
    print("\n".join(analyze(data)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
