"""SpamMimic-style text steganography heuristic."""

from __future__ import annotations

import sys
from typing import List, Optional, Sequence, Tuple

SPAM_PHRASES = (
    "dear friend", "make money", "limited time offer", "click here",
    "act now", "free", "winner", "congratulations", "urgent",
    "dear sir", "opportunity", "investment", "discount",
    "earn extra", "no obligation", "risk free", "special promotion",
    "be your own boss", "work from home", "double your",
)

THRESHOLD = 3
MAX_LISTED = 15
DECODER_URL = "https://www.spammimic.com/decode.shtml"


def score(text: str) -> Tuple[int, List[Tuple[str, int]]]:
    lower = text.lower()
    matches = []
    total = 0
    for phrase in SPAM_PHRASES:
        count = lower.count(phrase)
        if count:
            total += count
            matches.append((phrase, count))
    return total, matches


def analyze(text: str) -> List[str]:
    total, matches = score(text)
    if total < THRESHOLD:
        return ["No SpamMimic steganography patterns detected."]

    lines = [
        "[!] SpamMimic-style steganography SUSPECTED!",
        f"    Spam score: {total} (threshold: {THRESHOLD})",
        "    Matching phrases:",
    ]
    lines += [f"    '{phrase}': {count}x" for phrase, count in matches[:MAX_LISTED]]
    lines += ["", f"    Try decoding at: {DECODER_URL}"]
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("usage: spammimic <file>", file=sys.stderr)
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
