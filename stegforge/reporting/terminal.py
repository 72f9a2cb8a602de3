# ============================================================================
# stegforge/reporting/terminal.py
# Terminal Reporter
# ============================================================================
#
# PURPOSE:
# Renders scan progress, per-tool results and summaries to a text stream.
# Read-only over the result values; tool output is printed verbatim.
#
# LAYOUT:
#   banner → file info box → deps notice → "Starting scan" → progress line
#   → one section per non-empty category (general, image, audio, text)
#   → summary box → output directory note
#
# ============================================================================

import sys
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, TextIO

from colorama import Fore, Style
from tabulate import tabulate

from stegforge import __version__
from stegforge.base.config import DEFAULT_MAX_OUTPUT_LINES
from stegforge.engine.models import ScanResult, ScanSummary, ToolResult, ToolStatus
from stegforge.toolkit.filetype import FileCategory, FileRecord
from stegforge.toolkit.registry import CATEGORIES

BANNER = r"""
   _____ _              ______
  / ___/| |_ ___  __ _ |  ____|__  _ __ __ _  ___
  \___ \| __/ _ \/ _` || |__ / _ \| '__/ _` |/ _ \
   ___) | ||  __/ (_| ||  __| (_) | | | (_| |  __/
  |____/ \__\___|\__, ||_|   \___/|_|  \__, |\___|
                 |___/                 |___/
"""

CATEGORY_TITLES: Dict[str, str] = {
    "general": "🔧 General Analysis",
    "image": "🖼️  Image Steganography",
    "audio": "🎵 Audio Steganography",
    "text": "📝 Text / Misc Steganography",
}

GLYPHS: Dict[ToolStatus, str] = {
    ToolStatus.OUTPUT: "✓",
    ToolStatus.EMPTY: "○",
    ToolStatus.FAILED: "✗",
    ToolStatus.SKIPPED: "⊘",
}

BOX_WIDTH = 62
SUMMARY_WIDTH = 60


def format_size(size: int) -> str:
    kb = 1024
    mb = kb * 1024
    gb = mb * 1024
    if size >= gb:
        return f"{size / gb:.2f} GB"
    if size >= mb:
        return f"{size / mb:.2f} MB"
    if size >= kb:
        return f"{size / kb:.2f} KB"
    return f"{size} B"


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    return f"{seconds:.2f}s"


def truncate(text: str, limit: int) -> str:
    """Keep the tail of ``text`` so file names stay visible in long paths."""
    if len(text) <= limit:
        return text
    return "..." + text[len(text) - limit + 3:]


class TerminalReporter:
    """
    Writes colored, human-oriented scan output.

    Args:
        stream: Destination (stdout by default)
        color: Force color on/off; defaults to whether the stream is a TTY
        verbose: Show full tool output and the executed command
        max_lines: Output lines per tool before truncation
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        color: Optional[bool] = None,
        verbose: bool = False,
        max_lines: int = DEFAULT_MAX_OUTPUT_LINES,
    ):
        self.stream = stream or sys.stdout
        if color is None:
            isatty = getattr(self.stream, "isatty", None)
            color = bool(isatty and isatty())
        self.color = color
        self.verbose = verbose
        self.max_lines = max_lines

    # ------------------------------------------------------------------
    # Low-level output
    # ------------------------------------------------------------------
    def _paint(self, text: str, *codes: str) -> str:
        if not self.color or not codes:
            return text
        return "".join(codes) + text + Style.RESET_ALL

    def _line(self, text: str = "") -> None:
        self.stream.write(text + "\n")
        self.stream.flush()

    # ------------------------------------------------------------------
    # Scan header
    # ------------------------------------------------------------------
    def banner(self) -> None:
        self._line(self._paint(BANNER.rstrip("\n"), Fore.CYAN, Style.BRIGHT))
        self._line(self._paint(f"  steganography analysis  v{__version__}", Fore.CYAN))
        self._line()

    def file_info(self, record: FileRecord) -> None:
        border = Fore.CYAN + Style.BRIGHT
        self._line(self._paint("  ╔" + "═" * BOX_WIDTH + "╗", border))
        self._line(self._paint("  ║", border) + self._paint(f"{'  📄 TARGET FILE':<{BOX_WIDTH - 1}}", Fore.YELLOW, Style.BRIGHT) + self._paint("║", border))
        self._line(self._paint("  ╠" + "═" * BOX_WIDTH + "╣", border))

        fields = (
            ("File:", record.name),
            ("Path:", truncate(record.path, 47)),
            ("MIME:", record.mime_type),
            ("Size:", format_size(record.size)),
            ("Category:", record.category.value.upper()),
        )
        for label, value in fields:
            body = f"  {label:<12}{value:<{BOX_WIDTH - 14}}"
            self._line(self._paint("  ║", border) + body + self._paint("║", border))

        self._line(self._paint("  ╚" + "═" * BOX_WIDTH + "╝", border))
        self._line()

    def unknown_type_warning(self, record: FileRecord) -> None:
        if record.category == FileCategory.UNKNOWN:
            self._line(self._paint("  ⚠  Unknown file type. Running general and text tools only.", Fore.YELLOW, Style.BRIGHT))
            self._line()

    def deps_notice(self, missing: Sequence[str]) -> None:
        if not missing:
            return
        self._line(self._paint(
            f"  ⚠  {len(missing)} tools not installed (will be skipped): {', '.join(missing)}", Fore.YELLOW
        ))
        self._line(self._paint("  💡 Run 'steg install' to install all missing tools.", Fore.YELLOW))
        self._line()

    def scan_start(self, tool_count: int) -> None:
        self._line(self._paint(f"  🔍 Starting scan with {tool_count} tools...", Fore.YELLOW, Style.BRIGHT))
        self._line()

    def progress(self, done: int, total: int, tool_name: str) -> None:
        text = f"\r  ⏳ [{done}/{total}] {tool_name} finished".ljust(80)
        self.stream.write(self._paint(text, Fore.CYAN))
        self.stream.flush()

    def clear_progress(self) -> None:
        self.stream.write("\r" + " " * 80 + "\r")
        self.stream.flush()

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    def category_header(self, title: str) -> None:
        self._line()
        rule = "─" * max(55 - len(title), 3)
        self._line(self._paint(f"  ┌─── {title.upper()} {rule}", Fore.MAGENTA, Style.BRIGHT))

    def tool_result(self, result: ToolResult) -> None:
        status = result.status
        glyph = GLYPHS[status]
        name = f"{result.tool_name:<18}"
        took = f"({format_duration(result.duration)}) "

        if status == ToolStatus.SKIPPED:
            self._line(self._paint(f"  │ {glyph} {name}skipped: {result.skip_reason}", Style.DIM))
            return

        if status == ToolStatus.FAILED:
            self._line(
                self._paint(f"  │ {glyph} {name}", Fore.RED)
                + self._paint(took, Style.DIM)
                + self._paint(f"error: {result.error}", Fore.RED)
            )
            self._command(result)
            return

        if status == ToolStatus.EMPTY:
            self._line(self._paint(f"  │ {glyph} {name}{took}no output", Style.DIM))
            self._command(result)
            return

        self._line(self._paint(f"  │ {glyph} {name}", Fore.GREEN, Style.BRIGHT) + self._paint(took.rstrip(), Fore.CYAN))
        self._command(result)

        lines = result.output.strip().split("\n")
        shown = lines if self.verbose or self.max_lines <= 0 else lines[:self.max_lines]
        for line in shown:
            self._line(f"  │   {line}")
        hidden = len(lines) - len(shown)
        if hidden:
            self._line(self._paint(f"  │   ... and {hidden} more lines", Fore.YELLOW))

    def _command(self, result: ToolResult) -> None:
        if self.verbose and result.command:
            self._line(self._paint(f"  │   $ {' '.join(result.command)}", Style.DIM))

    def results(self, scan: ScanResult) -> None:
        for category in CATEGORIES:
            entries = scan.by_category(category)
            if not entries:
                continue
            self.category_header(CATEGORY_TITLES[category])
            for result in entries:
                self.tool_result(result)
        self.summary(scan.summary())

    def summary(self, summary: ScanSummary) -> None:
        border = Fore.CYAN + Style.BRIGHT
        self._line()
        self._line(self._paint("  ╔" + "═" * SUMMARY_WIDTH + "╗", border))
        self._line(self._paint("  ║" + f"{'  📊 SCAN SUMMARY':<{SUMMARY_WIDTH - 1}}" + "║", border))
        self._line(self._paint("  ╠" + "═" * SUMMARY_WIDTH + "╣", border))

        stats = (
            ("📋", "Total tools:", str(summary.total), Fore.CYAN),
            ("✅", "Successful:", str(summary.succeeded), Fore.GREEN),
            ("📝", "With output:", str(summary.with_output), Fore.YELLOW),
            ("❌", "Failed:", str(summary.failed), Fore.RED),
            ("⊘ ", "Skipped:", str(summary.skipped), Fore.YELLOW),
            ("⏱ ", "Duration:", format_duration(summary.duration), Fore.CYAN),
        )
        for icon, label, value, color in stats:
            content = f"  {icon} {label:<18}{value}"
            # Emoji icons render two columns wide
            pad = max(SUMMARY_WIDTH - len(content) - 1, 0)
            self._line(self._paint("  ║", border) + self._paint(content + " " * pad, color, Style.BRIGHT) + self._paint("║", border))

        self._line(self._paint("  ╚" + "═" * SUMMARY_WIDTH + "╝", border))
        self._line()

    def output_dir_note(self, output_dir: Path) -> None:
        self._line(self._paint(f"  📁 Extracted files saved to: {output_dir}", Fore.CYAN))
        self._line()

    def error(self, message: str) -> None:
        self._line(self._paint(f"\n  ❌ Error: {message}\n", Fore.RED, Style.BRIGHT))

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------
    def dependency_table(self, statuses: Iterable, distro: str) -> None:
        statuses = list(statuses)
        self._line(self._paint("  🖥  Detected System: ", Fore.CYAN, Style.BRIGHT) + distro)
        self._line()

        rows = []
        for st in statuses:
            state = self._paint("✓ ready", Fore.GREEN, Style.BRIGHT) if st.available else self._paint("✗ missing", Fore.RED)
            rows.append([st.name, state, st.description])
        table = tabulate(rows, headers=["TOOL", "STATUS", "DESCRIPTION"], tablefmt="simple")
        for line in table.splitlines():
            self._line("  " + line)

        installed = sum(1 for st in statuses if st.available)
        self._line()
        if installed == len(statuses):
            self._line(self._paint(f"  ✓ All {installed} tools are installed and ready!", Fore.GREEN, Style.BRIGHT))
        else:
            self._line(self._paint(
                f"  ⚠ {installed}/{len(statuses)} tools installed. Missing tools will be skipped during scan.", Fore.YELLOW
            ))
            self._line(self._paint("  Run 'steg install' to install missing tools.", Fore.YELLOW))
        self._line()

    def install_start(self, distro: str) -> None:
        self._line(self._paint("  📦 Installing missing dependencies...", Fore.CYAN, Style.BRIGHT))
        self._line(self._paint(f"  🖥  Detected distro: {distro}", Fore.CYAN, Style.BRIGHT))
        self._line()

    def install_outcome(self, outcome) -> None:
        status = outcome.status.value
        if status == "present":
            self._line(self._paint(f"  ✓ {outcome.name} already installed", Fore.GREEN))
        elif status == "installed":
            self._line(self._paint(f"  ✓ {outcome.name} installed", Fore.GREEN, Style.BRIGHT))
        elif status == "skipped":
            self._line(self._paint(f"  ⊘ {outcome.name}: {outcome.message}", Style.DIM))
        else:
            self._line(self._paint(f"  ✗ {outcome.name} failed: {outcome.message}", Fore.RED))
            if outcome.manual_url:
                self._line(self._paint(f"    → Manual install: {outcome.manual_url}", Fore.YELLOW))

    def install_done(self, rockyou: Optional[Path]) -> None:
        self._line()
        if rockyou is not None:
            self._line(self._paint(f"  ✓ rockyou.txt available at {rockyou}", Fore.GREEN))
        else:
            self._line(self._paint("  ⚠ rockyou.txt unavailable; stegseek will be skipped", Fore.YELLOW))
        self._line(self._paint("  ✓ Installation complete!", Fore.GREEN, Style.BRIGHT))
        self._line()
