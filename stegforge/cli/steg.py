"""
steg: StegForge command line.

Usage examples:
    steg scan suspicious.png
    steg scan -p hunter2 --skip stegseek,foremost -t 30 capture.wav
    steg deps
    steg install
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from colorama import just_fix_windows_console

from stegforge import __version__
from stegforge.base.config import get_config, setup_logging
from stegforge.base.options import RunOptions
from stegforge.engine.executor import ToolExecutor
from stegforge.engine.scanner import plan_scan
from stegforge.errors import AccessError, ConfigError, ReadError
from stegforge.reporting.terminal import TerminalReporter
from stegforge.toolkit.diagnostics import dependency_status
from stegforge.toolkit.installer import Installer, detect_distro, install_missing, missing_dependencies
from stegforge.toolkit.wordlists import RockyouManager

logger = logging.getLogger(__name__)


def run_scan(args) -> int:
    """Classify the file, run every applicable tool and print the report."""
    config = get_config()
    timeout = args.timeout if args.timeout is not None else config.scan.tool_timeout_seconds
    options = RunOptions(
        password=args.password,
        only=args.only or (),
        skip=args.skip or (),
        output_dir=args.output_dir,
        timeout=timeout,
        verbose=args.verbose,
    )
    reporter = TerminalReporter(verbose=args.verbose, max_lines=config.scan.max_output_lines)
    reporter.banner()

    try:
        record, tools = plan_scan(args.file, options)
    except (AccessError, ReadError) as e:
        logger.debug(f"Classification failed: {e.to_json()}")
        reporter.error(e.message)
        return 1
    except OSError as e:
        reporter.error(f"cannot prepare output directory {options.output_path}: {e}")
        return 1

    reporter.file_info(record)
    reporter.unknown_type_warning(record)
    reporter.deps_notice(missing_dependencies())
    reporter.scan_start(len(tools))

    done = 0

    def on_result(idx, result):
        nonlocal done
        done += 1
        reporter.progress(done, len(tools), result.tool_name)

    executor = ToolExecutor(on_result=on_result)
    scan = asyncio.run(executor.run(tools, record, options))

    reporter.clear_progress()
    reporter.results(scan)
    reporter.output_dir_note(options.output_path)
    return 0


def run_deps(args) -> int:
    """Show which analysis tools are installed."""
    reporter = TerminalReporter()
    reporter.banner()
    reporter.dependency_table(dependency_status(), detect_distro().value)
    return 0


def run_install(args) -> int:
    """Install every missing analysis tool with the system's package manager."""
    reporter = TerminalReporter()
    reporter.banner()

    installer = Installer()
    reporter.install_start(installer.distro.value)
    wordlists = RockyouManager()
    outcomes = asyncio.run(install_missing(installer, wordlists, on_outcome=reporter.install_outcome))
    reporter.install_done(wordlists.locate())
    return 0 if all(o.ok for o in outcomes) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="steg",
        description="Run every relevant steganography tool against a file, concurrently.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Scan Command
    scan_parser = subparsers.add_parser("scan", help="Scan a file for hidden steganographic data")
    scan_parser.add_argument("file", help="File to analyze")
    scan_parser.add_argument("-p", "--password", default="", help="Password for steghide/openstego extraction")
    scan_parser.add_argument("--skip", action="append", help="Skip specific tools (comma-separated, repeatable)")
    scan_parser.add_argument("--only", action="append", help="Run only specific tools (comma-separated, repeatable)")
    scan_parser.add_argument("-o", "--output-dir", default=None, help="Output directory for extracted files")
    scan_parser.add_argument("-t", "--timeout", type=float, default=None, help="Timeout per tool in seconds (default: 60)")
    scan_parser.add_argument("-v", "--verbose", action="store_true", help="Show full output and executed commands")
    scan_parser.set_defaults(func=run_scan)

    # Deps Command
    deps_parser = subparsers.add_parser("deps", help="Check status of all steganography tools")
    deps_parser.set_defaults(func=run_deps)

    # Install Command
    install_parser = subparsers.add_parser("install", help="Install all missing steganography tools")
    install_parser.set_defaults(func=run_install)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    just_fix_windows_console()
    try:
        setup_logging(get_config(), verbose=getattr(args, "verbose", False))
    except ConfigError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
