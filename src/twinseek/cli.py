#!/usr/bin/env python3
"""
TwinSeek CLI: command line interface for duplicate and similar image detection.
Uses the same core engine as the GUI but with console-based interaction.
Read-only: nothing is ever moved or deleted.

Subcommands:
  duplicates : exact duplicates across one or more roots
  similar    : visually similar images across one or more roots
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import sys
import os
import time
from concurrent.futures import Future, TimeoutError as FutureTimeout
from pathlib import Path
from typing import List, Optional, NoReturn
import logging

LOG_FORMAT = "%(levelname)-8s | %(name)-25s | %(message)s"

logger = logging.getLogger(__name__)

from twinseek.core.models import (
    DuplicateGroup, DuplicateSearchParams, ImageGroup, SimilarSearchParams)
from twinseek.core.config import SimilarityConfig
from twinseek.core.progress import CancellationToken, ScanObserverBase
from twinseek.commands import DuplicateSearchCommand, SimilarImageCommand
from twinseek.utils.convert_utils import ConvertUtils
from twinseek.aliases import (
    POLICY_ALIASES, POLICY_CHOICES, POLICY_HELP_TEXT,
    HASH_ALGORITHM_ALIASES, HASH_ALGORITHM_CHOICES, HASH_ALGORITHM_HELP_TEXT,
    DUPLICATES_EPILOG_TEXT, SIMILAR_EPILOG_TEXT
)


class ConsoleObserver(ScanObserverBase):
    """Prints status lines and group events to stderr (verbose mode only)."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def on_status(self, message: str) -> None:
        if self.verbose:
            sys.stderr.write(f"\r  {message:<70}")
            sys.stderr.flush()

    def on_group_created(self, group: ImageGroup) -> None:
        if self.verbose:
            sys.stderr.write(f"\n  + {group.group_id}: {', '.join(i.name for i in group.images)}\n")

    def on_member_added(self, group_id: str, image) -> None:
        if self.verbose:
            sys.stderr.write(f"\n  + {image.name} → {group_id}\n")

    def on_groups_merged(self, target: ImageGroup, absorbed_id: str) -> None:
        if self.verbose:
            sys.stderr.write(f"\n  ⇄ {absorbed_id} merged into {target.group_id}\n")


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.token = CancellationToken()
        self.console_handler: Optional[logging.Handler] = None
        self.log_handler: Optional[logging.Handler] = None
        self._previous_root_level: Optional[int] = None

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        for stream in (sys.stdout, sys.stderr):
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(encoding='utf-8')

    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        """Create the argument parser with both subcommands."""
        common = argparse.ArgumentParser(add_help=False)
        common.add_argument(
            "--input", "-i",
            required=True,
            nargs="+",
            type=str,
            metavar='DIR',
            dest="roots",
            help="Root directories (space separated) to scan"
        )
        common.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        common.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show progress, statistics and debug logging"
        )
        common.add_argument(
            "--log-file",
            default=None,
            type=str,
            metavar='FILE',
            help="Write a full debug log to FILE"
        )

        parser = argparse.ArgumentParser(
            prog="twinseek",
            description="TwinSeek: exact duplicate and similar image finder",
            formatter_class=argparse.RawTextHelpFormatter,
        )
        subparsers = parser.add_subparsers(dest="command", required=True, metavar="{duplicates,similar}")

        duplicates = subparsers.add_parser(
            "duplicates",
            parents=[common],
            help="Find exact duplicates",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=DUPLICATES_EPILOG_TEXT
        )
        duplicates.add_argument(
            "--policy",
            choices=POLICY_CHOICES,
            default="metadata",
            type=str,
            help=POLICY_HELP_TEXT
        )
        duplicates.add_argument(
            "--limit", "-l",
            default="",
            type=str,
            metavar='N',
            help="Show at most N duplicate files (0 or empty = no limit)"
        )
        duplicates.add_argument(
            "--keep-partial",
            action="store_true",
            help="On Ctrl+C, report duplicates among the files collected so far"
        )

        similar = subparsers.add_parser(
            "similar",
            parents=[common],
            help="Find visually similar images",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=SIMILAR_EPILOG_TEXT
        )
        similar.add_argument(
            "--similarity", "-s",
            default=str(int(SimilarityConfig.DEFAULT_SIMILARITY_PERCENT)),
            type=str,
            metavar='PERCENT',
            help=f"Minimum similarity, clamped to "
                 f"{int(SimilarityConfig.MIN_SIMILARITY_PERCENT)}-{int(SimilarityConfig.MAX_SIMILARITY_PERCENT)}. "
                 f"Default: {int(SimilarityConfig.DEFAULT_SIMILARITY_PERCENT)}"
        )
        similar.add_argument(
            "--closest",
            nargs="?",
            const=SimilarityConfig.DEFAULT_CLOSEST_PAIRS,
            default=None,
            type=int,
            metavar='N',
            help=f"Only report the N most similar pairs, ignoring the threshold. "
                 f"Default N: {SimilarityConfig.DEFAULT_CLOSEST_PAIRS}"
        )
        similar.add_argument(
            "--algorithm",
            choices=HASH_ALGORITHM_CHOICES,
            default="dhash",
            type=str,
            help=HASH_ALGORITHM_HELP_TEXT
        )
        similar.add_argument(
            "--workers", "-w",
            default=None,
            type=int,
            metavar='N',
            help="Worker threads for hashing and verification. Default: CPU count"
        )
        return parser

    def parse_args(self, args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        return self.build_parser().parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        existing = []
        for root in args.roots:
            root_path = Path(root).expanduser().resolve()
            if not root_path.exists():
                self.warning(f"Directory not found: {root}")
            elif not root_path.is_dir():
                self.warning(f"Path is not a directory: {root}")
            else:
                existing.append(root)
        if not existing:
            self.error_exit("None of the input directories exist")

        if args.command == "similar":
            if args.closest is not None and args.closest < 1:
                self.error_exit("--closest must be at least 1")
            if args.workers is not None and args.workers < 1:
                self.error_exit("--workers must be at least 1")

    def configure_logging(self, args: argparse.Namespace) -> None:
        """Console logging follows --verbose; --log-file always records everything."""
        root = logging.getLogger()
        console_level = logging.DEBUG if args.verbose else logging.ERROR
        self._previous_root_level = root.level

        self.console_handler = logging.StreamHandler(sys.stderr)
        self.console_handler.setLevel(console_level)
        self.console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(self.console_handler)
        root.setLevel(console_level)

        if args.log_file:
            try:
                self.log_handler = logging.FileHandler(args.log_file, encoding="utf-8")
            except OSError as e:
                self.close_logging()
                self.error_exit(f"Cannot open log file: {e}")
            self.log_handler.setLevel(logging.DEBUG)
            self.log_handler.setFormatter(logging.Formatter("%(asctime)s | " + LOG_FORMAT))
            root.addHandler(self.log_handler)
            root.setLevel(logging.DEBUG)

    def close_logging(self) -> None:
        """Detach the handlers added by configure_logging and restore the root level."""
        root = logging.getLogger()
        for handler in (self.console_handler, self.log_handler):
            if handler is not None:
                root.removeHandler(handler)
                handler.close()
        self.console_handler = None
        self.log_handler = None
        if self._previous_root_level is not None:
            root.setLevel(self._previous_root_level)
            self._previous_root_level = None

    def create_params(self, args: argparse.Namespace):
        """Create DuplicateSearchParams or SimilarSearchParams from CLI arguments."""
        roots = [str(Path(r.strip()).expanduser().resolve()) for r in args.roots]
        try:
            if args.command == "duplicates":
                return DuplicateSearchParams.from_human_readable(
                    roots=roots,
                    max_files_str=args.limit,
                    policy=POLICY_ALIASES[args.policy].value,
                    keep_partial=args.keep_partial,
                )
            return SimilarSearchParams.from_human_readable(
                roots=roots,
                similarity_str=args.similarity,
                closest_pairs=args.closest,
                algorithm=HASH_ALGORITHM_ALIASES[args.algorithm].value,
                workers=args.workers,
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def wait_for(self, future: Future):
        """
        Block until the search finishes. Ctrl+C cancels the token and still
        waits for the workers, so partial results can be reported.
        """
        interrupted = False
        while True:
            try:
                return future.result(timeout=0.2), interrupted
            except FutureTimeout:
                continue
            except KeyboardInterrupt:
                if interrupted:
                    raise
                interrupted = True
                self.token.cancel()
                self.warning("Cancelling... (press Ctrl+C again to abort immediately)")

    def run_search(self, params):
        """Execute the selected pipeline; returns (groups, stats, interrupted)."""
        observer = ConsoleObserver(self.verbose)
        if isinstance(params, DuplicateSearchParams):
            command = DuplicateSearchCommand()
            if self.verbose:
                print(f"Finding duplicates (policy: {params.policy.display_name})...")
        else:
            command = SimilarImageCommand()
            if self.verbose:
                mode = (f"closest {params.closest_pair_count} pairs" if params.closest_pairs_only
                        else f"threshold {params.ssim_threshold:.2f}")
                print(f"Finding similar images ({mode}, {params.algorithm.value})...")

        future = command.execute_async(params, stopped_flag=self.token, observer=observer)
        (groups, stats), interrupted = self.wait_for(future)

        if self.verbose:
            sys.stderr.write("\n")
            print("\n" + stats.print_summary())
        return groups, stats, interrupted

    def output_duplicates(self, groups: List[DuplicateGroup]) -> None:
        """Output duplicate groups as plain text in discovery order."""
        if self.quiet:
            return

        if not groups:
            print("No duplicate groups found.")
            return

        total_files = sum(len(g.files) for g in groups)
        print(f"\nFound {len(groups)} duplicate groups ({total_files} files)")

        for idx, group in enumerate(groups, 1):
            size_str = ConvertUtils.bytes_to_human(group.size)
            print(f"\n📁 Group {idx} | Size: {size_str} | Files: {len(group.files)}")
            for file in group.files:
                print(f"   {file.path}")

    def output_similar(self, groups: List[ImageGroup], closest: bool = False) -> None:
        """Output similar image groups (or closest pairs) as plain text."""
        if self.quiet:
            return

        if not groups:
            print("No similar images found.")
            return

        total_images = sum(len(g) for g in groups)
        if closest:
            print(f"\n{len(groups)} closest pairs")
        else:
            print(f"\nFound {len(groups)} similar image groups ({total_images} images)")

        for idx, group in enumerate(groups, 1):
            label = "Pair" if closest else "Group"
            similarity = ConvertUtils.score_to_percent(group.similarity)
            print(f"\n🖼  {label} {idx} | Similarity: {similarity} | Images: {len(group)}")
            for image in group.images:
                print(f"   {image.path} [{ConvertUtils.bytes_to_human(image.size)}]")

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv=None) -> int:
        """Main entry point. Returns the process exit code."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet

        self.validate_args(args)
        self.configure_logging(args)
        try:
            params = self.create_params(args)

            if not self.quiet:
                print(f"Scanning: {', '.join(params.roots)}")

            try:
                groups, stats, interrupted = self.run_search(params)
            except (RuntimeError, OSError) as e:
                logger.debug("Search failed", exc_info=True)
                self.error_exit(f"Search failed: {e}")

            if isinstance(params, DuplicateSearchParams):
                self.output_duplicates(groups)
            else:
                self.output_similar(groups, closest=params.closest_pairs_only)

            if interrupted:
                print("\n⚠️  Operation cancelled by user (Ctrl+C)", file=sys.stderr)
                return 130

            elapsed = time.time() - self.start_time
            if self.verbose:
                print(f"\n✅ Completed in {elapsed:.2f} seconds")
            return 0
        finally:
            self.close_logging()


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        sys.exit(app.run())
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
