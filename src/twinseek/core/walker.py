"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/walker.py
Breadth-first directory traversal producing FileRecords.
Features:
- Visits directories level by level with a hard depth cap (cyclic/pathological trees)
- Skips hidden, system and reparse-point (symlink/junction) directories entirely
- Collects every file regardless of size, tagging it with its own attribute flags
- Per-item I/O errors are logged and skipped; a failing root never aborts the others
- Polls the stop flag between directory dequeues and returns the partial result
"""

import os
import stat
import time
import logging
from collections import deque
from typing import List, Optional, Callable

from twinseek.core.config import WalkerConfig
from twinseek.core.interfaces import TreeWalker
from twinseek.core.models import FileRecord, FileAttributes
from twinseek.core.progress import ProgressController

logger = logging.getLogger(__name__)


def read_attributes(name: str, st: os.stat_result) -> FileAttributes:
    """
    Translate stat information into attribute flags.
    Windows reports native attribute bits; on POSIX a leading dot means hidden
    and a symbolic link counts as a reparse point.
    """
    flags = FileAttributes.NONE
    native = getattr(st, "st_file_attributes", 0)
    if native:
        if native & stat.FILE_ATTRIBUTE_HIDDEN:
            flags |= FileAttributes.HIDDEN
        if native & stat.FILE_ATTRIBUTE_SYSTEM:
            flags |= FileAttributes.SYSTEM
        if native & stat.FILE_ATTRIBUTE_REPARSE_POINT:
            flags |= FileAttributes.REPARSE_POINT
    if name.startswith("."):
        flags |= FileAttributes.HIDDEN
    if stat.S_ISLNK(st.st_mode):
        flags |= FileAttributes.REPARSE_POINT
    return flags


class TreeWalkerImpl(TreeWalker):
    """
    Collects files below a list of roots, breadth-first.

    Attributes:
        max_depth: Deepest directory level visited below each root (root = 0)
        status_interval: Minimum seconds between status notifications
    """

    def __init__(
        self,
        max_depth: int = WalkerConfig.MAX_DEPTH,
        status_interval: float = WalkerConfig.STATUS_INTERVAL
    ):
        self.max_depth = max_depth
        self.status_interval = status_interval
        self.dir_count = 0
        self.error_count = 0

    def walk(self,
             roots: List[str],
             stopped_flag: Optional[Callable[[], bool]] = None,
             controller: Optional[ProgressController] = None) -> List[FileRecord]:
        """
        Traverse every root and return the records found.
        When stopped, returns whatever was collected so far.
        """
        found: List[FileRecord] = []
        self.dir_count = 0
        self.error_count = 0
        self._last_status = time.monotonic()

        for root in roots:
            if stopped_flag and stopped_flag():
                logger.debug("Walk cancelled between roots")
                break

            root_path = os.path.abspath(os.path.expanduser(root))
            logger.debug(f"Walking root: {root_path}")
            try:
                self._walk_root(root_path, found, stopped_flag, controller)
            except OSError as e:
                self.error_count += 1
                logger.warning(f"Skipping root {root_path}: {e}")

            if controller:
                controller.status(f"Scanning... {len(found)} files found")

        logger.debug(f"Walk finished: {len(found)} files, {self.dir_count} dirs, {self.error_count} errors")
        return found

    def _walk_root(self,
                   root_path: str,
                   found: List[FileRecord],
                   stopped_flag: Optional[Callable[[], bool]],
                   controller: Optional[ProgressController]) -> None:
        queue = deque([(root_path, 0)])

        while queue:
            # Check for cancellation at each directory dequeue
            if stopped_flag and stopped_flag():
                logger.debug("Walk interrupted by user")
                return

            current_dir, depth = queue.popleft()
            if depth > self.max_depth:
                logger.debug(f"Depth limit reached, skipping: {current_dir}")
                continue

            try:
                dir_stat = os.stat(current_dir, follow_symlinks=False)
                attributes = read_attributes(os.path.basename(current_dir), dir_stat)
            except OSError as e:
                self.error_count += 1
                logger.debug(f"Could not read attributes of {current_dir}: {e}")
                continue

            # Skip reparse points and hidden/system directories to avoid cycles and noise
            if attributes != FileAttributes.NONE:
                logger.debug(f"Skipping directory {current_dir} ({attributes!r})")
                continue
            if not stat.S_ISDIR(dir_stat.st_mode):
                logger.debug(f"Not a directory: {current_dir}")
                continue

            try:
                with os.scandir(current_dir) as it:
                    entries = list(it)
            except OSError as e:
                self.error_count += 1
                logger.debug(f"Could not list {current_dir}: {e}")
                continue

            self.dir_count += 1

            for entry in entries:
                try:
                    if entry.is_dir():
                        queue.append((entry.path, depth + 1))
                        continue
                    entry_stat = entry.stat(follow_symlinks=False)
                    found.append(FileRecord(
                        path=entry.path,
                        name=entry.name,
                        size=entry_stat.st_size,
                        modified=entry_stat.st_mtime,
                        attributes=read_attributes(entry.name, entry_stat),
                    ))
                except OSError as e:
                    self.error_count += 1
                    logger.debug(f"Skipping {entry.path}: {e}")

            self._maybe_report(found, controller)

    def _maybe_report(self, found: List[FileRecord], controller: Optional[ProgressController]) -> None:
        """Throttled status update with running counts."""
        if controller is None:
            return
        now = time.monotonic()
        if now - self._last_status >= self.status_interval:
            controller.status(f"Collecting files... {len(found):,} files, {self.dir_count:,} dirs")
            self._last_status = now
