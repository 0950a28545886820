"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

deduplicator.py
Exact-duplicate pipeline: walk → filter → group → limit.

Cancellation is all-or-nothing by default: a stopped scan returns no groups,
because a partial walk cannot prove which files are (not) duplicated.
DuplicateSearchParams.keep_partial switches to best-effort grouping of the
files collected before the stop.
"""
import time
import logging
from typing import List, Tuple, Optional, Callable

from twinseek.core.grouper import FileGrouperImpl
from twinseek.core.interfaces import DuplicateFinder, ScanObserver, TreeWalker
from twinseek.core.models import DuplicateGroup, DuplicateSearchParams, ScanStats, Stage
from twinseek.core.progress import ProgressController
from twinseek.core.walker import TreeWalkerImpl

logger = logging.getLogger(__name__)


class DuplicateFinderImpl(DuplicateFinder):
    """
    Finds exact duplicates across several roots.
    Walker and grouper are injectable for testing.
    """
    def __init__(self, walker: Optional[TreeWalker] = None, grouper: Optional[FileGrouperImpl] = None):
        self.walker = walker or TreeWalkerImpl()
        self.grouper = grouper or FileGrouperImpl()

    def find_duplicates(
        self,
        params: DuplicateSearchParams,
        stopped_flag: Optional[Callable[[], bool]] = None,
        observer: Optional[ScanObserver] = None
    ) -> Tuple[List[DuplicateGroup], ScanStats]:
        """
        Run the exact-duplicate pipeline.
        Args:
            params: Roots, optional file cap, duplicate policy and cancellation policy
            stopped_flag: Function that returns True if the scan should stop.
            observer: Receives status text while the scan runs.
        Returns:
            Tuple[List[DuplicateGroup], ScanStats]
        """
        stats = ScanStats()
        total_start_time = time.time()
        controller = ProgressController(observer, stopped_flag)

        def cancelled() -> bool:
            return bool(stopped_flag and stopped_flag())

        # Stage 1: collect
        controller.status("Collecting files...")
        start_time = time.time()
        records = self.walker.walk(params.roots, stopped_flag=stopped_flag, controller=controller)
        stats.update_stage(Stage.COLLECT.value, len(records), 0, time.time() - start_time)

        group_flag = stopped_flag
        if cancelled():
            if not params.keep_partial:
                logger.info("Duplicate scan cancelled during collection, discarding results")
                return self._finish_cancelled(stats, total_start_time)
            logger.info(f"Duplicate scan cancelled, grouping {len(records)} collected files")
            group_flag = None

        controller.status(f"Found {len(records)} total files. Filtering...")
        # Skip hidden/system/reparse files, keep all sizes
        visible = [r for r in records if r.is_visible]
        if not visible:
            controller.status("No files found (all files filtered)")
            return self._finish(stats, total_start_time, [])

        # Stage 2: group
        controller.status(f"Found {len(visible)} files after filtering. "
                          f"Grouping by {params.policy.display_name.lower()}...")
        start_time = time.time()
        groups = self.grouper.group(visible, params.policy, stopped_flag=group_flag)

        if group_flag is not None and cancelled() and not params.keep_partial:
            logger.info("Duplicate scan cancelled during grouping, discarding results")
            return self._finish_cancelled(stats, total_start_time)

        stats.update_stage(Stage.GROUP.value, len(visible), len(groups), time.time() - start_time)

        total_found = sum(len(g.files) for g in groups)
        if total_found == 0:
            controller.status("No duplicates found")
            return self._finish(stats, total_start_time, [], cancelled())

        controller.status(f"Found {len(groups)} duplicate groups with {total_found} total files")

        # Stage 3: apply the optional cap
        groups = self.grouper.limit_files(groups, params.max_files)
        controller.status(f"Found {sum(len(g.files) for g in groups)} duplicate files in {len(groups)} groups")

        return self._finish(stats, total_start_time, groups, cancelled())

    @staticmethod
    def _finish(stats: ScanStats, start: float, groups: List[DuplicateGroup],
                was_cancelled: bool = False) -> Tuple[List[DuplicateGroup], ScanStats]:
        stats.total_time = time.time() - start
        stats.cancelled = was_cancelled
        logger.debug(f"Duplicate scan finished: {len(groups)} groups in {stats.total_time:.3f}s")
        return groups, stats

    @staticmethod
    def _finish_cancelled(stats: ScanStats, start: float) -> Tuple[List[DuplicateGroup], ScanStats]:
        return DuplicateFinderImpl._finish(stats, start, [], True)
