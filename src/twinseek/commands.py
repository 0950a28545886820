"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

Unified command orchestrators for both detection pipelines.
This is the SINGLE source of truth for business logic, used by both GUI and CLI.
No Qt/PySide6 dependencies, pure Python.
"""
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import List, Optional, Callable, Tuple

from twinseek.core.deduplicator import DuplicateFinderImpl
from twinseek.core.interfaces import DuplicateFinder, SimilarImageFinder, ScanObserver
from twinseek.core.models import (
    DuplicateGroup, DuplicateSearchParams, ImageGroup, SimilarSearchParams, ScanStats)
from twinseek.core.similar_image_finder import SimilarImageFinderImpl


def _submit(executor: Optional[Executor], fn, *args) -> Future:
    """Run fn on the given executor, or on a private single-thread one."""
    if executor is not None:
        return executor.submit(fn, *args)
    own = ThreadPoolExecutor(max_workers=1, thread_name_prefix="twinseek")
    try:
        return own.submit(fn, *args)
    finally:
        own.shutdown(wait=False)


class DuplicateSearchCommand:
    """
    Orchestrates the exact-duplicate workflow:
    1. Walk every root
    2. Group visible files by the selected policy
    3. Apply the optional file cap

    Usage:
        # Blocking (CLI, scripts):
        params = DuplicateSearchParams(roots=["~/Pictures", "/mnt/backup"])
        groups, stats = DuplicateSearchCommand().execute(params, stopped_flag=token)

        # Non-blocking:
        future = DuplicateSearchCommand().execute_async(params, stopped_flag=token)
        groups, stats = future.result()
    """

    def __init__(self, finder: Optional[DuplicateFinder] = None):
        self._finder = finder or DuplicateFinderImpl()
        self._groups: List[DuplicateGroup] = []

    def execute(
            self,
            params: DuplicateSearchParams,
            stopped_flag: Optional[Callable[[], bool]] = None,
            observer: Optional[ScanObserver] = None
    ) -> Tuple[List[DuplicateGroup], ScanStats]:
        """
        Execute the exact-duplicate search.

        Args:
            params: Validated search parameters
            stopped_flag: () -> bool (returns True if operation should stop)
            observer: Optional receiver of status and progress notifications

        Returns:
            Tuple of (duplicate_groups, statistics)
        """
        groups, stats = self._finder.find_duplicates(params, stopped_flag=stopped_flag, observer=observer)
        self._groups = groups
        return groups, stats

    def execute_async(
            self,
            params: DuplicateSearchParams,
            stopped_flag: Optional[Callable[[], bool]] = None,
            observer: Optional[ScanObserver] = None,
            executor: Optional[Executor] = None
    ) -> "Future[Tuple[List[DuplicateGroup], ScanStats]]":
        """Same as execute(), but returns immediately with a Future."""
        return _submit(executor, self.execute, params, stopped_flag, observer)

    def get_groups(self) -> List[DuplicateGroup]:
        """Groups returned by the last execution."""
        return self._groups


class SimilarImageCommand:
    """
    Orchestrates the similar-image workflow:
    1. Walk every root and keep image files
    2. Perceptual hashes → Hamming candidates
    3. SSIM verification with streamed grouping (or closest pairs)

    Group events are delivered to the observer while the search runs; the
    returned list is the final state.
    """

    def __init__(self, finder: Optional[SimilarImageFinder] = None):
        self._finder = finder or SimilarImageFinderImpl()
        self._groups: List[ImageGroup] = []

    def execute(
            self,
            params: SimilarSearchParams,
            stopped_flag: Optional[Callable[[], bool]] = None,
            observer: Optional[ScanObserver] = None
    ) -> Tuple[List[ImageGroup], ScanStats]:
        """
        Execute the similar-image search.

        Returns:
            Tuple of (image_groups, statistics)
        """
        groups, stats = self._finder.find_similar_images(params, stopped_flag=stopped_flag, observer=observer)
        self._groups = groups
        return groups, stats

    def execute_async(
            self,
            params: SimilarSearchParams,
            stopped_flag: Optional[Callable[[], bool]] = None,
            observer: Optional[ScanObserver] = None,
            executor: Optional[Executor] = None
    ) -> "Future[Tuple[List[ImageGroup], ScanStats]]":
        """Same as execute(), but returns immediately with a Future."""
        return _submit(executor, self.execute, params, stopped_flag, observer)

    def get_groups(self) -> List[ImageGroup]:
        """Groups returned by the last execution."""
        return self._groups
