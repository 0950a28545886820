"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Exact-duplicate grouping strategies over FileRecords.
Keys are cheap metadata (size, name) or content digests, depending on DuplicatePolicy.
"""

import logging
from collections import defaultdict
from typing import List, Dict, Tuple, Any, Callable, Optional

from twinseek.core.hasher import HasherImpl
from twinseek.core.interfaces import ContentHasher, ContentHashAlgorithm
from twinseek.core.models import FileRecord, DuplicateGroup, DuplicatePolicy

logger = logging.getLogger(__name__)


class FileGrouperImpl:
    """
    Groups file records into duplicate groups.
    The content-verified policies build a fresh HasherImpl per group() call,
    so digests never outlive a single scan.
    """

    def __init__(self, algorithm: Optional[ContentHashAlgorithm] = None):
        self.algorithm = algorithm

    def group_by_size_and_name(self, records: List[FileRecord],
                               stopped_flag: Optional[Callable[[], bool]] = None) -> Dict[Tuple[int, str], List[FileRecord]]:
        """Groups records by both size and file name (including extension)."""
        return self._group_by(records, lambda r: r.identity_key, stopped_flag)

    def group_by_size(self, records: List[FileRecord],
                      stopped_flag: Optional[Callable[[], bool]] = None) -> Dict[int, List[FileRecord]]:
        """Groups records by their size."""
        return self._group_by(records, lambda r: r.size, stopped_flag)

    def group_by_full_hash(self, records: List[FileRecord], hasher: ContentHasher,
                           stopped_flag: Optional[Callable[[], bool]] = None) -> Dict[bytes, List[FileRecord]]:
        """Groups records by full content digest; unreadable files are dropped."""
        return self._group_by(records, hasher.compute_full_hash, stopped_flag)

    def group(
            self,
            records: List[FileRecord],
            policy: DuplicatePolicy = DuplicatePolicy.METADATA,
            stopped_flag: Optional[Callable[[], bool]] = None
    ) -> List[DuplicateGroup]:
        """
        Build duplicate groups in discovery order.

        Args:
            records: Visible file records collected by the walker.
            policy: How two files are decided to be duplicates.
            stopped_flag: Function that returns True if grouping should stop early.

        Returns:
            Groups with two or more members (possibly incomplete when stopped).
        """
        groups: List[DuplicateGroup] = []
        hasher = HasherImpl(self.algorithm, stopped_flag=stopped_flag)

        if policy == DuplicatePolicy.CONTENT:
            for size, same_size in self.group_by_size(records, stopped_flag).items():
                for digest, files in self.group_by_full_hash(same_size, hasher, stopped_flag).items():
                    groups.append(DuplicateGroup(key=f"{digest.hex()}_{size}", size=size, files=files))
            return groups

        for (size, name), files in self.group_by_size_and_name(records, stopped_flag).items():
            if policy == DuplicatePolicy.VERIFIED:
                for digest, verified in self.group_by_full_hash(files, hasher, stopped_flag).items():
                    groups.append(DuplicateGroup(key=f"{name}_{size}_{digest.hex()}", size=size, files=verified))
            else:
                groups.append(DuplicateGroup(key=f"{name}_{size}", size=size, files=files))
        return groups

    @staticmethod
    def limit_files(groups: List[DuplicateGroup], max_files: Optional[int]) -> List[DuplicateGroup]:
        """
        Trim groups so that at most max_files files are returned in total.
        Groups are consumed in order; each keeps a prefix of its members and a
        group left with a single member is dropped.
        """
        total = sum(len(g.files) for g in groups)
        if max_files is None or total <= max_files:
            return groups

        limited = []
        count = 0
        for group in groups:
            to_take = min(len(group.files), max_files - count)
            if to_take < 2:
                break
            limited.append(DuplicateGroup(key=group.key, size=group.size, files=group.files[:to_take]))
            count += to_take
        return limited

    @staticmethod
    def _group_by(records: List[FileRecord],
                  key_func: Callable[[FileRecord], Any],
                  stopped_flag: Optional[Callable[[], bool]] = None) -> Dict[Any, List[FileRecord]]:
        """
        Helper method to group records by any computed key.
        Args:
            records: List of records to group
            key_func: Function that computes a hashable key (None = skip the record)
            stopped_flag: Checked before each record
        Returns:
            Dict[key, List[FileRecord]] holding only groups with 2+ records
        """
        groups = defaultdict(list)
        skipped = 0
        for record in records:
            if stopped_flag and stopped_flag():
                break
            key = key_func(record)
            if key is None:
                skipped += 1
                continue
            groups[key].append(record)

        if skipped > 0:
            logger.debug(f"Skipped {skipped} files that could not be keyed")

        # Avoid groups with less than 2 files
        return {key: group for key, group in groups.items() if len(group) >= 2}
