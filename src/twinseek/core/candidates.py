"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

candidates.py
All-pairs Hamming scan over perceptual signatures.

The O(n²) comparison is split into independent row ranges executed on a
thread pool; each row compares one signature against every later one as a
single vectorised NumPy operation. Workers share only an append-only result
collector and a pairs-checked counter used for status text.

The result is sorted ascending by distance (ties by index): the incremental
grouper relies on closest matches arriving first.
"""

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Callable

import numpy as np

from twinseek.core.config import SimilarityConfig
from twinseek.core.models import HashSignature, CandidatePair
from twinseek.core.progress import ProgressController

logger = logging.getLogger(__name__)


class CandidateFinderImpl:
    """
    Emits every unordered signature pair whose distance is within `threshold`.
    """

    def __init__(self, threshold: int = SimilarityConfig.HASH_THRESHOLD, workers: Optional[int] = None):
        self.threshold = int(threshold)
        self.workers = workers or SimilarityConfig.default_workers()

    def find_candidates(
            self,
            signatures: List[HashSignature],
            stopped_flag: Optional[Callable[[], bool]] = None,
            controller: Optional[ProgressController] = None
    ) -> List[CandidatePair]:
        """
        Args:
            signatures: Signatures indexed 0..n-1.
            stopped_flag: Checked before every row; remaining rows are skipped once set.
            controller: Optional sink for status notifications.
        Returns:
            Candidate pairs sorted by (distance, i, j). Partial if stopped.
        """
        if len(signatures) < 2:
            return []

        # Signatures of another length are maximally dissimilar: leave them out of the matrix
        length = Counter(len(s) for s in signatures).most_common(1)[0][0]
        comparable = [s for s in signatures if len(s) == length]
        if len(comparable) < len(signatures):
            logger.debug(f"Ignoring {len(signatures) - len(comparable)} signatures with unexpected length")

        rows = len(comparable)
        if rows < 2:
            return []
        matrix = np.frombuffer(b"".join(s.bits for s in comparable), dtype=np.uint8).reshape(rows, length)
        indices = [s.index for s in comparable]

        total_pairs = rows * (rows - 1) // 2
        collected: List[CandidatePair] = []
        collected_lock = threading.Lock()
        checked = [0]

        def scan_rows(start: int, stop: int) -> None:
            found = []
            for r in range(start, stop):
                if stopped_flag and stopped_flag():
                    break
                distances = np.count_nonzero(matrix[r + 1:] != matrix[r], axis=1)
                for offset in np.nonzero(distances <= self.threshold)[0]:
                    found.append(CandidatePair(indices[r], indices[r + 1 + offset], int(distances[offset])))
                self._count(checked, rows - r - 1, total_pairs, collected, collected_lock, controller)
            with collected_lock:
                collected.extend(found)

        block = max(1, rows // (self.workers * 8))
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="candidates") as executor:
            futures = [executor.submit(scan_rows, start, min(start + block, rows))
                       for start in range(0, rows - 1, block)]
            for future in futures:
                future.result()

        collected.sort(key=lambda p: (p.distance, p.i, p.j))
        logger.debug(f"Found {len(collected)} hash candidates from {total_pairs} pairs")
        return collected

    @staticmethod
    def _count(checked: List[int], delta: int, total_pairs: int,
               collected: List[CandidatePair], lock: threading.Lock,
               controller: Optional[ProgressController]) -> None:
        """Advance the shared pairs-checked counter; report each time it crosses a status step."""
        step = SimilarityConfig.PAIR_STATUS_EVERY
        with lock:
            before = checked[0]
            checked[0] += delta
            after = checked[0]
            found_so_far = len(collected)
        if controller and after // step > before // step:
            controller.status(f"Checked {after}/{total_pairs} hash pairs... ({found_so_far} candidates)")
