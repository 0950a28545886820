"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

verifier.py
Structural-similarity (SSIM) verification of candidate pairs.

Thumbnails are loaded lazily, once per image index, and shared between all
pairs touching that image. Several verification workers may request the same
index at once; the cache keeps whichever thumbnail was stored first.
"""

import logging
import threading
from concurrent.futures import Executor
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from skimage.metrics import structural_similarity

from twinseek.core.config import SimilarityConfig
from twinseek.core.interfaces import SimilarityVerifier
from twinseek.core.models import FileRecord, CandidatePair, SimilarityScore
from twinseek.services.image_service import ImageService

logger = logging.getLogger(__name__)


class ThumbnailCache:
    """
    Concurrent get-or-create map: image index → grayscale thumbnail (or None if it failed to load).
    """

    def __init__(
            self,
            paths: List[str],
            size: int = SimilarityConfig.THUMBNAIL_SIZE,
            loader: Callable[[str, int], Optional[np.ndarray]] = ImageService.load_thumbnail
    ):
        self.paths = paths
        self.size = size
        self.loader = loader
        self._items: Dict[int, Optional[np.ndarray]] = {}
        self._lock = threading.Lock()

    def get(self, index: int) -> Optional[np.ndarray]:
        with self._lock:
            if index in self._items:
                return self._items[index]
        # Decode outside the lock; a concurrent loser's thumbnail is discarded
        thumbnail = self.loader(self.paths[index], self.size)
        with self._lock:
            return self._items.setdefault(index, thumbnail)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __contains__(self, index: int) -> bool:
        with self._lock:
            return index in self._items

    def __len__(self):
        with self._lock:
            return len(self._items)


def compare_thumbnails(a: np.ndarray, b: np.ndarray) -> Optional[float]:
    """SSIM of two same-size grayscale thumbnails, clamped to [0, 1]."""
    try:
        value = structural_similarity(a, b, data_range=255)
    except ValueError as e:
        logger.debug(f"SSIM comparison failed: {e}")
        return None
    return float(min(max(value, 0.0), 1.0))


class SsimVerifierImpl(SimilarityVerifier):
    """
    Scores image pairs by index. Every computed score is memoised so the
    merge probe can reuse scores from the main verification pass.
    """

    def __init__(self, records: List[FileRecord], cache: Optional[ThumbnailCache] = None):
        self.records = records
        self.cache = cache if cache is not None else ThumbnailCache([r.path for r in records])
        self._scores: Dict[Tuple[int, int], Optional[float]] = {}
        self._lock = threading.Lock()

    def is_exact_duplicate_pair(self, i: int, j: int) -> bool:
        """Same name and size: already reported by the exact-duplicate pipeline."""
        return self.records[i].identity_key == self.records[j].identity_key

    def score(self, i: int, j: int) -> Optional[float]:
        """
        Normalized similarity of images i and j, or None when the pair is an
        exact-duplicate pair or either image cannot be loaded or compared.
        """
        if self.is_exact_duplicate_pair(i, j):
            return None

        key = (i, j) if i < j else (j, i)
        with self._lock:
            if key in self._scores:
                return self._scores[key]

        thumb_i = self.cache.get(i)
        thumb_j = self.cache.get(j)
        value = None
        if thumb_i is not None and thumb_j is not None:
            value = compare_thumbnails(thumb_i, thumb_j)

        with self._lock:
            self._scores[key] = value
        return value

    def verify(self, pair: CandidatePair) -> Optional[SimilarityScore]:
        value = self.score(pair.i, pair.j)
        if value is None:
            return None
        return SimilarityScore(pair=pair, score=value)

    def verify_batch(self, pairs: List[CandidatePair], executor: Optional[Executor] = None) -> List[Optional[SimilarityScore]]:
        """Verify pairs, possibly in parallel; results keep the order of `pairs`."""
        if executor is None:
            return [self.verify(pair) for pair in pairs]
        return list(executor.map(self.verify, pairs))
