"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Whole-file content hashing for the content-verified duplicate policies.

The HasherImpl class streams a file through any algorithm implementing the
ContentHashAlgorithm interface and caches the digest per path for the lifetime
of one hasher, which the grouper builds anew for every scan.
"""

import logging
import threading
from typing import Dict, Optional

import xxhash

from twinseek.core.interfaces import ContentHasher, ContentHashAlgorithm
from twinseek.core.models import FileRecord

logger = logging.getLogger(__name__)


# Use the same way to implement and use any other hashing algorithm
class XXHashAlgorithmImpl(ContentHashAlgorithm):
    @staticmethod
    def new():
        return xxhash.xxh64()


class HasherImpl(ContentHasher):
    """
    A hasher implementation that supports any algorithm via the ContentHashAlgorithm interface.
    Records are immutable, so digests are cached here instead of on the record.
    """

    CHUNK_SIZE = 1024 * 1024

    def __init__(self, algorithm: Optional[ContentHashAlgorithm] = None, stopped_flag=None):
        self.algorithm = algorithm or XXHashAlgorithmImpl()
        self.stopped_flag = stopped_flag
        self._cache: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def compute_full_hash(self, record: FileRecord) -> Optional[bytes]:
        """
        Digest of the entire file, or None if it cannot be read
        (or the scan was stopped while reading).
        """
        with self._lock:
            cached = self._cache.get(record.path)
        if cached is not None:
            return cached

        hasher = self.algorithm.new()
        try:
            with open(record.path, 'rb') as f:
                while True:
                    if self.stopped_flag and self.stopped_flag():
                        return None
                    chunk = f.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    hasher.update(chunk)
        except OSError as e:
            logger.debug(f"Error reading full content of {record.path}: {e}")
            return None

        digest = hasher.digest()
        with self._lock:
            self._cache[record.path] = digest
        return digest
