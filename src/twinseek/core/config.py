"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/config.py
Tuning constants shared by the traversal and similarity stages.

WalkerConfig
  • MAX_DEPTH: hard cap on directory depth below each root (bounds cyclic trees)
  • STATUS_INTERVAL: minimum seconds between "Collecting files..." notifications

SimilarityConfig
  • HASH_SIZE: difference-hash grid height; the grid is (HASH_SIZE + 1) x HASH_SIZE
  • HASH_BITS: signature length agreed by the hasher and the candidate finder
  • HASH_THRESHOLD: pre-filter Hamming distance, looser than the SSIM check
  • THUMBNAIL_SIZE: square side of the verification thumbnail (not the UI one)
  • MIN/MAX_SIMILARITY_PERCENT: range the caller percentage is clamped into
  • MERGE_PROBE_SAMPLES: cross-group pairs sampled before merging two groups
"""

import os


class WalkerConfig:
    MAX_DEPTH = 100
    STATUS_INTERVAL = 0.75


class SimilarityConfig:
    HASH_SIZE = 8
    HASH_BITS = HASH_SIZE * HASH_SIZE
    LEGACY_GRID_SIZE = 64
    HASH_THRESHOLD = 25

    THUMBNAIL_SIZE = 128

    MIN_SIMILARITY_PERCENT = 85.0
    MAX_SIMILARITY_PERCENT = 99.0
    DEFAULT_SIMILARITY_PERCENT = 92.0
    DEFAULT_CLOSEST_PAIRS = 20

    MERGE_PROBE_SAMPLES = 2

    # Status throttling
    HASH_STATUS_EVERY = 10
    PAIR_STATUS_EVERY = 5000
    VERIFY_STATUS_EVERY = 10

    @staticmethod
    def percent_to_threshold(percent: float) -> float:
        """Clamp a 0-100 percentage into [85, 99] and convert it to a 0-1 SSIM threshold."""
        clamped = min(max(float(percent), SimilarityConfig.MIN_SIMILARITY_PERCENT),
                      SimilarityConfig.MAX_SIMILARITY_PERCENT)
        return clamped / 100.0

    @staticmethod
    def default_workers() -> int:
        return os.cpu_count() or 1
