"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

perceptual.py
Perceptual signatures of images and the Hamming distance between them.

Signatures are stored one byte per bit (0/1) so every algorithm yields a
plain, fixed-length vector that the candidate finder can compare directly.

Algorithms (HashAlgorithm):
- DHASH: full-grid difference hash on a (HASH_SIZE + 1) x HASH_SIZE grid
- DHASH_LEGACY: row-major fill over a 64 x 64 grid, stopping at HASH_BITS bits
  (bit-compatible with signatures produced by earlier releases)
- PHASH: DCT hash from `imagehash`, unpacked to one byte per bit
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Callable, Tuple, Union

import imagehash
import numpy as np
from PIL import Image

from twinseek.core.config import SimilarityConfig
from twinseek.core.interfaces import PerceptualHasher
from twinseek.core.models import FileRecord, HashSignature, HashAlgorithm, INCOMPATIBLE_DISTANCE
from twinseek.core.progress import ProgressController
from twinseek.services.image_service import ImageService

logger = logging.getLogger(__name__)

BitsLike = Union[bytes, HashSignature]


def hamming_distance(a: Optional[BitsLike], b: Optional[BitsLike]) -> int:
    """
    Number of differing positions between two signatures.
    Missing signatures or signatures of different lengths are maximally
    dissimilar (INCOMPATIBLE_DISTANCE), so they can never pass a threshold.
    """
    if isinstance(a, HashSignature):
        a = a.bits
    if isinstance(b, HashSignature):
        b = b.bits
    if a is None or b is None or len(a) != len(b):
        return INCOMPATIBLE_DISTANCE
    return sum(1 for x, y in zip(a, b) if x != y)


def difference_bits(img: Image.Image, width: int, height: int, bit_count: int) -> bytes:
    """
    Resize to width x height, take the unweighted channel mean as gray level and
    record 1 where a sample is darker than its right neighbour, in raster order.
    """
    resized = img.convert("RGB").resize((width, height), Image.Resampling.LANCZOS)
    rgb = np.asarray(resized, dtype=np.uint16)
    gray = rgb.sum(axis=2) // 3
    diffs = gray[:, :-1] < gray[:, 1:]
    return diffs.flatten()[:bit_count].astype(np.uint8).tobytes()


class PerceptualHasherImpl(PerceptualHasher):
    """
    Computes HashSignatures with the selected algorithm.
    Every algorithm produces SimilarityConfig.HASH_BITS bits.
    """

    def __init__(self, algorithm: HashAlgorithm = HashAlgorithm.DHASH):
        self.algorithm = algorithm

    def compute_bits(self, img: Image.Image) -> bytes:
        size = SimilarityConfig.HASH_SIZE
        if self.algorithm == HashAlgorithm.DHASH:
            return difference_bits(img, size + 1, size, SimilarityConfig.HASH_BITS)
        if self.algorithm == HashAlgorithm.DHASH_LEGACY:
            grid = SimilarityConfig.LEGACY_GRID_SIZE
            return difference_bits(img, grid, grid, SimilarityConfig.HASH_BITS)
        if self.algorithm == HashAlgorithm.PHASH:
            phash = imagehash.phash(img, hash_size=size)
            return phash.hash.flatten().astype(np.uint8).tobytes()
        raise ValueError(f"Unsupported hash algorithm: {self.algorithm}")

    def compute_signature(self, index: int, path: str) -> Optional[HashSignature]:
        """
        Signature of one image, or None for non-images and unreadable files.
        """
        img = ImageService.load_rgb(path)
        if img is None:
            return None
        try:
            return HashSignature(index=index, path=path, bits=self.compute_bits(img))
        except (OSError, ValueError) as e:
            logger.debug(f"Failed to compute {self.algorithm.value} for {path}: {e}")
            return None

    def compute_signatures(
            self,
            records: List[FileRecord],
            workers: int,
            stopped_flag: Optional[Callable[[], bool]] = None,
            controller: Optional[ProgressController] = None
    ) -> Tuple[List[FileRecord], List[HashSignature]]:
        """
        Hash every record on a bounded pool.

        Results come back in input order; records that failed to hash are
        dropped and the surviving signatures are re-indexed 0..n-1, so
        signature.index always points into the returned record list.
        """
        total = len(records)
        results: List[Optional[HashSignature]] = [None] * total

        def task(idx: int) -> Optional[HashSignature]:
            if stopped_flag and stopped_flag():
                return None
            return self.compute_signature(idx, records[idx].path)

        done = 0
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="phash") as executor:
            futures = {executor.submit(task, idx): idx for idx in range(total)}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
                done += 1
                if stopped_flag and stopped_flag():
                    for pending in futures:
                        pending.cancel()
                    break
                if controller and done % SimilarityConfig.HASH_STATUS_EVERY == 0:
                    controller.status(f"Hashing {done}/{total}...")
                    controller.progress(done, total)

        kept_records: List[FileRecord] = []
        signatures: List[HashSignature] = []
        for idx, signature in enumerate(results):
            if signature is None:
                continue
            signatures.append(HashSignature(index=len(signatures), path=signature.path, bits=signature.bits))
            kept_records.append(records[idx])

        logger.debug(f"Hashed {len(signatures)}/{total} images with {self.algorithm.value}")
        return kept_records, signatures
