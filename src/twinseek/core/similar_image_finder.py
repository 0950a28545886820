"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

similar_image_finder.py

Finds visually similar images with a two-phase approach: a cheap perceptual
hash pre-filter selects candidate pairs, and only those are verified with SSIM.
Groups are streamed to the observer while verification runs.
"""

import time
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Callable, Tuple

from twinseek.core.candidates import CandidateFinderImpl
from twinseek.core.clustering import IncrementalGrouper
from twinseek.core.config import SimilarityConfig
from twinseek.core.interfaces import SimilarImageFinder, ScanObserver, TreeWalker
from twinseek.core.models import FileRecord, ImageGroup, SimilarityScore, SimilarSearchParams, ScanStats, Stage
from twinseek.core.perceptual import PerceptualHasherImpl
from twinseek.core.progress import ProgressController
from twinseek.core.verifier import SsimVerifierImpl
from twinseek.core.walker import TreeWalkerImpl
from twinseek.services.image_service import ImageService

logger = logging.getLogger(__name__)


class SimilarImageFinderImpl(SimilarImageFinder):
    """
    Class for finding visually similar images.

    Phases:
        1. collect image files (tree walker, extension filter)
        2. perceptual hashes, in parallel
        3. Hamming pre-filter over all pairs, in parallel, sorted by distance
        4. SSIM verification in ordered batches feeding the incremental grouper

    In closest-pairs mode phase 4 only scores pairs; the K best scores are
    returned as two-image groups regardless of the similarity threshold.
    """

    def __init__(self, walker: Optional[TreeWalker] = None):
        self.walker = walker or TreeWalkerImpl()

    def find_similar_images(
            self,
            params: SimilarSearchParams,
            stopped_flag: Optional[Callable[[], bool]] = None,
            observer: Optional[ScanObserver] = None
    ) -> Tuple[List[ImageGroup], ScanStats]:
        """
        Run the similar-image pipeline.

        Args:
            params: Roots, similarity percentage, closest-pairs options, hash algorithm.
            stopped_flag: Function that returns True if the scan should stop.
            observer: Receives status, progress and streamed group events.

        Returns:
            Groups streamed so far (all of them unless cancelled) and statistics.
        """
        stats = ScanStats()
        total_start_time = time.time()
        controller = ProgressController(observer, stopped_flag)
        workers = params.workers or SimilarityConfig.default_workers()
        threshold = params.ssim_threshold

        def cancelled() -> bool:
            return bool(stopped_flag and stopped_flag())

        # 1. Collect image files
        controller.status("Collecting image files...")
        start_time = time.time()
        records = self.walker.walk(params.roots, stopped_flag=stopped_flag, controller=controller)
        images = [r for r in records if r.is_visible and ImageService.is_previewable_image(r.path)]
        stats.update_stage(Stage.COLLECT.value, len(images), 0, time.time() - start_time)

        if cancelled():
            return self._finish(stats, total_start_time, [], True)
        if len(images) < 2:
            controller.status("Not enough images to compare")
            return self._finish(stats, total_start_time, [])
        controller.status(f"Found {len(images)} images")

        # 2. Perceptual hashes
        controller.status("Computing perceptual hashes...")
        start_time = time.time()
        hasher = PerceptualHasherImpl(params.algorithm)
        images, signatures = hasher.compute_signatures(images, workers, stopped_flag, controller)
        stats.update_stage(Stage.HASH.value, len(signatures), 0, time.time() - start_time)

        if cancelled():
            return self._finish(stats, total_start_time, [], True)
        if len(signatures) < 2:
            controller.status("No similar images found")
            return self._finish(stats, total_start_time, [])

        # 3. Candidate pairs under the loose hash threshold
        controller.status("Finding hash-similar candidates...")
        start_time = time.time()
        candidates = CandidateFinderImpl(workers=workers).find_candidates(signatures, stopped_flag, controller)
        total_pairs = len(signatures) * (len(signatures) - 1) // 2
        stats.update_stage(Stage.CANDIDATES.value, total_pairs, len(candidates), time.time() - start_time)
        controller.status(f"Found {len(candidates)} hash-similar candidates (from {total_pairs} pairs)")

        if not candidates:
            controller.status("No similar images found")
            return self._finish(stats, total_start_time, [], cancelled())

        # 4. SSIM verification, consumed strictly in candidate order
        controller.status(f"Verifying {len(candidates)} candidates with SSIM...")
        start_time = time.time()
        verifier = SsimVerifierImpl(images)
        grouper = IncrementalGrouper(images, verifier, threshold, controller)
        all_scores = self._verify(candidates, verifier, grouper, params, workers, stopped_flag, controller)
        stats.update_stage(Stage.VERIFY.value, len(all_scores), len(grouper.groups), time.time() - start_time)
        verifier.cache.clear()

        self._log_top_scores(all_scores, images)

        if params.closest_pairs_only:
            results = self._closest_pairs(all_scores, images, params.closest_pair_count)
            controller.status(f"Found {len(results)} closest pairs")
            return self._finish(stats, total_start_time, results, cancelled())

        controller.status(f"Done! Found {len(grouper.groups)} groups")
        return self._finish(stats, total_start_time, grouper.groups, cancelled())

    @staticmethod
    def _verify(candidates, verifier: SsimVerifierImpl, grouper: IncrementalGrouper,
                params: SimilarSearchParams, workers: int,
                stopped_flag: Optional[Callable[[], bool]],
                controller: ProgressController) -> List[SimilarityScore]:
        """Score candidates batch by batch; every score is kept for closest-pairs mode."""
        all_scores: List[SimilarityScore] = []
        batch_size = workers * 4
        processed = 0
        verified = 0

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ssim") as executor:
            for start in range(0, len(candidates), batch_size):
                if stopped_flag and stopped_flag():
                    break
                batch = candidates[start:start + batch_size]
                for result in verifier.verify_batch(batch, executor):
                    if stopped_flag and stopped_flag():
                        break
                    processed += 1
                    if result is None:
                        continue
                    all_scores.append(result)
                    verified += 1
                    if not params.closest_pairs_only:
                        grouper.add(result)
                    if verified % SimilarityConfig.VERIFY_STATUS_EVERY == 0:
                        controller.status(f"SSIM verified {verified}/{len(candidates)}... "
                                          f"({len(grouper.groups)} groups)")
                controller.progress(processed, len(candidates))

        return all_scores

    @staticmethod
    def _closest_pairs(scores: List[SimilarityScore], images: List[FileRecord], count: int) -> List[ImageGroup]:
        best = sorted(scores, key=lambda s: (-s.score, s.pair.distance, s.pair.i, s.pair.j))[:count]
        return [
            ImageGroup(group_id=f"pair_{n}", images=[images[s.pair.i], images[s.pair.j]], similarity=s.score)
            for n, s in enumerate(best)
        ]

    @staticmethod
    def _log_top_scores(scores: List[SimilarityScore], images: List[FileRecord], limit: int = 50) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        for s in sorted(scores, key=lambda s: -s.score)[:limit]:
            logger.debug(f"{s.score:.4f}\t{images[s.pair.i].name}\t{images[s.pair.j].name}")

    @staticmethod
    def _finish(stats: ScanStats, start: float, groups: List[ImageGroup],
                was_cancelled: bool = False) -> Tuple[List[ImageGroup], ScanStats]:
        stats.total_time = time.time() - start
        stats.cancelled = was_cancelled
        return groups, stats
