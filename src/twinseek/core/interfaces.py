"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the detection pipelines.
These protocols enforce structural typing using Python's `typing.Protocol` so stages
stay swappable and testable in isolation.

Key Components:
---------------
- ScanObserver: receiver of status text, progress and streamed similar-image events.
- TreeWalker: breadth-first traversal returning FileRecords.
- ContentHasher / ContentHashAlgorithm: whole-file digests for content-verified duplicate policies.
- PerceptualHasher: image → fixed-length bit signature.
- SimilarityVerifier: structural similarity score for a pair of image indices.
- DuplicateFinder / SimilarImageFinder: the two pipelines (A and B).
"""

from typing import Protocol, List, Optional, Callable, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from twinseek.core.models import (
        FileRecord,
        ImageGroup,
        HashSignature,
        DuplicateGroup,
        DuplicateSearchParams,
        SimilarSearchParams,
        ScanStats,
    )
    from twinseek.core.progress import ProgressController


# ===== Interfaces =====

class ScanObserver(Protocol):
    """
    Receives notifications from a running pipeline.
    All calls are advisory and must not influence computed results.
    """
    def on_status(self, message: str) -> None: ...
    def on_progress(self, current: int, total: int) -> None: ...
    def on_group_created(self, group: "ImageGroup") -> None: ...
    def on_member_added(self, group_id: str, image: "FileRecord") -> None: ...
    def on_groups_merged(self, target: "ImageGroup", absorbed_id: str) -> None: ...


class ContentHashAlgorithm(Protocol):
    """
    Interface for generic hash algorithms.

    Allows plugging in different hashing functions like SHA-256 or xxHash
    without affecting the duplicate grouping logic.
    """

    @staticmethod
    def new():
        """Returns a fresh incremental hasher object exposing update() and digest()."""
        ...


class ContentHasher(Protocol):
    """Interface for hashing the full content of a file."""
    def compute_full_hash(self, record: "FileRecord") -> Optional[bytes]: ...


class TreeWalker(Protocol):
    """
    Interface for traversing directory roots and collecting file records.
    """
    def walk(
        self,
        roots: List[str],
        stopped_flag: Optional[Callable[[], bool]] = None,
        controller: Optional["ProgressController"] = None
    ) -> List["FileRecord"]:
        """
        Collect files below every root.

        Args:
            roots: Root directories to traverse.
            stopped_flag: Function that returns True if the walk should stop.
            controller: Optional sink for status notifications.

        Returns:
            Records found so far (partial when stopped).
        """
        ...


class PerceptualHasher(Protocol):
    """Interface for computing perceptual signatures of images."""
    def compute_signature(self, index: int, path: str) -> Optional["HashSignature"]: ...


class SimilarityVerifier(Protocol):
    """Interface for scoring structural similarity of two images by index."""
    def score(self, i: int, j: int) -> Optional[float]: ...


class DuplicateFinder(Protocol):
    """
    Interface for the exact-duplicate pipeline (walk → group).
    """
    def find_duplicates(
        self,
        params: "DuplicateSearchParams",
        stopped_flag: Optional[Callable[[], bool]] = None,
        observer: Optional[ScanObserver] = None
    ) -> Tuple[List["DuplicateGroup"], "ScanStats"]:
        ...


class SimilarImageFinder(Protocol):
    """
    Interface for the similar-image pipeline (walk → hash → candidates → verify → group).
    """
    def find_similar_images(
        self,
        params: "SimilarSearchParams",
        stopped_flag: Optional[Callable[[], bool]] = None,
        observer: Optional[ScanObserver] = None
    ) -> Tuple[List["ImageGroup"], "ScanStats"]:
        ...
