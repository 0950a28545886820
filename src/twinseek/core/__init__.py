"""
Core detection engine: traversal, exact-duplicate grouping and similar-image search.

This package contains the performance-critical foundation of twinseek:
- TreeWalkerImpl: breadth-first traversal over several roots with attribute filtering
- FileGrouperImpl + HasherImpl: (size, name) and content-digest duplicate grouping
- DuplicateFinderImpl: exact-duplicate pipeline (walk → group → limit)
- PerceptualHasherImpl, CandidateFinderImpl, SsimVerifierImpl, IncrementalGrouper:
  the stages of the similar-image pipeline
- SimilarImageFinderImpl: similar-image pipeline orchestrator
- CancellationToken / ProgressController: cooperative stop and observer routing

All components are pure Python with no GUI dependencies, suitable for CLI and server usage.
"""

from .walker import TreeWalkerImpl
from .grouper import FileGrouperImpl
from .hasher import HasherImpl, XXHashAlgorithmImpl
from .deduplicator import DuplicateFinderImpl
from .perceptual import PerceptualHasherImpl, hamming_distance
from .candidates import CandidateFinderImpl
from .verifier import SsimVerifierImpl, ThumbnailCache
from .clustering import IncrementalGrouper
from .similar_image_finder import SimilarImageFinderImpl
from .progress import CancellationToken, ProgressController, ScanObserverBase, CallbackObserver
from .models import (
    FileRecord, FileAttributes, DuplicateGroup, DuplicatePolicy, DuplicateSearchParams,
    HashAlgorithm, HashSignature, CandidatePair, SimilarityScore, ImageGroup,
    SimilarSearchParams, ScanStats, Stage, INCOMPATIBLE_DISTANCE)

__all__ = [
    "TreeWalkerImpl",
    "FileGrouperImpl",
    "HasherImpl",
    "XXHashAlgorithmImpl",
    "DuplicateFinderImpl",
    "PerceptualHasherImpl",
    "hamming_distance",
    "CandidateFinderImpl",
    "SsimVerifierImpl",
    "ThumbnailCache",
    "IncrementalGrouper",
    "SimilarImageFinderImpl",
    "CancellationToken",
    "ProgressController",
    "ScanObserverBase",
    "CallbackObserver",
    "FileRecord",
    "FileAttributes",
    "DuplicateGroup",
    "DuplicatePolicy",
    "DuplicateSearchParams",
    "HashAlgorithm",
    "HashSignature",
    "CandidatePair",
    "SimilarityScore",
    "ImageGroup",
    "SimilarSearchParams",
    "ScanStats",
    "Stage",
    "INCOMPATIBLE_DISTANCE",
]
