"""
TwinSeek: exact duplicate and near-duplicate image finder with optional GUI.

Core features:
- Exact duplicates across several roots: (size, name) metadata match, optionally
  confirmed or replaced by xxHash content digests
- Similar images: perceptual hash pre-filter + SSIM verification, streamed as groups form
- Cooperative cancellation and observer-based progress for any front-end
- Optional Qt worker with PySide6 (install with [gui] extra)
- CLI interface for headless/server usage
"""

from importlib.metadata import version as _version, PackageNotFoundError

try:
    __version__ = _version("twinseek")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API: only what users should import directly
from twinseek.commands import DuplicateSearchCommand, SimilarImageCommand
from twinseek.core import (
    DuplicateSearchParams, DuplicatePolicy, DuplicateGroup, FileRecord,
    SimilarSearchParams, HashAlgorithm, ImageGroup, ScanStats,
    CancellationToken, ScanObserverBase, CallbackObserver)
from twinseek.utils.convert_utils import ConvertUtils
from twinseek.services import ImageService

__all__ = [
    "DuplicateSearchCommand",
    "SimilarImageCommand",
    "DuplicateSearchParams",
    "DuplicatePolicy",
    "DuplicateGroup",
    "FileRecord",
    "SimilarSearchParams",
    "HashAlgorithm",
    "ImageGroup",
    "ScanStats",
    "CancellationToken",
    "ScanObserverBase",
    "CallbackObserver",
    "ConvertUtils",
    "ImageService",
    "__version__",
]
