"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for file traversal, exact-duplicate grouping and similar-image detection.
"""

from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import List, Dict, Optional, Union
import os
import sys

from twinseek.core.config import SimilarityConfig


# Distance reported for signatures that cannot be compared (different lengths)
INCOMPATIBLE_DISTANCE = sys.maxsize

# Marker for an image that does not belong to any group yet
UNASSIGNED = -1


# =============================
# Enums
# =============================

class FileAttributes(IntFlag):
    """Attribute flags that make a directory (or file) skippable."""
    NONE = 0
    HIDDEN = 1
    SYSTEM = 2
    REPARSE_POINT = 4


class DuplicatePolicy(Enum):
    """
    How exact duplicates are decided.
    """
    METADATA = "metadata"
    VERIFIED = "verified"
    CONTENT = "content"

    @property
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        mapping = {
            DuplicatePolicy.METADATA: "Name + Size",
            DuplicatePolicy.VERIFIED: "Name + Size + Content",
            DuplicatePolicy.CONTENT: "Size + Content",
        }
        return mapping.get(self, self.value)

    @property
    def description(self) -> str:
        """Detailed description for help text."""
        mapping = {
            DuplicatePolicy.METADATA:
                "Same file name and size (fastest, no file reads)",
            DuplicatePolicy.VERIFIED:
                "Same file name and size, confirmed by content hash",
            DuplicatePolicy.CONTENT:
                "Same size and content hash, any file name (finds renamed copies)",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


class HashAlgorithm(Enum):
    """Perceptual hash used to pre-filter similar image candidates."""
    DHASH = "dhash"
    DHASH_LEGACY = "dhash-legacy"
    PHASH = "phash"

    def __repr__(self) -> str:
        return self.value


class Stage(str, Enum):
    COLLECT = "collect"
    GROUP = "group"
    HASH = "hash"
    CANDIDATES = "candidates"
    VERIFY = "verify"


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class FileRecord:
    """
    A single file found during traversal.
    Never mutated after the walker creates it.
    """
    path: str
    name: str
    size: int  # in bytes
    modified: float = 0.0
    attributes: FileAttributes = FileAttributes.NONE

    @classmethod
    def from_path(cls, path: str, size: int, modified: float = 0.0,
                  attributes: FileAttributes = FileAttributes.NONE) -> 'FileRecord':
        return cls(path=path, name=os.path.basename(path), size=size,
                   modified=modified, attributes=attributes)

    @property
    def extension(self) -> str:
        return os.path.splitext(self.name)[1].lower()

    @property
    def is_visible(self) -> bool:
        """True if the file carries none of the hidden/system/reparse flags."""
        return self.attributes == FileAttributes.NONE

    @property
    def identity_key(self):
        """(size, name) pair used by the metadata duplicate heuristic."""
        return self.size, self.name

    def __repr__(self):
        return f"<FileRecord path={self.path}, size={self.size}>"


@dataclass
class DuplicateGroup:
    """
    A group of files considered exact duplicates of each other.
    """
    key: str
    size: int
    files: List[FileRecord]

    def __repr__(self):
        return f"<DuplicateGroup key={self.key}, count={len(self.files)}>"


@dataclass(frozen=True)
class HashSignature:
    """Perceptual signature of one image: one byte (0 or 1) per bit."""
    index: int
    path: str
    bits: bytes

    def __len__(self):
        return len(self.bits)


@dataclass(frozen=True)
class CandidatePair:
    i: int
    j: int
    distance: int


@dataclass(frozen=True)
class SimilarityScore:
    pair: CandidatePair
    score: float  # 1.0 = identical structure


@dataclass
class ImageGroup:
    """
    A cluster of visually similar images.
    Only the incremental grouper appends to or merges groups.
    """
    group_id: str
    images: List[FileRecord] = field(default_factory=list)
    similarity: float = 0.0

    @property
    def paths(self) -> List[str]:
        return [image.path for image in self.images]

    def __len__(self):
        return len(self.images)

    def __repr__(self):
        return f"<ImageGroup id={self.group_id}, count={len(self.images)}, similarity={self.similarity:.4f}>"


class ScanStats:
    """
    Statistics collected while a pipeline runs.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.cancelled: bool = False
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}

    def update_stage(
            self,
            stage_name: str,
            items_processed: int,
            groups_found: int,
            duration: float
    ) -> None:
        if stage_name not in self.stage_stats:
            self.stage_stats[stage_name] = {
                "items": 0,
                "groups": 0,
                "time": 0.0
            }
        self.stage_stats[stage_name]["items"] += items_processed
        self.stage_stats[stage_name]["groups"] += groups_found
        self.stage_stats[stage_name]["time"] += duration

    def print_summary(self) -> str:
        labels = {
            Stage.COLLECT.value: "Collected Files",
            Stage.GROUP.value: "Duplicate Groups",
            Stage.HASH.value: "Hashed Images",
            Stage.CANDIDATES.value: "Hash Candidates",
            Stage.VERIFY.value: "SSIM Verified",
        }

        lines = [
            "Scan Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s" + (" (cancelled)" if self.cancelled else "") + "\n",
            "Stage: ITEMS / GROUPS / TIME"
        ]

        for stage, data in self.stage_stats.items():
            label = labels.get(stage, stage.title())
            lines.append(f"{label}: {data['items']} / {data['groups']} / {data['time']:.3f}s")

        return "\n".join(lines)


"""
DTOs for pipeline parameters with built-in validation.
Interface-agnostic, used by the CLI, the Qt worker and tests.
"""

@dataclass
class DuplicateSearchParams:
    """Parameters for the exact-duplicate pipeline."""
    roots: List[str]
    max_files: Optional[int] = None
    policy: DuplicatePolicy = DuplicatePolicy.METADATA
    keep_partial: bool = False

    def __post_init__(self):
        self.roots = [r for r in (self.roots or []) if r and str(r).strip()]
        if not self.roots:
            raise ValueError("At least one root directory is required")
        if self.max_files is not None and self.max_files < 1:
            raise ValueError("File limit must be a positive number")

    @staticmethod
    def from_human_readable(
            roots: List[str],
            max_files_str: str = "",
            policy: str = DuplicatePolicy.METADATA.value,
            keep_partial: bool = False,
    ) -> 'DuplicateSearchParams':
        """Factory for CLI/GUI text inputs ("" or "0" means no limit)."""
        max_files = None
        if max_files_str and max_files_str.strip():
            try:
                value = int(max_files_str.strip())
            except ValueError:
                raise ValueError(f"Invalid file limit: '{max_files_str}'")
            max_files = value if value != 0 else None
        return DuplicateSearchParams(
            roots=list(roots),
            max_files=max_files,
            policy=DuplicatePolicy(policy),
            keep_partial=keep_partial,
        )


@dataclass
class SimilarSearchParams:
    """Parameters for the similar-image pipeline."""
    roots: List[str]
    similarity_percent: float = SimilarityConfig.DEFAULT_SIMILARITY_PERCENT
    closest_pairs_only: bool = False
    closest_pair_count: int = SimilarityConfig.DEFAULT_CLOSEST_PAIRS
    algorithm: HashAlgorithm = HashAlgorithm.DHASH
    workers: Optional[int] = None

    def __post_init__(self):
        self.roots = [r for r in (self.roots or []) if r and str(r).strip()]
        if not self.roots:
            raise ValueError("At least one root directory is required")
        if not 0 <= self.similarity_percent <= 100:
            raise ValueError("Similarity must be a percentage between 0 and 100")
        if self.closest_pair_count < 1:
            raise ValueError("Closest pair count must be at least 1")
        if self.workers is not None and self.workers < 1:
            raise ValueError("Worker count must be at least 1")

    @property
    def ssim_threshold(self) -> float:
        """Caller percentage clamped into the supported range, as a 0-1 value."""
        return SimilarityConfig.percent_to_threshold(self.similarity_percent)

    @staticmethod
    def from_human_readable(
            roots: List[str],
            similarity_str: str = "",
            closest_pairs: Optional[int] = None,
            algorithm: str = HashAlgorithm.DHASH.value,
            workers: Optional[int] = None,
    ) -> 'SimilarSearchParams':
        """
        Factory for CLI/GUI text inputs.
        similarity_str accepts "90" or "90%"; empty means the default.
        closest_pairs switches to closest-pairs mode with that many pairs.
        """
        similarity = SimilarityConfig.DEFAULT_SIMILARITY_PERCENT
        text = (similarity_str or "").strip().rstrip("%").strip()
        if text:
            try:
                similarity = float(text)
            except ValueError:
                raise ValueError(f"Invalid similarity: '{similarity_str}'")
        return SimilarSearchParams(
            roots=list(roots),
            similarity_percent=similarity,
            closest_pairs_only=closest_pairs is not None,
            closest_pair_count=closest_pairs if closest_pairs is not None else SimilarityConfig.DEFAULT_CLOSEST_PAIRS,
            algorithm=HashAlgorithm(algorithm),
            workers=workers,
        )
