"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

clustering.py
Incremental (streaming) clustering of verified similar-image pairs.

STATE MACHINE
-------------
Each image index is UNASSIGNED or assigned to a group index. Pairs are fed in
ascending hash-distance order:
  • both unassigned      → new group {i, j}                 (group created)
  • one assigned to g    → the other joins g                 (member added)
                           then a bounded merge probe runs
  • both assigned        → nothing happens

MERGE PROBE
-----------
After a group grows, every other group is probed with at most
MERGE_PROBE_SAMPLES cross-group pairs. The first group with a passing sample
is absorbed, removed, and group indices above it shift down. At most one
merge happens per event, so clustering is greedy: transitively connected
images may remain in separate groups.

EXACT DUPLICATES
----------------
Two files sharing name and size are never placed in the same group: a join
or merge that would do so is refused. Such files belong to the exact
duplicate results.

The grouper is single-writer: only the sequential consumer loop calls add().
"""

import logging
from typing import List, Optional

from twinseek.core.config import SimilarityConfig
from twinseek.core.models import FileRecord, ImageGroup, SimilarityScore, UNASSIGNED
from twinseek.core.progress import ProgressController
from twinseek.core.verifier import SsimVerifierImpl

logger = logging.getLogger(__name__)


class IncrementalGrouper:
    """
    Builds similarity groups online and reports each change as it happens.
    """

    def __init__(
            self,
            records: List[FileRecord],
            verifier: SsimVerifierImpl,
            threshold: float,
            controller: Optional[ProgressController] = None,
            probe_samples: int = SimilarityConfig.MERGE_PROBE_SAMPLES
    ):
        self.records = records
        self.verifier = verifier
        self.threshold = threshold
        self.controller = controller or ProgressController()
        self.probe_samples = probe_samples

        self.groups: List[ImageGroup] = []
        self.assignment: List[int] = [UNASSIGNED] * len(records)
        self._members: List[List[int]] = []  # image indices, parallel to self.groups
        self._next_id = 0

    def add(self, result: SimilarityScore) -> None:
        """Apply one verified pair. Pairs below the threshold are ignored."""
        if result.score < self.threshold:
            return

        i, j = result.pair.i, result.pair.j
        gi, gj = self.assignment[i], self.assignment[j]

        if gi == UNASSIGNED and gj == UNASSIGNED:
            self._create(i, j, result.score)
        elif gi != UNASSIGNED and gj == UNASSIGNED:
            self._join(gi, j)
        elif gi == UNASSIGNED and gj != UNASSIGNED:
            self._join(gj, i)

    def members_of(self, group_index: int) -> List[int]:
        return list(self._members[group_index])

    def _create(self, i: int, j: int, similarity: float) -> None:
        group = ImageGroup(
            group_id=f"group_{self._next_id}",
            images=[self.records[i], self.records[j]],
            similarity=similarity,
        )
        self._next_id += 1
        self.groups.append(group)
        self._members.append([i, j])
        group_index = len(self.groups) - 1
        self.assignment[i] = group_index
        self.assignment[j] = group_index
        logger.debug(f"Created {group.group_id} ({similarity:.4f})")
        self.controller.group_created(group)

    def _join(self, group_index: int, newcomer: int) -> None:
        if self._conflicts(group_index, [newcomer]):
            logger.debug(f"Not adding {self.records[newcomer].path}: same name and size already in group")
            return

        group = self.groups[group_index]
        record = self.records[newcomer]
        group.images.append(record)
        self._members[group_index].append(newcomer)
        self.assignment[newcomer] = group_index
        self.controller.member_added(group.group_id, record)

        self._probe_merge(group_index)

    def _conflicts(self, group_index: int, indices: List[int]) -> bool:
        keys = {self.records[m].identity_key for m in self._members[group_index]}
        return any(self.records[k].identity_key in keys for k in indices)

    def _probe_merge(self, target: int) -> None:
        for other in range(len(self.groups)):
            if other == target:
                continue
            if not self._sample_passes(target, other):
                continue
            if self._conflicts(target, self._members[other]):
                continue
            self._merge(target, other)
            break  # Only merge one at a time to keep streaming smooth

    def _sample_passes(self, target: int, other: int) -> bool:
        checks = 0
        for a in self._members[target]:
            for b in self._members[other]:
                if checks >= self.probe_samples:
                    return False
                checks += 1
                value = self.verifier.score(a, b)
                if value is not None and value >= self.threshold:
                    return True
        return False

    def _merge(self, target: int, other: int) -> None:
        absorbed = self.groups[other]
        self.groups[target].images.extend(absorbed.images)
        self._members[target].extend(self._members[other])
        del self.groups[other]
        del self._members[other]

        new_target = target - 1 if other < target else target
        for k, assigned in enumerate(self.assignment):
            if assigned == other:
                self.assignment[k] = new_target
            elif assigned > other:
                self.assignment[k] = assigned - 1

        logger.debug(f"Merged {absorbed.group_id} into {self.groups[new_target].group_id}")
        self.controller.groups_merged(self.groups[new_target], absorbed.group_id)
