#
# blob_memory.py: temporal memory of detected objects
#
# Copyright DeGirum Corporation 2025
# All rights reserved
#
# Implements classes to consolidate per-frame detections into remembered objects
#

"""
Blob Memory Module Overview
===========================

This module turns noisy per-frame detections into a small, temporally stable set of remembered
objects ("blobs"), so that downstream consumers react only to meaningfully new or changed objects
instead of every frame's detection noise.

Each call to `BlobMemory.update()` processes one frame:

1. **Decay**: confidence of every remembered object is multiplied by the decay factor; objects whose
   confidence drops to or below the eviction floor are forgotten.
2. **Association**: every fresh observation is matched with the nearest remembered object whose
   nearness score exceeds the nearness threshold. Unless *collapse multiple* is enabled, a remembered
   object can absorb at most one observation per frame.
3. **Merge**: a matched object gets its box averaged with the observation box, and its confidence and
   category updated according to the merge policy. Unmatched observations become new objects.

`update()` returns True when a new object appeared or an existing object changed its category.

Key Classes:
    - `Observation`: One fresh detection of the current frame
    - `TrackedEntity`: One remembered object
    - `MergePolicy`: Strategy interface to merge observation confidence and category
    - `ThresholdOverridePolicy`: Override when fresh confidence exceeds remembered one by a margin
    - `ClassHistogramPolicy`: Select category with highest rolling mean confidence
    - `BlobMemory`: The store of remembered objects
"""

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set
from . import logger_get
from .entity_classifier import Category, EntityClassifier
from .math_support import BoundingBox, NearnessMetric, box_nearness
from .memory_config import MemoryConfig, Policy_Histogram, Policy_Threshold


@dataclass(frozen=True)
class Observation:
    """
    One fresh detection of the current frame.

    Attributes:
        category (Category): Object category.
        confidence (float): Detection confidence in [0, 1].
        box (BoundingBox): Object bounding box in frame pixel coordinates.
    """

    category: Category
    confidence: float
    box: BoundingBox

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Observation confidence {self.confidence} is out of range [0, 1]"
            )
        if self.box.right <= self.box.left or self.box.bottom <= self.box.top:
            raise ValueError(f"Observation box {self.box} is degenerate")


@dataclass
class TrackedEntity:
    """
    One remembered object.

    Attributes:
        category (Category): Object category.
        confidence (float): Smoothed confidence; decays every cycle without confirming evidence.
        box (BoundingBox): Smoothed bounding box.
        class_history (dict): Recent confidences per category; used by `ClassHistogramPolicy` only.
    """

    category: Category
    confidence: float
    box: BoundingBox
    class_history: Dict[Category, deque] = field(
        default_factory=dict, repr=False, compare=False
    )

    @classmethod
    def from_observation(cls, obs: Observation) -> "TrackedEntity":
        return cls(obs.category, obs.confidence, obs.box)

    def to_dict(self) -> dict:
        """Entity as detection-like dictionary with `label`, `category`, `score`, and `bbox` keys"""
        return {
            "label": self.category.label,
            "category": self.category,
            "score": self.confidence,
            "bbox": self.box.to_list(),
        }


class MergePolicy(ABC):
    """
    Strategy to merge confidence and category of a fresh observation into a matched remembered object.
    """

    def start(self, entity: TrackedEntity, obs: Observation):
        """
        Initialize policy state of a newly created entity.

        Args:
            entity (TrackedEntity): Entity just created from `obs`.
            obs (Observation): Observation the entity was created from.
        """

    @abstractmethod
    def merge(self, entity: TrackedEntity, obs: Observation) -> bool:
        """
        Merge observation confidence and category into entity.

        Args:
            entity (TrackedEntity): Matched entity to update in-place.
            obs (Observation): Fresh observation.

        Returns:
            True if entity category changed.
        """


class ThresholdOverridePolicy(MergePolicy):
    """
    Overrides both confidence and category of the entity when observation confidence is greater than
    or equal to entity confidence plus the class switch threshold. Otherwise the entity keeps its values.
    """

    def __init__(self, class_switch_threshold: float = 0.15):
        """
        Constructor.

        Args:
            class_switch_threshold (float, optional): Confidence margin to override. Default 0.15.
        """
        self._threshold = class_switch_threshold

    def merge(self, entity: TrackedEntity, obs: Observation) -> bool:
        if obs.confidence < entity.confidence + self._threshold:
            return False
        changed = entity.category != obs.category
        entity.confidence = obs.confidence
        entity.category = obs.category
        return changed


class ClassHistogramPolicy(MergePolicy):
    """
    Keeps per-entity ring buffers of recent confidences for each observed category and assigns the
    category with the highest rolling mean. The current category is kept on ties. The entity confidence
    is raised to the winner's mean when the mean is higher.
    """

    def __init__(self, depth: int = 10):
        """
        Constructor.

        Args:
            depth (int, optional): Ring buffer length per category. Default 10.

        Raises:
            ValueError: If depth is less than 1.
        """
        if depth < 1:
            raise ValueError(f"History depth should be positive, got {depth}")
        self._depth = depth

    def _history(self, entity: TrackedEntity, category: Category) -> deque:
        return entity.class_history.setdefault(category, deque(maxlen=self._depth))

    def start(self, entity: TrackedEntity, obs: Observation):
        entity.class_history.clear()
        self._history(entity, obs.category).append(obs.confidence)

    def merge(self, entity: TrackedEntity, obs: Observation) -> bool:
        if entity.category not in entity.class_history:
            self._history(entity, entity.category).append(entity.confidence)
        self._history(entity, obs.category).append(obs.confidence)

        winner = entity.category
        best = sum(entity.class_history[winner]) / len(entity.class_history[winner])
        for cat, hist in entity.class_history.items():
            mean = sum(hist) / len(hist)
            if mean > best:
                winner, best = cat, mean

        changed = winner != entity.category
        entity.category = winner
        if best > entity.confidence:
            entity.confidence = best
        return changed


def merge_policy_from_config(config: MemoryConfig) -> MergePolicy:
    """
    Create merge policy selected by configuration.

    Args:
        config (MemoryConfig): Memory configuration.

    Returns:
        Merge policy instance.

    Raises:
        ValueError: If policy name is not supported.
    """
    if config.merge_policy == Policy_Threshold:
        return ThresholdOverridePolicy(config.memory_class_switch_threshold)
    elif config.merge_policy == Policy_Histogram:
        return ClassHistogramPolicy(config.history_depth)
    raise ValueError(f"Invalid merge policy {config.merge_policy}")


class BlobMemory:
    """
    Store of remembered objects for one video source.

    Remembered objects have no identity besides their position in the store. The store is meant to be
    owned and updated by a single frame processing loop; it is not thread-safe.

    Attributes:
        config (MemoryConfig): Memory configuration.
        classifier (EntityClassifier): Classifier defining which categories may enter the store.
    """

    def __init__(
        self,
        config: Optional[MemoryConfig] = None,
        *,
        classifier: Optional[EntityClassifier] = None,
        merge_policy: Optional[MergePolicy] = None,
    ):
        """
        Constructor.

        Args:
            config (MemoryConfig, optional): Memory configuration. If None, defaults are used.
            classifier (EntityClassifier, optional): Classifier to check observation categories against.
                If None, default classifier is used.
            merge_policy (MergePolicy, optional): Merge policy. If None, policy is selected by
                `config.merge_policy`.
        """
        self.config = MemoryConfig() if config is None else config
        self.classifier = EntityClassifier() if classifier is None else classifier
        self._metric = NearnessMetric(self.config.nearness_metric)
        self._policy = (
            merge_policy_from_config(self.config)
            if merge_policy is None
            else merge_policy
        )
        self._blobs: List[TrackedEntity] = []

    @property
    def blobs(self) -> List[TrackedEntity]:
        """Remembered objects in store order"""
        return list(self._blobs)

    def __len__(self) -> int:
        return len(self._blobs)

    def reset(self):
        """Forget all remembered objects"""
        self._blobs = []

    def update(self, observations: Iterable[Observation]) -> bool:
        """
        Process fresh observations of one frame.

        Decays and evicts remembered objects, then associates each observation with the nearest
        remembered object and merges it, or remembers it as a new object.

        Args:
            observations (Iterable[Observation]): Fresh observations of the current frame.

        Returns:
            True if a new object was remembered or an existing one changed its category.

        Raises:
            ValueError: If any observation category is not tracked by the classifier. The store is
                not modified in this case.
        """
        observations = list(observations)
        for obs in observations:
            if not self.classifier.is_tracked(obs.category):
                raise ValueError(f"Observation category {obs.category!r} is not tracked")

        self._refresh_confidence()

        changed = False
        merged: Set[int] = set()
        for obs in observations:
            index = self._find_nearest_index(obs, merged)
            if index < 0:
                entity = TrackedEntity.from_observation(obs)
                self._policy.start(entity, obs)
                self._blobs.append(entity)
                logger_get().debug("New blob %s", entity)
                changed = True
            else:
                if self._merge_at_index(obs, index):
                    changed = True
                if not self.config.memory_collapse_multiple:
                    merged.add(index)
        return changed

    def _refresh_confidence(self):
        """Decay confidence of all remembered objects and forget the ones below the floor"""
        factor = self.config.memory_decay_factor
        floor = self.config.memory_min_confidence
        kept = []
        for entity in self._blobs:
            entity.confidence *= factor
            if entity.confidence > floor:
                kept.append(entity)
            else:
                logger_get().debug("Evicted blob %s", entity)
        self._blobs = kept

    def _find_nearest_index(self, obs: Observation, merged: Set[int]) -> int:
        """
        Find remembered object nearest to observation.

        Args:
            obs (Observation): Fresh observation.
            merged (Set[int]): Indexes of objects already merged in this cycle.

        Returns:
            Index of the nearest eligible object, or -1 if none is near enough.
        """
        max_nearness = 0.0
        max_index = -1
        for i, entity in enumerate(self._blobs):
            if i in merged:
                continue
            score = box_nearness(entity.box, obs.box, self._metric)
            # first of equally near objects wins
            if score > self.config.memory_nearness_threshold and score > max_nearness:
                max_nearness = score
                max_index = i
        return max_index

    def _merge_at_index(self, obs: Observation, index: int) -> bool:
        """
        Merge observation into remembered object.

        Args:
            obs (Observation): Fresh observation.
            index (int): Index of the matched object.

        Returns:
            True if object category changed.
        """
        entity = self._blobs[index]
        prev_category = entity.category
        changed = self._policy.merge(entity, obs)
        if changed:
            logger_get().debug(
                "Blob #%d switched category %s -> %s",
                index,
                prev_category,
                entity.category,
            )
        entity.box = entity.box.averaged(obs.box)
        return changed
