#
# blob_analyzer.py: blob memory analyzer
#
# Copyright DeGirum Corporation 2025
# All rights reserved
#
# Implements analyzer class to feed per-frame detections into blob memory
#

"""
Blob Memory Analyzer Module Overview
====================================

This module provides an analyzer (`BlobMemoryAnalyzer`) connecting a per-frame detection stream with
`BlobMemory`. For every frame it filters raw detections, classifies them, updates the memory and
reports remembered objects back in the result.

Key Features:
    - **Confidence Gate**: Drops detections with score not above `min_confidence`
    - **Category Gate**: Drops detections whose category is not tracked
    - **Temporal Consolidation**: Decays, associates and merges detections into remembered objects
    - **Change Signal**: Tells whether something worth reporting happened in this frame

Typical Usage:
    1. Create a `BlobMemoryAnalyzer` instance, one per video source
    2. Call `analyze()` for each frame's detection result
    3. Read `result.blobs` and `result.blobs_changed`
    4. Emit an event downstream when `result.blobs_changed` is True

Integration Notes:
    - Input detections are dictionaries with `category_id`, `score` and `bbox` keys;
      `bbox` is `[left, top, right, bottom]` in frame pixels
    - `result.blobs` is a list of dictionaries with `label`, `category`, `score` and `bbox` keys
    - Detections with degenerate or non-numeric boxes, or out-of-range scores, are skipped with a warning

Configuration Options:
    - `config`: `MemoryConfig` instance, dictionary, YAML text or YAML file path
    - `classifier`: `EntityClassifier` defining category mapping and tracked categories
"""

from typing import List, Optional, Union
from . import logger_get
from .result_analyzer_base import ResultAnalyzerBase
from .entity_classifier import EntityClassifier
from .math_support import BoundingBox
from .memory_config import MemoryConfig
from .blob_memory import BlobMemory, Observation


class BlobMemoryAnalyzer(ResultAnalyzerBase):
    """
    Analyzer that consolidates per-frame detections into temporally stable remembered objects.

    After each call to `analyze()`, the result gets two attributes:
    `blobs` (list of remembered objects as dictionaries) and `blobs_changed` (True if a new object
    appeared or an existing one switched its category in this frame).
    """

    key_blobs = "blobs"
    key_blobs_changed = "blobs_changed"

    def __init__(
        self,
        config: Union[MemoryConfig, dict, str, None] = None,
        *,
        classifier: Optional[EntityClassifier] = None,
    ):
        """
        Constructor.

        Args:
            config (Union[MemoryConfig, dict, str, None], optional): Memory configuration, or anything
                accepted by `MemoryConfig.load()`. If None, defaults are used.
            classifier (EntityClassifier, optional): Category classifier. If None, default is used.

        Raises:
            jsonschema.ValidationError: If configuration is invalid.
        """
        self._config = (
            config if isinstance(config, MemoryConfig) else MemoryConfig.load(config)
        )
        self._classifier = EntityClassifier() if classifier is None else classifier
        self._memory = BlobMemory(self._config, classifier=self._classifier)

    @property
    def memory(self) -> BlobMemory:
        """Underlying blob memory"""
        return self._memory

    def observations(self, detections: List[dict]) -> List[Observation]:
        """
        Convert raw detections into observations, dropping the ones not passing the gates.

        Args:
            detections (List[dict]): Detection dictionaries with `category_id`, `score` and `bbox` keys.

        Returns:
            Observations of tracked categories with score above `min_confidence`.
        """
        ret = []
        for det in detections:
            score = det["score"]
            if score <= self._config.min_confidence:
                continue
            category = self._classifier.classify(int(det["category_id"]))
            if not self._classifier.is_tracked(category):
                continue
            try:
                box = BoundingBox(*(int(v) for v in det["bbox"]))
                ret.append(Observation(category, float(score), box))
            except (ValueError, OverflowError, TypeError) as e:
                logger_get().warning(f"Skipping detection {det}: {e}")
        return ret

    def analyze(self, result):
        """
        Update blob memory with the frame's detections and report remembered objects.

        Args:
            result: Result object with `results` list of detection dictionaries. Modified in-place:
                `blobs` and `blobs_changed` attributes are set.
        """
        changed = self._memory.update(self.observations(result.results))
        setattr(result, self.key_blobs, [b.to_dict() for b in self._memory.blobs])
        setattr(result, self.key_blobs_changed, changed)

    def finalize(self):
        # constructor may have failed before memory was created
        memory = getattr(self, "_memory", None)
        if memory is not None:
            memory.reset()
