#
# memory_config.py: blob memory configuration
#
# Copyright DeGirum Corporation 2025
# All rights reserved
#
# Implements configuration dataclass with schema validation
#

"""
Memory Configuration Module Overview
====================================

This module provides `MemoryConfig`: the set of numeric and boolean knobs controlling how
`BlobMemory` admits, decays, associates and merges detected objects.

Configuration can be constructed directly or loaded with `MemoryConfig.load()` from a dictionary,
a YAML/JSON text, or a YAML/JSON file. External keys use camelCase names, for example:

```yaml
minConfidence: 0.75
memoryMinConfidence: 0.5
memoryDecayFactor: 0.98
memoryNearnessThreshold: 0.65
memoryClassSwitchThreshold: 0.15
memoryCollapseMultiple: true
nearnessMetric: shape
mergePolicy: threshold
historyDepth: 10
```

All keys are optional. Every configuration, however constructed, is validated against
`memory_config_schema`; out-of-range values raise `jsonschema.ValidationError`. Configurations are
immutable once created.
"""

import os
import yaml, jsonschema
from dataclasses import dataclass, fields
from typing import Union

# keys
Key_MinConfidence = "minConfidence"
Key_MemoryMinConfidence = "memoryMinConfidence"
Key_MemoryDecayFactor = "memoryDecayFactor"
Key_MemoryNearnessThreshold = "memoryNearnessThreshold"
Key_MemoryClassSwitchThreshold = "memoryClassSwitchThreshold"
Key_MemoryCollapseMultiple = "memoryCollapseMultiple"
Key_NearnessMetric = "nearnessMetric"
Key_MergePolicy = "mergePolicy"
Key_HistoryDepth = "historyDepth"

# merge policy names
Policy_Threshold = "threshold"
Policy_Histogram = "histogram"

# nearness metric names
Metric_Shape = "shape"
Metric_Center = "center"
Metric_IoU = "iou"

# schema YAML
memory_config_schema_text = f"""
type: object
additionalProperties: false
properties:
    {Key_MinConfidence}:
        type: number
        minimum: 0
        maximum: 1
        description: Minimum confidence of a fresh detection to be considered at all
    {Key_MemoryMinConfidence}:
        type: number
        minimum: 0
        maximum: 1
        description: Remembered objects with confidence at or below this value are forgotten
    {Key_MemoryDecayFactor}:
        type: number
        exclusiveMinimum: 0
        maximum: 1
        description: Factor applied to confidence of each remembered object every cycle
    {Key_MemoryNearnessThreshold}:
        type: number
        minimum: 0
        maximum: 1
        description: Nearness score to exceed to consider fresh detection and remembered object the same
    {Key_MemoryClassSwitchThreshold}:
        type: number
        minimum: 0
        maximum: 1
        description: Margin by which fresh confidence must exceed remembered one to override confidence and class
    {Key_MemoryCollapseMultiple}:
        type: boolean
        description: Allow several detections of one frame to merge into the same remembered object
    {Key_NearnessMetric}:
        type: string
        enum: [{Metric_Shape}, {Metric_Center}, {Metric_IoU}]
        description: Metric to compare boxes
    {Key_MergePolicy}:
        type: string
        enum: [{Policy_Threshold}, {Policy_Histogram}]
        description: Policy to merge confidence and class of matched objects
    {Key_HistoryDepth}:
        type: integer
        minimum: 1
        description: Per-class confidence history length for histogram merge policy
"""

memory_config_schema = yaml.safe_load(memory_config_schema_text)


@dataclass(frozen=True)
class MemoryConfig:
    """
    Blob memory configuration.

    Attributes:
        min_confidence (float): Fresh detections with score not above this value are ignored.
        memory_min_confidence (float): Eviction floor: remembered objects with decayed confidence
            at or below this value are dropped.
        memory_decay_factor (float): Per-cycle multiplicative confidence decay.
        memory_nearness_threshold (float): Nearness score a remembered object must exceed to be
            matched with a fresh observation.
        memory_class_switch_threshold (float): Confidence margin required to override confidence and
            category of a matched object.
        memory_collapse_multiple (bool): If True, several observations of one cycle may merge into
            the same remembered object.
        nearness_metric (str): Box comparison metric: "shape", "center" or "iou".
        merge_policy (str): Merge policy: "threshold" or "histogram".
        history_depth (int): Length of per-class confidence history for "histogram" policy.
    """

    min_confidence: float = 0.75
    memory_min_confidence: float = 0.5
    memory_decay_factor: float = 0.98
    memory_nearness_threshold: float = 0.65
    memory_class_switch_threshold: float = 0.15
    memory_collapse_multiple: bool = True
    nearness_metric: str = Metric_Shape
    merge_policy: str = Policy_Threshold
    history_depth: int = 10

    # dataclass field name to external key
    _keys = {
        "min_confidence": Key_MinConfidence,
        "memory_min_confidence": Key_MemoryMinConfidence,
        "memory_decay_factor": Key_MemoryDecayFactor,
        "memory_nearness_threshold": Key_MemoryNearnessThreshold,
        "memory_class_switch_threshold": Key_MemoryClassSwitchThreshold,
        "memory_collapse_multiple": Key_MemoryCollapseMultiple,
        "nearness_metric": Key_NearnessMetric,
        "merge_policy": Key_MergePolicy,
        "history_depth": Key_HistoryDepth,
    }

    def __post_init__(self):
        jsonschema.validate(instance=self.to_dict(), schema=memory_config_schema)

    def to_dict(self) -> dict:
        """
        Convert configuration to dictionary with external (camelCase) keys.

        Returns:
            Configuration dictionary.
        """
        return {self._keys[f.name]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, cfg: dict) -> "MemoryConfig":
        """
        Create configuration from dictionary with external (camelCase) keys.

        Missing keys take default values.

        Args:
            cfg (dict): Configuration dictionary.

        Returns:
            Validated configuration.

        Raises:
            jsonschema.ValidationError: If dictionary does not conform to `memory_config_schema`.
        """
        jsonschema.validate(instance=cfg, schema=memory_config_schema)
        names = {v: k for k, v in cls._keys.items()}
        return cls(**{names[k]: v for k, v in cfg.items()})

    @classmethod
    def load(cls, source: Union[str, dict, None]) -> "MemoryConfig":
        """
        Load configuration from dictionary, YAML/JSON text, or YAML/JSON file.

        Args:
            source (Union[str, dict, None]): Configuration dictionary, path to existing YAML/JSON file,
                or YAML/JSON text. None or empty text means all defaults.

        Returns:
            Validated configuration.

        Raises:
            jsonschema.ValidationError: If configuration does not conform to `memory_config_schema`.
            yaml.YAMLError: If text cannot be parsed.
        """
        if source is None:
            return cls()

        if isinstance(source, dict):
            cfg = source
        else:
            if os.path.isfile(source):
                with open(source, encoding="utf-8") as f:
                    cfg = yaml.safe_load(f)
            else:
                cfg = yaml.safe_load(source)
            if cfg is None:
                cfg = {}

        return cls.from_dict(cfg)
