# result_analyzer_base.py: base class for result analyzers
# Copyright DeGirum Corporation 2025
# All rights reserved

"""
Result Analyzer Base Module Overview
====================================

This module provides a base class (`ResultAnalyzerBase`) for per-frame stages that inspect and
augment detection results of a frame processing loop.

A result is any object exposing a `results` attribute: the list of detection dictionaries of one
frame. Analyzers read the detections and attach their own attributes to the result object for
downstream consumers.

Typical Usage Example
---------------------

```python
from blob_memory.result_analyzer_base import ResultAnalyzerBase

class MyCustomAnalyzer(ResultAnalyzerBase):
    def analyze(self, result):
        result.object_count = len(result.results)
```
"""

from abc import ABC, abstractmethod


class ResultAnalyzerBase(ABC):
    """
    Base class for result analyzers which inspect and extend per-frame detection results.

    Subclasses should override `analyze(result)` and may override `finalize()` to release
    accumulated state.
    """

    @abstractmethod
    def analyze(self, result):
        """
        Analyze and optionally modify a per-frame result.

        Args:
            result: Result object with `results` list of detection dictionaries. Subclasses can read
                the list and attach new attributes to the result.
        """

    def finalize(self):
        """
        Perform any finalization or cleanup actions before the analyzer is discarded.

        This can be useful for analyzers that accumulate state (e.g., for multi-frame analysis).
        By default, this does nothing.
        """

    def __del__(self):
        """
        Called when the analyzer object is about to be destroyed.

        Invokes `finalize()` to ensure any accumulated state is released.
        """
        self.finalize()
