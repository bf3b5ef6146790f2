#
# math_support.py: geometry utilities for bounding boxes
#
# Copyright DeGirum Corporation 2025
# All rights reserved
#
# Implements bounding box type and box similarity functions
#

# MIT License
#
# Copyright (c) 2022 Roboflow
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Math Support Module Overview
===========================

This module provides geometric utilities used to associate fresh detections with remembered ones.

Key Features:
    - **Bounding Box Type**: Integer pixel box `(left, top, right, bottom)` with center computation
    - **Nearness Score**: Ratio-based similarity of two box centers in (0, 1]
    - **IoU Computation**: Pairwise intersection-over-union of box sets
    - **Selectable Metric**: `NearnessMetric` chooses how two boxes are compared

Key Functions:
    - `area()`: Calculate bounding box areas
    - `box_iou_batch()`: Compute pairwise IoU matrix
    - `nearness()`: Compute nearness score of two points
    - `box_nearness()`: Compare two boxes using selected metric
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


def _half(value: int) -> int:
    """Integer half, truncated toward zero"""
    return int(value / 2)


@dataclass(frozen=True)
class BoundingBox:
    """
    Bounding box in frame pixel coordinates.

    Attributes:
        left (int): Left edge X coordinate.
        top (int): Top edge Y coordinate.
        right (int): Right edge X coordinate.
        bottom (int): Bottom edge Y coordinate.
    """

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def center(self, absolute: bool = False) -> Tuple[int, int]:
        """
        Compute box center.

        Args:
            absolute (bool, optional): If False (default), the center is computed relative to the
                box's own top-left corner, i.e. it is just half of width and height. If True, the
                center is in frame coordinates.

        Returns:
            Center point `(x, y)` with integer coordinates.
        """
        if absolute:
            return _half(self.left + self.right), _half(self.top + self.bottom)
        return _half(self.width), _half(self.height)

    def averaged(self, other: "BoundingBox") -> "BoundingBox":
        """
        Compute box with each coordinate being the integer mean of this and other box coordinates.

        Args:
            other (BoundingBox): Box to average with.

        Returns:
            New averaged box.
        """
        return BoundingBox(
            _half(self.left + other.left),
            _half(self.top + other.top),
            _half(self.right + other.right),
            _half(self.bottom + other.bottom),
        )

    def to_list(self) -> list:
        """Box as `[left, top, right, bottom]` list"""
        return [self.left, self.top, self.right, self.bottom]

    def to_array(self) -> np.ndarray:
        """Box as `(x1, y1, x2, y2)` numpy array"""
        return np.array(self.to_list(), dtype=float)


def area(box: np.ndarray) -> np.ndarray:
    """Compute bounding box areas.

    Args:
        box (np.ndarray): Single box ``(x1, y1, x2, y2)`` or an array of such
            boxes with shape ``(N, 4)``.

    Returns:
        Area of each input box.
    """
    return (box[..., 2] - box[..., 0]) * (box[..., 3] - box[..., 1])


def box_iou_batch(boxes_true: np.ndarray, boxes_detection: np.ndarray) -> np.ndarray:
    """Compute pairwise IoU between two sets of boxes.

    Args:
        boxes_true (np.ndarray): First set of boxes ``(N, 4)``.
        boxes_detection (np.ndarray): Second set of boxes ``(M, 4)``.

    Returns:
        IoU matrix of shape ``(N, M)``.
    """

    area_true = area(boxes_true)
    area_detection = area(boxes_detection)

    top_left = np.maximum(boxes_true[:, None, :2], boxes_detection[:, :2])
    bottom_right = np.minimum(boxes_true[:, None, 2:], boxes_detection[:, 2:])

    area_inter = np.prod(np.clip(bottom_right - top_left, a_min=0, a_max=None), 2)
    area_union = area_true[:, None] + area_detection - area_inter
    with np.errstate(divide="ignore", invalid="ignore"):
        iou = area_inter / area_union
    return np.nan_to_num(iou, nan=0.0, posinf=0.0, neginf=0.0)


def _ratio(a: int, b: int) -> float:
    """Ratio of smaller to larger value; 1 for equal values, 0 when undefined or negative"""
    if a == b:
        return 1.0
    lo, hi = min(a, b), max(a, b)
    if lo < 0 or hi <= 0:
        return 0.0
    return lo / hi


def nearness(p1: Tuple[int, int], p2: Tuple[int, int]) -> float:
    """
    Compute nearness score of two points.

    The score is the product of per-axis ratios of smaller to larger coordinate:
    `(min(x1, x2) / max(x1, x2)) * (min(y1, y2) / max(y1, y2))`.
    It equals 1.0 for identical points and decays toward 0 as they diverge. An axis where the
    coordinates differ and either one is negative contributes 0.

    Args:
        p1 (Tuple[int, int]): First point `(x, y)`.
        p2 (Tuple[int, int]): Second point `(x, y)`.

    Returns:
        Nearness score in [0, 1].
    """
    return _ratio(p1[0], p2[0]) * _ratio(p1[1], p2[1])


class NearnessMetric(Enum):
    """
    Box comparison metric used to associate observations with remembered objects.

    Members:
        SHAPE (str): `nearness()` of self-relative box centers; compares box sizes only,
            regardless of box location in the frame.
        CENTER (str): `nearness()` of absolute box centers in frame coordinates.
        IOU (str): Intersection-over-union of two boxes.
    """

    SHAPE = "shape"
    CENTER = "center"
    IOU = "iou"


def box_nearness(
    a: BoundingBox, b: BoundingBox, metric: NearnessMetric = NearnessMetric.SHAPE
) -> float:
    """
    Compare two boxes using given metric.

    Args:
        a (BoundingBox): First box.
        b (BoundingBox): Second box.
        metric (NearnessMetric, optional): Comparison metric. Default `NearnessMetric.SHAPE`.

    Returns:
        Similarity score in [0, 1], higher is nearer.

    Raises:
        ValueError: If metric is not supported.
    """
    if metric == NearnessMetric.SHAPE:
        return nearness(a.center(), b.center())
    elif metric == NearnessMetric.CENTER:
        return nearness(a.center(absolute=True), b.center(absolute=True))
    elif metric == NearnessMetric.IOU:
        return float(box_iou_batch(a.to_array()[None], b.to_array()[None])[0, 0])
    raise ValueError(f"Invalid nearness metric {metric}")
