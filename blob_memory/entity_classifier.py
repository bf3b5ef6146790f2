#
# entity_classifier.py: raw class ID to semantic category mapping
#
# Copyright DeGirum Corporation 2025
# All rights reserved
#
# Implements classes to map detector class IDs into tracked categories
#

"""
Entity Classifier Module Overview
=================================

This module maps raw numeric class identifiers produced by an object detection model into a
small set of semantic categories (`Category`), and tells which of those categories are of interest
for tracking.

The default mapping follows the COCO super-category layout: each category owns a contiguous,
non-overlapping, inclusive range of raw class IDs. For example, class ID 1 is `Category.HUMAN`
and class IDs 16..25 (bird, cat, dog, horse, ...) all map to `Category.ANIMAL`. Any ID outside of
all ranges maps to `Category.UNKNOWN`.

Only `Category.HUMAN` and `Category.ANIMAL` are tracked by default. Detections of any other
category must be discarded before they reach `BlobMemory`.

Key Classes:
    - `Category`: Enumeration of semantic categories
    - `EntityClassifier`: Configurable range-table classifier

Key Functions:
    - `classify()`: Classify raw class ID using the default table
    - `is_tracked()`: Check category against the default tracked set
"""

from enum import Enum
from typing import Dict, Iterable, Optional, Tuple


class Category(Enum):
    """
    Semantic category of a detected object.

    Members:
        UNKNOWN (int): Class ID not covered by any range; never tracked.
        HUMAN (int): Person.
        ANIMAL (int): Any animal species.
        Other members follow COCO super-categories.
    """

    UNKNOWN = 0
    HUMAN = 1
    VEHICLE = 2
    OUTDOOR = 3
    ANIMAL = 4
    ACCESSORY = 5
    SPORTS = 6
    KITCHEN = 7
    FOOD = 8
    FURNITURE = 9
    ELECTRONIC = 10
    APPLIANCE = 11
    INDOOR = 12

    @property
    def label(self) -> str:
        """Human-readable category name, e.g. "Human" """
        return self.name.capitalize()

    def __str__(self) -> str:
        return self.label


# default inclusive ranges of raw class IDs per category
default_category_ranges: Dict[Category, Tuple[int, int]] = {
    Category.HUMAN: (1, 1),
    Category.VEHICLE: (2, 9),
    Category.OUTDOOR: (10, 15),
    Category.ANIMAL: (16, 25),
    Category.ACCESSORY: (26, 33),
    Category.SPORTS: (34, 43),
    Category.KITCHEN: (44, 51),
    Category.FOOD: (52, 61),
    Category.FURNITURE: (62, 71),
    Category.ELECTRONIC: (72, 77),
    Category.APPLIANCE: (78, 83),
    Category.INDOOR: (84, 91),
}

# categories tracked by default
default_tracked_categories = frozenset({Category.HUMAN, Category.ANIMAL})


class EntityClassifier:
    """
    Range-table classifier of raw class IDs.

    Each category owns one inclusive range `(start, end)` of raw class IDs. Ranges must not overlap.
    Classification is a pure function: the same ID always maps to the same category.
    """

    def __init__(
        self,
        category_ranges: Optional[Dict[Category, Tuple[int, int]]] = None,
        tracked_categories: Optional[Iterable[Category]] = None,
    ):
        """
        Constructor.

        Args:
            category_ranges (dict, optional): Mapping of category to inclusive `(start, end)` range of
                raw class IDs. If None, `default_category_ranges` is used.
            tracked_categories (Iterable[Category], optional): Categories of interest. If None,
                `default_tracked_categories` is used.

        Raises:
            ValueError: If a range is inverted, ranges overlap, or `Category.UNKNOWN` is given a range
                or is requested to be tracked.
        """
        ranges = dict(
            default_category_ranges if category_ranges is None else category_ranges
        )
        if Category.UNKNOWN in ranges:
            raise ValueError("Category UNKNOWN cannot own a class ID range")

        # sort by range start to check for overlaps in one pass
        self._ranges = sorted(
            ((start, end, cat) for cat, (start, end) in ranges.items()),
            key=lambda r: r[0],
        )
        prev_end = None
        for start, end, cat in self._ranges:
            if start > end:
                raise ValueError(f"Inverted class ID range [{start}, {end}] for {cat}")
            if prev_end is not None and start <= prev_end:
                raise ValueError(f"Class ID range [{start}, {end}] for {cat} overlaps")
            prev_end = end

        self._tracked = frozenset(
            default_tracked_categories
            if tracked_categories is None
            else tracked_categories
        )
        if Category.UNKNOWN in self._tracked:
            raise ValueError("Category UNKNOWN cannot be tracked")

    @property
    def tracked_categories(self) -> frozenset:
        """Set of categories of interest"""
        return self._tracked

    def classify(self, raw_id: int) -> Category:
        """
        Map raw class ID to category.

        Args:
            raw_id (int): Class ID as produced by the detection model.

        Returns:
            Category owning the range that contains `raw_id`, or `Category.UNKNOWN`.
        """
        for start, end, cat in self._ranges:
            if start <= raw_id <= end:
                return cat
        return Category.UNKNOWN

    def is_tracked(self, category: Category) -> bool:
        """
        Check if category is of interest.

        Args:
            category (Category): Category to check.

        Returns:
            True if observations of this category should be fed to the tracker.
        """
        return category in self._tracked


_default_classifier = EntityClassifier()


def classify(raw_id: int) -> Category:
    """Classify raw class ID using default range table"""
    return _default_classifier.classify(raw_id)


def is_tracked(category: Category) -> bool:
    """Check if category belongs to the default tracked set"""
    return _default_classifier.is_tracked(category)
