#
# test_blob_memory.py: unit tests for blob memory
#
# Copyright DeGirum Corporation 2025
# All rights reserved
#
# Implements unit tests for decay, association and merge of remembered objects
#

import pytest
from blob_memory import (
    BlobMemory,
    BoundingBox,
    Category,
    ClassHistogramPolicy,
    MemoryConfig,
    Observation,
    ThresholdOverridePolicy,
)


def test_new_entity(make_obs):
    memory = BlobMemory()
    obs = make_obs(Category.HUMAN, 0.8, [10, 20, 110, 220])

    assert memory.update([obs])
    assert len(memory) == 1
    blob = memory.blobs[0]
    assert blob.category == Category.HUMAN
    assert blob.confidence == 0.8
    assert blob.box == BoundingBox(10, 20, 110, 220)


def test_decay_then_evict(make_obs):
    memory = BlobMemory(
        MemoryConfig(memory_decay_factor=0.5, memory_min_confidence=0.25)
    )

    # confidence exactly at floor / decay is evicted after one empty cycle
    memory.update([make_obs(Category.HUMAN, 0.5, [0, 0, 100, 100])])
    assert len(memory) == 1
    assert not memory.update([])
    assert len(memory) == 0

    # slightly above survives
    memory.update([make_obs(Category.HUMAN, 0.51, [0, 0, 100, 100])])
    memory.update([])
    assert len(memory) == 1
    assert memory.blobs[0].confidence == pytest.approx(0.255)


def test_confidence_floor_invariant(make_obs):
    memory = BlobMemory()
    memory.update(
        [
            make_obs(Category.HUMAN, 0.9, [0, 0, 100, 100]),
            make_obs(Category.ANIMAL, 0.52, [0, 0, 30, 200]),
        ]
    )
    assert len(memory) == 2

    floor = memory.config.memory_min_confidence
    for _ in range(30):
        memory.update([])
        assert all(b.confidence > floor for b in memory.blobs)

    # 0.52 falls below the floor after two cycles, 0.9 after thirty
    assert len(memory) == 0


def test_no_spurious_change(make_obs):
    memory = BlobMemory()
    memory.update([make_obs(Category.HUMAN, 0.8, [0, 0, 100, 100])])

    # same category, confidence below 0.784 + 0.15
    assert not memory.update([make_obs(Category.HUMAN, 0.8, [10, 10, 110, 110])])
    assert len(memory) == 1
    blob = memory.blobs[0]
    assert blob.category == Category.HUMAN
    assert blob.confidence == pytest.approx(0.784)
    assert blob.box == BoundingBox(5, 5, 105, 105)


def test_override_threshold_boundary(make_obs):
    cfg = MemoryConfig(memory_decay_factor=1.0, memory_min_confidence=0.3)

    # exactly at the margin: override
    memory = BlobMemory(cfg)
    memory.update([make_obs(Category.HUMAN, 0.6, [0, 0, 100, 100])])
    conf = memory.blobs[0].confidence + cfg.memory_class_switch_threshold
    assert memory.update([make_obs(Category.ANIMAL, conf, [0, 0, 100, 100])])
    assert memory.blobs[0].category == Category.ANIMAL
    assert memory.blobs[0].confidence == conf

    # just below the margin: no override
    memory = BlobMemory(cfg)
    memory.update([make_obs(Category.HUMAN, 0.6, [0, 0, 100, 100])])
    conf = memory.blobs[0].confidence + cfg.memory_class_switch_threshold - 1e-9
    assert not memory.update([make_obs(Category.ANIMAL, conf, [0, 0, 100, 100])])
    assert memory.blobs[0].category == Category.HUMAN
    assert memory.blobs[0].confidence == 0.6


def test_override_same_category_is_not_change(make_obs):
    memory = BlobMemory(MemoryConfig(memory_decay_factor=1.0))
    memory.update([make_obs(Category.HUMAN, 0.6, [0, 0, 100, 100])])

    # confidence overridden, category unchanged
    assert not memory.update([make_obs(Category.HUMAN, 0.95, [0, 0, 100, 100])])
    assert memory.blobs[0].confidence == 0.95


def test_collapse_multiple(make_obs, strict_config):
    first = make_obs(Category.HUMAN, 0.8, [10, 10, 110, 110])
    second = make_obs(Category.HUMAN, 0.8, [20, 20, 120, 120])

    # disabled: second observation cannot claim the same entity
    memory = BlobMemory(strict_config)
    memory.update([make_obs(Category.HUMAN, 0.9, [0, 0, 100, 100])])
    assert memory.update([first, second])
    assert len(memory) == 2
    assert memory.blobs[0].box == BoundingBox(5, 5, 105, 105)
    assert memory.blobs[1].box == BoundingBox(20, 20, 120, 120)

    # enabled: both merge sequentially into the same entity
    memory = BlobMemory(MemoryConfig(memory_collapse_multiple=True))
    memory.update([make_obs(Category.HUMAN, 0.9, [0, 0, 100, 100])])
    assert not memory.update([first, second])
    assert len(memory) == 1
    assert memory.blobs[0].box == BoundingBox(12, 12, 112, 112)


def test_nearness_threshold(make_obs):
    memory = BlobMemory()
    memory.update([make_obs(Category.HUMAN, 0.9, [0, 0, 100, 100])])

    # half-width box: nearness 0.5 is not above 0.65
    assert memory.update([make_obs(Category.HUMAN, 0.9, [0, 0, 50, 100])])
    assert len(memory) == 2


def test_tie_goes_to_first_entity(make_obs, strict_config):
    memory = BlobMemory(strict_config)
    memory.update([make_obs(Category.HUMAN, 0.6, [0, 0, 100, 100])])
    memory.update(
        [
            make_obs(Category.HUMAN, 0.8, [0, 0, 100, 100]),
            make_obs(Category.HUMAN, 0.8, [0, 0, 100, 100]),
        ]
    )
    assert len(memory) == 2

    # both entities have the same shape: equally near
    assert memory.update([make_obs(Category.ANIMAL, 0.95, [0, 0, 100, 100])])
    assert [b.category for b in memory.blobs] == [Category.ANIMAL, Category.HUMAN]


def test_empty_updates_are_stable(make_obs):
    memory = BlobMemory(
        MemoryConfig(memory_decay_factor=0.5, memory_min_confidence=0.0)
    )
    memory.update([make_obs(Category.ANIMAL, 0.9, [0, 0, 100, 100])])

    prev = memory.blobs[0].confidence
    for _ in range(20):
        assert not memory.update([])
        assert len(memory) == 1
        assert 0 < memory.blobs[0].confidence < prev
        prev = memory.blobs[0].confidence


def test_end_to_end_defaults(make_obs):
    memory = BlobMemory()

    assert memory.update([make_obs(Category.HUMAN, 0.80, [0, 0, 100, 100])])
    assert not memory.update([make_obs(Category.HUMAN, 0.82, [5, 5, 105, 105])])

    assert len(memory) == 1
    blob = memory.blobs[0]
    assert blob.category == Category.HUMAN
    assert blob.confidence == pytest.approx(0.784)
    assert blob.box == BoundingBox(2, 2, 102, 102)


def test_untracked_category_rejected(make_obs):
    memory = BlobMemory()
    memory.update([make_obs(Category.HUMAN, 0.8, [0, 0, 100, 100])])

    with pytest.raises(ValueError):
        memory.update(
            [
                make_obs(Category.HUMAN, 0.9, [0, 0, 100, 100]),
                make_obs(Category.VEHICLE, 0.9, [0, 0, 100, 100]),
            ]
        )

    # store is not modified by a rejected update
    assert len(memory) == 1
    assert memory.blobs[0].confidence == 0.8


def test_observation_validation():
    bad_params = [
        (Category.HUMAN, 1.5, BoundingBox(0, 0, 10, 10)),
        (Category.HUMAN, -0.1, BoundingBox(0, 0, 10, 10)),
        (Category.HUMAN, 0.9, BoundingBox(10, 0, 10, 10)),
        (Category.HUMAN, 0.9, BoundingBox(0, 10, 10, 5)),
    ]
    for params in bad_params:
        with pytest.raises(ValueError):
            Observation(*params)


def test_nearness_metric_selection(make_obs):
    near = make_obs(Category.HUMAN, 0.9, [0, 0, 100, 100])
    far = make_obs(Category.HUMAN, 0.9, [500, 500, 600, 600])

    # same size far away is the same object by shape
    memory = BlobMemory(MemoryConfig(nearness_metric="shape"))
    memory.update([near])
    memory.update([far])
    assert len(memory) == 1

    # but a different object by overlap or by location
    for metric in ["iou", "center"]:
        memory = BlobMemory(MemoryConfig(nearness_metric=metric))
        memory.update([near])
        memory.update([far])
        assert len(memory) == 2, metric


def test_histogram_policy(make_obs):
    memory = BlobMemory(
        MemoryConfig(
            memory_decay_factor=1.0,
            memory_min_confidence=0.1,
            merge_policy="histogram",
            history_depth=3,
        )
    )
    box = [0, 0, 100, 100]

    assert memory.update([make_obs(Category.HUMAN, 0.8, box)])

    # animal mean 0.9 beats human mean 0.8
    assert memory.update([make_obs(Category.ANIMAL, 0.9, box)])
    assert memory.blobs[0].category == Category.ANIMAL
    assert memory.blobs[0].confidence == pytest.approx(0.9)

    # human means 0.825, 0.8667 stay below 0.9
    assert not memory.update([make_obs(Category.HUMAN, 0.85, box)])
    assert not memory.update([make_obs(Category.HUMAN, 0.95, box)])
    assert memory.blobs[0].category == Category.ANIMAL

    # oldest human value drops out of the ring buffer: mean 0.93
    assert memory.update([make_obs(Category.HUMAN, 0.99, box)])
    assert memory.blobs[0].category == Category.HUMAN
    assert memory.blobs[0].confidence == pytest.approx(0.93)
    assert len(memory) == 1


def test_custom_merge_policy(make_obs):
    memory = BlobMemory(
        MemoryConfig(memory_decay_factor=1.0),
        merge_policy=ThresholdOverridePolicy(0.0),
    )
    memory.update([make_obs(Category.HUMAN, 0.8, [0, 0, 100, 100])])

    # zero margin: equal confidence overrides
    assert memory.update([make_obs(Category.ANIMAL, 0.8, [0, 0, 100, 100])])
    assert memory.blobs[0].category == Category.ANIMAL

    with pytest.raises(ValueError):
        ClassHistogramPolicy(0)


def test_reset(make_obs):
    memory = BlobMemory()
    memory.update([make_obs(Category.HUMAN, 0.8, [0, 0, 100, 100])])
    memory.reset()
    assert len(memory) == 0
    assert memory.blobs == []


def test_nearness_threshold_is_exclusive(make_obs):
    memory = BlobMemory(MemoryConfig(memory_nearness_threshold=0.5))
    memory.update([make_obs(Category.HUMAN, 0.9, [0, 0, 100, 100])])

    # nearness exactly 0.5 does not exceed the threshold
    assert memory.update([make_obs(Category.HUMAN, 0.9, [0, 0, 50, 100])])
    assert len(memory) == 2


def test_center_metric_off_frame_box(make_obs):
    memory = BlobMemory(MemoryConfig(nearness_metric="center"))
    memory.update([make_obs(Category.HUMAN, 0.9, [0, 0, 100, 100])])

    # absolute centers (-50, -50) and (50, 50) are not near
    assert memory.update([make_obs(Category.HUMAN, 0.9, [-120, -120, 20, 20])])
    assert len(memory) == 2


def test_debug_logging_is_lazy(make_obs, caplog):
    import logging

    caplog.set_level(logging.DEBUG, logger="blob_memory")
    memory = BlobMemory(
        MemoryConfig(memory_decay_factor=0.5, memory_min_confidence=0.25)
    )
    memory.update([make_obs(Category.HUMAN, 0.5, [0, 0, 100, 100])])
    memory.update([])

    messages = [r.msg for r in caplog.records if r.name == "blob_memory"]
    assert messages == ["New blob %s", "Evicted blob %s"]
    assert all(len(r.args) == 1 for r in caplog.records if r.name == "blob_memory")


def test_config_is_immutable():
    import dataclasses

    cfg = MemoryConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.memory_decay_factor = -1  # type: ignore[misc]
    assert cfg.memory_decay_factor == 0.98
