from __future__ import annotations

import pytest

from ssd_anchors.core.errors import ConfigError
from ssd_anchors.detector.enums import BorderMode
from ssd_anchors.detector.enums import PresetName
from ssd_anchors.detector.model import cached_anchors
from ssd_anchors.detector.model import configure_detector
from ssd_anchors.detector.presets import presets
from ssd_anchors.detector.presets import get_preset
from ssd_anchors.detector.presets import FULL_RANGE_PRESET


def test_full_range():
    detector = configure_detector(PresetName.full_range)

    assert len(detector.anchors) == 2304
    assert detector.anchor_tensor.num_anchors == 2304

    # companion configs are handed over untouched
    assert detector.preset is FULL_RANGE_PRESET
    assert detector.preset.image_to_tensor.border_mode == BorderMode.zero
    assert detector.preset.image_to_tensor.output_tensor_float_range == (-1.0, 1.0)
    assert detector.preset.tensors_to_detection.min_score_thresh == 0.6


def test_every_preset_matches_its_box_count():
    for name in PresetName:
        preset = get_preset(name)
        detector = configure_detector(preset)

        assert preset.name == name
        assert len(detector.anchors) == preset.tensors_to_detection.num_boxes

    assert set(presets) == set(PresetName)


def test_anchors_are_cached():
    first = configure_detector(PresetName.short_range)
    second = configure_detector(PresetName.short_range)

    assert first.anchors is second.anchors
    assert cached_anchors(first.preset.anchor_config) is first.anchors


def test_box_count_mismatch():
    preset = FULL_RANGE_PRESET._replace(
        tensors_to_detection=FULL_RANGE_PRESET.tensors_to_detection._replace(
            num_boxes=896
        )
    )

    with pytest.raises(ConfigError, match="896"):
        configure_detector(preset)
