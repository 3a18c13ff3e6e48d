from __future__ import annotations

from typing import Union
from typing import NamedTuple

from functools import lru_cache

from absl import logging

from ssd_anchors.core.errors import ConfigError
from ssd_anchors.core.anchors.info import AnchorSet
from ssd_anchors.core.anchors.config import AnchorConfig
from ssd_anchors.core.anchors.generator import generate_anchors
from ssd_anchors.core.anchors.projection import AnchorTensor
from ssd_anchors.core.anchors.projection import project_anchors

from .enums import PresetName
from .presets import DetectorPreset
from .presets import get_preset


class DetectorAnchors(NamedTuple):
    preset: DetectorPreset
    anchors: AnchorSet
    anchor_tensor: AnchorTensor


@lru_cache(maxsize=None)
def cached_anchors(config: AnchorConfig) -> AnchorSet:
    """generate_anchors, computed once per distinct config"""
    return generate_anchors(config)


def configure_detector(preset: Union[PresetName, DetectorPreset]) -> DetectorAnchors:
    if isinstance(preset, PresetName):
        preset = get_preset(preset)

    anchors = cached_anchors(preset.anchor_config)

    # every anchor must line up with one row of the raw detector output
    num_boxes = preset.tensors_to_detection.num_boxes
    if num_boxes != len(anchors):
        raise ConfigError(
            f"Preset {preset.name.value} expects {num_boxes} boxes "
            f"but its anchor config produces {len(anchors)}"
        )

    logging.info(f"Configured {preset.name.value} detector with {len(anchors)} anchors")

    return DetectorAnchors(
        preset=preset,
        anchors=anchors,
        anchor_tensor=project_anchors(anchors),
    )
