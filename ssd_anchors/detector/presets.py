from __future__ import annotations

from typing import NamedTuple

from ssd_anchors.core.types import FeatureShape
from ssd_anchors.core.anchors.config import AnchorConfig
from ssd_anchors.core.anchors.config import make_anchor_config

from .enums import BorderMode
from .enums import PresetName


class ImageToTensorConfig(NamedTuple):
    output_tensor_size: FeatureShape
    keep_aspect_ratio: bool
    output_tensor_float_range: tuple[float, float]
    border_mode: BorderMode


class TensorsToDetectionConfig(NamedTuple):
    num_classes: int
    num_boxes: int
    num_coords: int
    box_coord_offset: int
    keypoint_coord_offset: int
    num_keypoints: int
    num_values_per_keypoint: int
    sigmoid_score: bool
    score_clipping_thresh: float
    reverse_output_order: bool
    x_scale: float
    y_scale: float
    h_scale: float
    w_scale: float
    min_score_thresh: float
    apply_exponential_on_box_size: bool = False
    flip_vertically: bool = False
    ignore_classes: tuple[int, ...] = ()


class DetectorPreset(NamedTuple):
    name: PresetName
    anchor_config: AnchorConfig
    # the two below are not interpreted here, only handed over to
    # the pre and post processing of the detector
    image_to_tensor: ImageToTensorConfig
    tensors_to_detection: TensorsToDetectionConfig


FULL_RANGE_DETECTOR_ANCHOR_CONFIG = make_anchor_config(
    num_layers=1,
    strides=[4],
    min_scale=0.1484375,
    max_scale=0.75,
    input_size_height=192,
    input_size_width=192,
    aspect_ratios=[1.0],
    feature_map_height=[],
    feature_map_width=[],
    anchor_offset_x=0.5,
    anchor_offset_y=0.5,
    reduce_boxes_in_lowest_layer=False,
    interpolated_scale_aspect_ratio=0.0,
    fixed_anchor_size=True,
)

FULL_RANGE_PRESET = DetectorPreset(
    name=PresetName.full_range,
    anchor_config=FULL_RANGE_DETECTOR_ANCHOR_CONFIG,
    image_to_tensor=ImageToTensorConfig(
        output_tensor_size=FeatureShape(width=192, height=192),
        keep_aspect_ratio=True,
        output_tensor_float_range=(-1.0, 1.0),
        border_mode=BorderMode.zero,
    ),
    tensors_to_detection=TensorsToDetectionConfig(
        num_classes=1,
        num_boxes=2304,
        num_coords=16,
        box_coord_offset=0,
        keypoint_coord_offset=4,
        num_keypoints=6,
        num_values_per_keypoint=2,
        sigmoid_score=True,
        score_clipping_thresh=100.0,
        reverse_output_order=True,
        x_scale=192.0,
        y_scale=192.0,
        h_scale=192.0,
        w_scale=192.0,
        min_score_thresh=0.6,
    ),
)

SHORT_RANGE_DETECTOR_ANCHOR_CONFIG = make_anchor_config(
    num_layers=4,
    strides=[8, 16, 16, 16],
    min_scale=0.1484375,
    max_scale=0.75,
    input_size_height=128,
    input_size_width=128,
    aspect_ratios=[1.0],
    anchor_offset_x=0.5,
    anchor_offset_y=0.5,
    reduce_boxes_in_lowest_layer=False,
    interpolated_scale_aspect_ratio=1.0,
    fixed_anchor_size=True,
)

SHORT_RANGE_PRESET = DetectorPreset(
    name=PresetName.short_range,
    anchor_config=SHORT_RANGE_DETECTOR_ANCHOR_CONFIG,
    image_to_tensor=ImageToTensorConfig(
        output_tensor_size=FeatureShape(width=128, height=128),
        keep_aspect_ratio=True,
        output_tensor_float_range=(-1.0, 1.0),
        border_mode=BorderMode.zero,
    ),
    tensors_to_detection=TensorsToDetectionConfig(
        num_classes=1,
        num_boxes=896,
        num_coords=16,
        box_coord_offset=0,
        keypoint_coord_offset=4,
        num_keypoints=6,
        num_values_per_keypoint=2,
        sigmoid_score=True,
        score_clipping_thresh=100.0,
        reverse_output_order=True,
        x_scale=128.0,
        y_scale=128.0,
        h_scale=128.0,
        w_scale=128.0,
        min_score_thresh=0.5,
    ),
)

presets: dict[PresetName, DetectorPreset] = {
    PresetName.full_range: FULL_RANGE_PRESET,
    PresetName.short_range: SHORT_RANGE_PRESET,
}


def get_preset(name: PresetName) -> DetectorPreset:
    return presets[name]
