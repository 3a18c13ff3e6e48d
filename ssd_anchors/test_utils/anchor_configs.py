from __future__ import annotations

from ssd_anchors.core.anchors.config import make_anchor_config

# 2x2 grid, one shape per cell
TWO_BY_TWO_GRID = make_anchor_config(
    num_layers=1,
    strides=[1],
    min_scale=0.25,
    max_scale=0.75,
    input_size_height=2,
    input_size_width=2,
    aspect_ratios=[1.0],
    feature_map_height=[2],
    feature_map_width=[2],
    interpolated_scale_aspect_ratio=0.0,
)

# lowest layer uses the predefined shapes, the other shares its stride
REDUCED_LOWEST_LAYER = make_anchor_config(
    num_layers=2,
    strides=[8, 8],
    min_scale=0.2,
    max_scale=0.8,
    input_size_height=32,
    input_size_width=32,
    aspect_ratios=[1.0, 2.0, 0.5, 3.0],
    reduce_boxes_in_lowest_layer=True,
    interpolated_scale_aspect_ratio=1.0,
)

# typical mobile SSD layout, six layers with distinct strides
MOBILE_SSD = make_anchor_config(
    num_layers=6,
    strides=[16, 32, 64, 128, 256, 512],
    min_scale=0.2,
    max_scale=0.95,
    input_size_height=300,
    input_size_width=300,
    aspect_ratios=[1.0, 2.0, 0.5, 3.0, 0.3333],
    reduce_boxes_in_lowest_layer=True,
    interpolated_scale_aspect_ratio=1.0,
)
