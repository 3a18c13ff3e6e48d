from __future__ import annotations

from typing import Iterator
from typing import NamedTuple

import math

from absl import logging

from .info import Anchor
from .info import AnchorSet
from .info import StrideGroupInfo
from .config import AnchorConfig
from .config import validate_anchor_config

# predefined shapes of the lowest layer, the scale of the first one is fixed
LOWEST_LAYER_ASPECT_RATIOS = (1.0, 2.0, 0.5)
LOWEST_LAYER_FIRST_SCALE = 0.1


class AnchorShape(NamedTuple):
    aspect_ratio: float
    scale: float

    def size(self) -> tuple[float, float]:
        """Returns (width, height)."""
        ratio_sqrt = math.sqrt(self.aspect_ratio)
        return self.scale * ratio_sqrt, self.scale / ratio_sqrt


class StrideGroup(NamedTuple):
    stride: int
    first_layer: int
    # exclusive
    stop_layer: int

    def layers(self) -> range:
        return range(self.first_layer, self.stop_layer)


def calculate_scale(
    min_scale: float,
    max_scale: float,
    stride_index: int,
    num_strides: int,
) -> float:
    if num_strides == 1:
        return (min_scale + max_scale) * 0.5

    return min_scale + (max_scale - min_scale) * stride_index / (num_strides - 1)


def _stride_groups(config: AnchorConfig) -> Iterator[StrideGroup]:
    layer_id = 0
    while layer_id < config.num_layers:
        stride = config.strides[layer_id]

        # Note -
        # the scan is bounded by the number of strides and not by
        # num_layers, trailing strides equal to the last layer's stride
        # still contribute their shapes to its group
        last_same_stride_layer = layer_id
        while (
            last_same_stride_layer < config.num_strides
            and config.strides[last_same_stride_layer] == stride
        ):
            last_same_stride_layer += 1

        yield StrideGroup(
            stride=stride,
            first_layer=layer_id,
            stop_layer=last_same_stride_layer,
        )

        layer_id = last_same_stride_layer


def _layer_shapes(config: AnchorConfig, layer_index: int) -> list[AnchorShape]:
    scale = calculate_scale(
        config.min_scale,
        config.max_scale,
        layer_index,
        config.num_strides,
    )

    if layer_index == 0 and config.reduce_boxes_in_lowest_layer:
        lowest_scales = (LOWEST_LAYER_FIRST_SCALE, scale, scale)
        return [
            AnchorShape(aspect_ratio=ratio, scale=s)
            for ratio, s in zip(LOWEST_LAYER_ASPECT_RATIOS, lowest_scales)
        ]

    shapes = [
        AnchorShape(aspect_ratio=ratio, scale=scale) for ratio in config.aspect_ratios
    ]

    if config.interpolated_scale_aspect_ratio > 0.0:
        # scale of the next layer from the linear interpolation, 1.0 past
        # the last stride
        if layer_index == config.num_strides - 1:
            scale_next = 1.0
        else:
            scale_next = calculate_scale(
                config.min_scale,
                config.max_scale,
                layer_index + 1,
                config.num_strides,
            )

        shapes.append(
            AnchorShape(
                aspect_ratio=config.interpolated_scale_aspect_ratio,
                scale=math.sqrt(scale * scale_next),
            )
        )

    return shapes


def _group_shapes(config: AnchorConfig, group: StrideGroup) -> list[AnchorShape]:
    # layers sharing a stride share the grid, so their shapes are pooled
    shapes: list[AnchorShape] = []
    for layer_index in group.layers():
        shapes.extend(_layer_shapes(config, layer_index))
    return shapes


def describe_stride_groups(config: AnchorConfig) -> list[StrideGroupInfo]:
    validate_anchor_config(config)

    result: list[StrideGroupInfo] = []
    for group in _stride_groups(config):
        result.append(
            StrideGroupInfo(
                stride=group.stride,
                first_layer=group.first_layer,
                last_layer=group.stop_layer - 1,
                grid=config.feature_map_sizing.grid_shape(
                    group.first_layer,
                    group.stride,
                    config.input_shape,
                ),
                num_shapes=len(_group_shapes(config, group)),
            )
        )
    return result


def count_anchors(config: AnchorConfig) -> int:
    return sum(g.num_anchors for g in describe_stride_groups(config))


def generate_anchors(config: AnchorConfig) -> AnchorSet:
    """
    Enumerate the anchors of an SSD style detector.

    The order of the returned anchors matches the rows of the detector
    output, i.e. stride group, then grid row (y), then grid column (x),
    then shape within the cell.

    Raises:
        ConfigError: if the config is malformed; nothing is generated then.
    """
    validate_anchor_config(config)

    anchors: list[Anchor] = []
    for group in _stride_groups(config):
        shapes = _group_shapes(config, group)

        if config.fixed_anchor_size:
            sizes = [(1.0, 1.0)] * len(shapes)
        else:
            sizes = [s.size() for s in shapes]

        grid = config.feature_map_sizing.grid_shape(
            group.first_layer,
            group.stride,
            config.input_shape,
        )

        logging.debug(
            f"Stride {group.stride} (layers {group.first_layer}.."
            f"{group.stop_layer - 1}): {grid.width}x{grid.height} grid, "
            f"{len(shapes)} shapes per cell"
        )

        for y in range(grid.height):
            y_center = (y + config.anchor_offset_y) / grid.height
            for x in range(grid.width):
                x_center = (x + config.anchor_offset_x) / grid.width
                for width, height in sizes:
                    anchors.append(
                        Anchor(
                            x_center=x_center,
                            y_center=y_center,
                            width=width,
                            height=height,
                        )
                    )

    return tuple(anchors)
