from __future__ import annotations

from typing import Any
from typing import Union
from typing import Mapping
from typing import Optional
from typing import Sequence
from typing import NamedTuple

import json
import math
import numbers
from pathlib import Path

from absl import logging

from ssd_anchors.core.types import FeatureShape
from ssd_anchors.core.errors import ConfigError


class DerivedFromStride(NamedTuple):
    """Grid size of a layer is ceil(input size / stride) on each axis."""

    def grid_shape(
        self,
        layer_index: int,
        stride: int,
        input_shape: FeatureShape,
    ) -> FeatureShape:
        return FeatureShape(
            width=math.ceil(input_shape.width / stride),
            height=math.ceil(input_shape.height / stride),
        )


class ExplicitFeatureMaps(NamedTuple):
    """Per layer grid sizes given explicitly, indexed by absolute layer."""

    heights: tuple[int, ...]
    widths: tuple[int, ...]

    def grid_shape(
        self,
        layer_index: int,
        stride: int,
        input_shape: FeatureShape,
    ) -> FeatureShape:
        return FeatureShape(
            width=self.widths[layer_index],
            height=self.heights[layer_index],
        )


FeatureMapSizing = Union[ExplicitFeatureMaps, DerivedFromStride]


class AnchorConfig(NamedTuple):
    num_layers: int
    strides: tuple[int, ...]
    min_scale: float
    max_scale: float
    input_size_height: int
    input_size_width: int
    aspect_ratios: tuple[float, ...]
    feature_map_sizing: FeatureMapSizing = DerivedFromStride()
    anchor_offset_x: float = 0.5
    anchor_offset_y: float = 0.5
    reduce_boxes_in_lowest_layer: bool = False
    interpolated_scale_aspect_ratio: float = 1.0
    fixed_anchor_size: bool = False

    @property
    def input_shape(self) -> FeatureShape:
        return FeatureShape(
            width=self.input_size_width,
            height=self.input_size_height,
        )

    @property
    def num_strides(self) -> int:
        return len(self.strides)

    @staticmethod
    def from_dict(values: Mapping[str, Any]) -> AnchorConfig:
        """
        Build a config from a deserialized mapping.

        Both the snake_case field names and the camelCase names used by the
        detector preset tables are accepted. A `None` value means the
        documented default.
        """
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in _BUILDER_KEYS:
                raise ConfigError(f"Unknown anchor config key: {key}")
            if name in kwargs:
                raise ConfigError(f"Anchor config key given twice: {key}")
            if value is None:
                continue
            kwargs[name] = value

        missing = [k for k in _REQUIRED_KEYS if k not in kwargs]
        if missing:
            raise ConfigError(f"Missing anchor config keys: {', '.join(missing)}")

        return make_anchor_config(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.feature_map_sizing, ExplicitFeatureMaps):
            feature_map_height = list(self.feature_map_sizing.heights)
            feature_map_width = list(self.feature_map_sizing.widths)
        else:
            feature_map_height = []
            feature_map_width = []

        return {
            "num_layers": self.num_layers,
            "strides": list(self.strides),
            "min_scale": self.min_scale,
            "max_scale": self.max_scale,
            "input_size_height": self.input_size_height,
            "input_size_width": self.input_size_width,
            "aspect_ratios": list(self.aspect_ratios),
            "feature_map_height": feature_map_height,
            "feature_map_width": feature_map_width,
            "anchor_offset_x": self.anchor_offset_x,
            "anchor_offset_y": self.anchor_offset_y,
            "reduce_boxes_in_lowest_layer": self.reduce_boxes_in_lowest_layer,
            "interpolated_scale_aspect_ratio": self.interpolated_scale_aspect_ratio,
            "fixed_anchor_size": self.fixed_anchor_size,
        }


_CAMEL_CASE_KEYS = {
    "numLayers": "num_layers",
    "strides": "strides",
    "minScale": "min_scale",
    "maxScale": "max_scale",
    "inputSizeHeight": "input_size_height",
    "inputSizeWidth": "input_size_width",
    "aspectRatios": "aspect_ratios",
    "featureMapHeight": "feature_map_height",
    "featureMapWidth": "feature_map_width",
    "anchorOffsetX": "anchor_offset_x",
    "anchorOffsetY": "anchor_offset_y",
    "reduceBoxesInLowestLayer": "reduce_boxes_in_lowest_layer",
    "interpolatedScaleAspectRatio": "interpolated_scale_aspect_ratio",
    "fixedAnchorSize": "fixed_anchor_size",
}

_REQUIRED_KEYS = (
    "num_layers",
    "strides",
    "min_scale",
    "max_scale",
    "input_size_height",
    "input_size_width",
    "aspect_ratios",
)

_BUILDER_KEYS = frozenset(_CAMEL_CASE_KEYS.values())


def _as_tuple(name: str, values: Any) -> tuple:
    # a str is a sequence too, but never a valid list of numbers
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise ConfigError(f"{name} must be a list, got {values!r}")
    return tuple(values)


def _check_int(name: str, value: Any) -> None:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def _check_real(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be finite, got {value!r}")


def _check_flag(name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false, got {value!r}")


def make_anchor_config(
    *,
    num_layers: int,
    strides: Sequence[int],
    min_scale: float,
    max_scale: float,
    input_size_height: int,
    input_size_width: int,
    aspect_ratios: Sequence[float],
    feature_map_height: Optional[Sequence[int]] = None,
    feature_map_width: Optional[Sequence[int]] = None,
    anchor_offset_x: float = 0.5,
    anchor_offset_y: float = 0.5,
    reduce_boxes_in_lowest_layer: Optional[bool] = None,
    interpolated_scale_aspect_ratio: Optional[float] = None,
    fixed_anchor_size: Optional[bool] = None,
) -> AnchorConfig:
    """Apply defaults, normalize sequences and validate."""
    if reduce_boxes_in_lowest_layer is None:
        reduce_boxes_in_lowest_layer = False
    if interpolated_scale_aspect_ratio is None:
        interpolated_scale_aspect_ratio = 1.0
    if fixed_anchor_size is None:
        fixed_anchor_size = False

    heights = _as_tuple("feature_map_height", feature_map_height or ())
    widths = _as_tuple("feature_map_width", feature_map_width or ())

    # empty (or absent) grid sizes on both axes mean "derive from stride"
    feature_map_sizing: FeatureMapSizing
    if not heights and not widths:
        feature_map_sizing = DerivedFromStride()
    else:
        feature_map_sizing = ExplicitFeatureMaps(heights=heights, widths=widths)

    config = AnchorConfig(
        num_layers=num_layers,
        strides=_as_tuple("strides", strides),
        min_scale=min_scale,
        max_scale=max_scale,
        input_size_height=input_size_height,
        input_size_width=input_size_width,
        aspect_ratios=_as_tuple("aspect_ratios", aspect_ratios),
        feature_map_sizing=feature_map_sizing,
        anchor_offset_x=anchor_offset_x,
        anchor_offset_y=anchor_offset_y,
        reduce_boxes_in_lowest_layer=reduce_boxes_in_lowest_layer,
        interpolated_scale_aspect_ratio=interpolated_scale_aspect_ratio,
        fixed_anchor_size=fixed_anchor_size,
    )

    return validate_anchor_config(config)


def _check_types(config: AnchorConfig) -> None:
    _check_int("num_layers", config.num_layers)
    _check_int("input_size_height", config.input_size_height)
    _check_int("input_size_width", config.input_size_width)

    for stride in _as_tuple("strides", config.strides):
        _check_int("strides", stride)

    _check_real("min_scale", config.min_scale)
    _check_real("max_scale", config.max_scale)
    _check_real("anchor_offset_x", config.anchor_offset_x)
    _check_real("anchor_offset_y", config.anchor_offset_y)
    _check_real(
        "interpolated_scale_aspect_ratio", config.interpolated_scale_aspect_ratio
    )

    for ratio in _as_tuple("aspect_ratios", config.aspect_ratios):
        _check_real("aspect_ratios", ratio)

    _check_flag("reduce_boxes_in_lowest_layer", config.reduce_boxes_in_lowest_layer)
    _check_flag("fixed_anchor_size", config.fixed_anchor_size)

    sizing = config.feature_map_sizing
    if isinstance(sizing, ExplicitFeatureMaps):
        for height in _as_tuple("feature_map_height", sizing.heights):
            _check_int("feature_map_height", height)
        for width in _as_tuple("feature_map_width", sizing.widths):
            _check_int("feature_map_width", width)


def validate_anchor_config(config: AnchorConfig) -> AnchorConfig:
    _check_types(config)

    if config.num_layers <= 0:
        raise ConfigError(f"num_layers must be positive, got {config.num_layers}")

    if len(config.strides) < config.num_layers:
        raise ConfigError(
            f"{config.num_layers} layers need as many strides, "
            f"got {len(config.strides)}"
        )

    for idx, stride in enumerate(config.strides):
        if stride <= 0:
            raise ConfigError(f"Stride at layer {idx} must be positive, got {stride}")

    if not 0 < config.min_scale <= 1 or not 0 < config.max_scale <= 1:
        raise ConfigError(
            f"Scale bounds must lie in (0, 1], got "
            f"[{config.min_scale}, {config.max_scale}]"
        )

    if config.min_scale > config.max_scale:
        raise ConfigError(
            f"min_scale ({config.min_scale}) is larger than "
            f"max_scale ({config.max_scale})"
        )

    if config.input_size_height <= 0 or config.input_size_width <= 0:
        raise ConfigError(
            f"Input size must be positive, got "
            f"{config.input_size_width}x{config.input_size_height}"
        )

    if not config.aspect_ratios:
        raise ConfigError("At least one aspect ratio is required")

    for ratio in config.aspect_ratios:
        if ratio <= 0:
            raise ConfigError(f"Aspect ratios must be positive, got {ratio}")

    for name, offset in (
        ("anchor_offset_x", config.anchor_offset_x),
        ("anchor_offset_y", config.anchor_offset_y),
    ):
        if not 0 <= offset <= 1:
            raise ConfigError(f"{name} must lie in [0, 1], got {offset}")

    if config.interpolated_scale_aspect_ratio < 0:
        raise ConfigError(
            "interpolated_scale_aspect_ratio cannot be negative, got "
            f"{config.interpolated_scale_aspect_ratio}"
        )

    sizing = config.feature_map_sizing
    if isinstance(sizing, ExplicitFeatureMaps):
        if len(sizing.heights) != len(sizing.widths):
            raise ConfigError(
                f"Got {len(sizing.heights)} feature map heights "
                f"but {len(sizing.widths)} widths"
            )
        if len(sizing.heights) < config.num_layers:
            raise ConfigError(
                f"{config.num_layers} layers need as many feature map sizes, "
                f"got {len(sizing.heights)}"
            )
        for height, width in zip(sizing.heights, sizing.widths):
            if height <= 0 or width <= 0:
                raise ConfigError(
                    f"Feature map sizes must be positive, got {width}x{height}"
                )
    elif not isinstance(sizing, DerivedFromStride):
        raise ConfigError(f"Unsupported feature map sizing: {sizing!r}")

    return config


def load_anchor_config(config_path: Path) -> AnchorConfig:
    with open(config_path, "r") as fp:
        try:
            values = json.load(fp)
        except json.JSONDecodeError as err:
            raise ConfigError(f"{config_path} is not valid JSON: {err}") from err

    if not isinstance(values, dict):
        raise ConfigError(f"{config_path} must hold a JSON object")

    logging.info(f"Loaded anchor config from {config_path}")

    return AnchorConfig.from_dict(values)
