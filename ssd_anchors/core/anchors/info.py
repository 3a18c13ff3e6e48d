from __future__ import annotations

from typing import NamedTuple

from ssd_anchors.core.types import FeatureShape


class Anchor(NamedTuple):
    x_center: float
    y_center: float
    width: float
    height: float

    def to_list(self) -> list[float]:
        return [self.x_center, self.y_center, self.width, self.height]


# rows are ordered stride group -> grid row -> grid column -> shape
AnchorSet = tuple[Anchor, ...]


class StrideGroupInfo(NamedTuple):
    stride: int
    first_layer: int
    last_layer: int
    grid: FeatureShape
    num_shapes: int

    @property
    def num_anchors(self) -> int:
        return self.grid.width * self.grid.height * self.num_shapes
