from __future__ import annotations

from typing import NamedTuple


class FeatureShape(NamedTuple):
    width: int
    height: int
