from __future__ import annotations

import enum


@enum.unique
class PresetName(enum.Enum):
    full_range = "full-range"
    short_range = "short-range"


@enum.unique
class BorderMode(enum.Enum):
    zero = "zero"
    replicate = "replicate"


@enum.unique
class ExportFormat(enum.Enum):
    npy = "npy"
    json = "json"
