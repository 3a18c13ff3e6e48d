from __future__ import annotations

from typing import Optional
from typing import Sequence
from typing import NamedTuple

import numpy as np
import torch

from .info import Anchor


class AnchorTensor(NamedTuple):
    x: torch.Tensor
    y: torch.Tensor
    w: torch.Tensor
    h: torch.Tensor

    @property
    def num_anchors(self) -> int:
        return self.x.shape[0]

    def stacked(self) -> torch.Tensor:
        """(N, 4) tensor with cx, cy, w, h columns"""
        return torch.stack((self.x, self.y, self.w, self.h), dim=-1)


def anchors_to_numpy(anchors: Sequence[Anchor]) -> np.ndarray:
    # reshape keeps the (0, 4) shape for an empty sequence
    return np.asarray(anchors, dtype=np.float64).reshape(-1, 4)


def project_anchors(
    anchors: Sequence[Anchor],
    dtype: torch.dtype = torch.float32,
    device: Optional[torch.device] = None,
) -> AnchorTensor:
    columns = torch.as_tensor(anchors_to_numpy(anchors), dtype=dtype, device=device)

    return AnchorTensor(
        x=columns[:, 0].contiguous(),
        y=columns[:, 1].contiguous(),
        w=columns[:, 2].contiguous(),
        h=columns[:, 3].contiguous(),
    )
