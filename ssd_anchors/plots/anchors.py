from __future__ import annotations

from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.pyplot import cm

from absl import logging

from ssd_anchors.core.anchors.config import AnchorConfig
from ssd_anchors.core.anchors.generator import generate_anchors
from ssd_anchors.core.anchors.generator import describe_stride_groups
from ssd_anchors.core.anchors.projection import anchors_to_numpy

from ._mat import set_theme_and_params


def plot_anchors(
    config: AnchorConfig,
    output_path: Path,
    every: int = 1,
    title: str = "",
) -> None:
    """
    Save a figure with the anchor centers of every stride group and the
    shapes of the cell closest to the image center.

    Only every `every`-th center is drawn, dense grids are unreadable
    otherwise.
    """
    if every < 1:
        raise ValueError("every must be at least 1")

    set_theme_and_params()

    anchors = anchors_to_numpy(generate_anchors(config))
    groups = describe_stride_groups(config)

    fig, ax = plt.subplots(1, 1, figsize=(8, 8))
    colors = cm.rainbow(np.linspace(0, 1, len(groups)))

    start = 0
    for group, c in zip(groups, colors):
        group_anchors = anchors[start : start + group.num_anchors]
        start = start + group.num_anchors

        # one row per shape, the centers repeat for every shape of a cell
        centers = group_anchors[:: group.num_shapes][::every]
        ax.scatter(
            centers[:, 0],
            centers[:, 1],
            s=4,
            color=c,
            label=f"stride {group.stride} - {group.grid.width}x{group.grid.height}",
        )

        mid_cell = (group.grid.height // 2) * group.grid.width + group.grid.width // 2
        first_row = mid_cell * group.num_shapes
        for cx, cy, w, h in group_anchors[first_row : first_row + group.num_shapes]:
            rect = plt.Rectangle(
                (cx - w / 2, cy - h / 2), w, h, fill=False, edgecolor=c, linewidth=1
            )
            ax.add_patch(rect)

    ax.set_xlim(0, 1)
    # image coordinates, y grows downwards
    ax.set_ylim(1, 0)
    ax.set_aspect("equal")
    ax.legend()
    ax.set_title(title or f"{len(anchors)} anchors")

    fig.savefig(output_path)
    plt.close(fig)

    logging.info(f"Saved anchor plot to {output_path}")
