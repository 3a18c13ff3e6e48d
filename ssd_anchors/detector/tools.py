from __future__ import annotations

from typing import Optional

import json
from pathlib import Path

import typer
import numpy as np
from absl import logging

from rich.table import Table
from rich.console import Console

from ssd_anchors.core.errors import ConfigError
from ssd_anchors.core.anchors.info import AnchorSet
from ssd_anchors.core.anchors.config import AnchorConfig
from ssd_anchors.core.anchors.config import load_anchor_config
from ssd_anchors.core.anchors.generator import generate_anchors
from ssd_anchors.core.anchors.generator import describe_stride_groups
from ssd_anchors.core.anchors.projection import anchors_to_numpy
from ssd_anchors.plots.anchors import plot_anchors
from ssd_anchors.utils.fs import get_default_export_dir

from .enums import PresetName
from .enums import ExportFormat
from .model import configure_detector
from .presets import get_preset


class _AnchorSource:
    def __init__(
        self,
        preset: Optional[PresetName],
        config_path: Optional[Path],
    ):
        if preset is not None and config_path is not None:
            raise typer.BadParameter("Use either --preset or --config, not both")

        self.preset = preset
        self.config_path = config_path

        if self.preset is None and self.config_path is None:
            self.preset = PresetName.full_range

    @property
    def name(self) -> str:
        if self.preset is not None:
            return self.preset.value
        return self.config_path.stem

    def config(self) -> AnchorConfig:
        if self.preset is not None:
            return get_preset(self.preset).anchor_config
        return load_anchor_config(self.config_path)

    def anchors(self) -> AnchorSet:
        # presets go through the detector setup so the box count is checked
        if self.preset is not None:
            return configure_detector(self.preset).anchors
        return generate_anchors(self.config())


def _exit_on_config_error(err: ConfigError):
    Console(stderr=True).print(f"[bold red]Invalid anchor config:[/bold red] {err}")
    raise typer.Exit(code=1)


def summarize_anchor_config(config: AnchorConfig, title: str) -> None:
    console = Console()

    groups = describe_stride_groups(config)

    table = Table(title=title, show_header=False)
    table.add_row("Num of layers", str(config.num_layers))
    table.add_row("Scale range", f"{config.min_scale} - {config.max_scale}")
    table.add_row("Aspect ratios", ", ".join(str(r) for r in config.aspect_ratios))
    table.add_row("Fixed anchor size", str(config.fixed_anchor_size))
    table.add_row("Num of anchors", str(sum(g.num_anchors for g in groups)))

    console.print(table)

    table = Table(
        title="Stride groups",
        header_style="bold magenta",
    )
    table.add_column("Stride")
    table.add_column("Layers")
    table.add_column("Grid")
    table.add_column("Shapes per cell")
    table.add_column("Anchors")
    for g in groups:
        table.add_row(
            str(g.stride),
            f"{g.first_layer}-{g.last_layer}",
            f"{g.grid.width}x{g.grid.height}",
            str(g.num_shapes),
            str(g.num_anchors),
        )

    console.print(table)


def summarize(
    preset: Optional[PresetName] = typer.Option(None, help="Detector preset"),
    config: Optional[Path] = typer.Option(
        None, exists=True, dir_okay=False, help="JSON anchor config"
    ),
):
    source = _AnchorSource(preset, config)
    try:
        summarize_anchor_config(source.config(), title=source.name)
    except ConfigError as err:
        _exit_on_config_error(err)


def export(
    output: Optional[Path] = typer.Argument(None, help="Output file"),
    preset: Optional[PresetName] = typer.Option(None, help="Detector preset"),
    config: Optional[Path] = typer.Option(
        None, exists=True, dir_okay=False, help="JSON anchor config"
    ),
    fmt: ExportFormat = typer.Option(ExportFormat.npy, help="Output format"),
):
    source = _AnchorSource(preset, config)
    try:
        anchor_config = source.config()
        anchors = source.anchors()
    except ConfigError as err:
        _exit_on_config_error(err)

    if output is None:
        output = get_default_export_dir().joinpath(
            f"{source.name}-anchors.{fmt.value}"
        )

    if fmt == ExportFormat.npy:
        # np.save appends the suffix otherwise
        output = output.with_suffix(".npy")
        np.save(output, anchors_to_numpy(anchors))
    else:
        with open(output, "w") as fp:
            json.dump(
                {
                    "config": anchor_config.to_dict(),
                    "anchors": [a.to_list() for a in anchors],
                },
                fp,
            )

    logging.info(f"Exported {len(anchors)} anchors to {output}")


def plot(
    output: Path = typer.Argument(..., help="Output image"),
    preset: Optional[PresetName] = typer.Option(None, help="Detector preset"),
    config: Optional[Path] = typer.Option(
        None, exists=True, dir_okay=False, help="JSON anchor config"
    ),
    every: int = typer.Option(1, min=1, help="Draw every n-th anchor center"),
):
    source = _AnchorSource(preset, config)
    try:
        plot_anchors(source.config(), output, every=every, title=source.name)
    except ConfigError as err:
        _exit_on_config_error(err)
