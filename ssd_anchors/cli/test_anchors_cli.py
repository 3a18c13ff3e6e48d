from __future__ import annotations

import json

import numpy as np
import matplotlib

from typer.testing import CliRunner

from ssd_anchors.cli.anchors import app
from ssd_anchors.core.anchors.config import AnchorConfig
from ssd_anchors.detector.presets import SHORT_RANGE_DETECTOR_ANCHOR_CONFIG
from ssd_anchors.test_utils.anchor_configs import MOBILE_SSD

matplotlib.use("Agg")

runner = CliRunner()


def test_summarize():
    result = runner.invoke(app, ["summarize", "--preset", "short-range"])

    assert result.exit_code == 0, result.output
    assert "896" in result.output


def test_summarize_config_file(tmp_path):
    config_path = tmp_path.joinpath("mobile_ssd.json")
    config_path.write_text(json.dumps(MOBILE_SSD.to_dict()))

    result = runner.invoke(app, ["summarize", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "1917" in result.output


def test_export_json(tmp_path):
    output = tmp_path.joinpath("anchors.json")

    result = runner.invoke(
        app, ["export", str(output), "--preset", "short-range", "--fmt", "json"]
    )

    assert result.exit_code == 0, result.output

    with open(output, "r") as fp:
        exported = json.load(fp)

    assert len(exported["anchors"]) == 896
    assert AnchorConfig.from_dict(exported["config"]) == (
        SHORT_RANGE_DETECTOR_ANCHOR_CONFIG
    )


def test_export_npy(tmp_path):
    output = tmp_path.joinpath("anchors.npy")

    result = runner.invoke(app, ["export", str(output)])

    assert result.exit_code == 0, result.output
    assert np.load(output).shape == (2304, 4)


def test_invalid_config_file(tmp_path):
    config_path = tmp_path.joinpath("broken.json")
    config_path.write_text(json.dumps({**MOBILE_SSD.to_dict(), "strides": [16]}))

    result = runner.invoke(app, ["summarize", "--config", str(config_path)])

    assert result.exit_code == 1


def test_preset_and_config_are_exclusive(tmp_path):
    config_path = tmp_path.joinpath("mobile_ssd.json")
    config_path.write_text(json.dumps(MOBILE_SSD.to_dict()))

    result = runner.invoke(
        app,
        ["summarize", "--preset", "full-range", "--config", str(config_path)],
    )

    assert result.exit_code != 0


def test_plot(tmp_path):
    output = tmp_path.joinpath("anchors.png")

    result = runner.invoke(
        app, ["plot", str(output), "--preset", "short-range", "--every", "2"]
    )

    assert result.exit_code == 0, result.output
    assert output.exists()


def test_mistyped_config_file(tmp_path):
    config_path = tmp_path.joinpath("mistyped.json")

    for key, value in (
        ("strides", "16"),
        ("fixed_anchor_size", "false"),
        ("num_layers", "6"),
        ("aspect_ratios", 1.0),
    ):
        config_path.write_text(json.dumps({**MOBILE_SSD.to_dict(), key: value}))

        result = runner.invoke(app, ["summarize", "--config", str(config_path)])

        assert result.exit_code == 1, (key, result.output)


def test_missing_config_file(tmp_path):
    config_path = tmp_path.joinpath("missing.json")

    result = runner.invoke(app, ["summarize", "--config", str(config_path)])

    # rejected by typer's argument parsing, not by a traceback
    assert result.exit_code == 2
    assert not isinstance(result.exception, OSError)


def test_export_npy_without_suffix(tmp_path):
    output = tmp_path.joinpath("anchors")

    result = runner.invoke(app, ["export", str(output), "--preset", "short-range"])

    assert result.exit_code == 0, result.output
    assert not output.exists()
    assert np.load(tmp_path.joinpath("anchors.npy")).shape == (896, 4)
