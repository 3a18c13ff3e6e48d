from __future__ import annotations

import os
from pathlib import Path


def get_root_dir() -> Path:
    root_dir = os.environ.get("SSD_ANCHORS_ROOT_DIR", None)
    return Path(root_dir) if root_dir else Path.home()


def get_ssd_anchors_dir() -> Path:
    root_dir = get_root_dir()
    return root_dir.joinpath("ssd-anchors")


def get_default_export_dir() -> Path:
    export_dir = get_ssd_anchors_dir().joinpath("exports")
    export_dir.mkdir(parents=True, exist_ok=True)
    return export_dir
