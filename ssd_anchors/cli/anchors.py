from __future__ import annotations

import typer
from absl import logging

from ssd_anchors.detector.tools import plot
from ssd_anchors.detector.tools import export
from ssd_anchors.detector.tools import summarize

app = typer.Typer()

app.command()(summarize)
app.command()(export)
app.command()(plot)

if __name__ == "__main__":
    logging.set_verbosity(logging.INFO)
    app()
