"""CsvRecorder — append one CSV row per step report.

Subscribe an instance to the engine before ``setup()`` so the step-0 row
is captured.  The file is truncated and the header written on the first
report; each later report is appended and the file closed again, so a
crash never leaves more than the current row unwritten.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from daisyworld.simulation.engine import StepReport

logger = logging.getLogger(__name__)

HEADER = (
    "Step",
    "GlobalTemperature",
    "NumBlacks",
    "NumWhites",
    "Luminosity",
    "AlbedoBlack",
    "AlbedoWhite",
    "AlbedoSurface",
)


def report_row(report: StepReport) -> list[object]:
    """Flatten a StepReport into CSV cells in HEADER order."""
    return [
        report.step,
        report.global_temperature,
        report.black,
        report.white,
        report.luminosity,
        report.albedo_black,
        report.albedo_white,
        report.albedo_surface,
    ]


class CsvRecorder:
    """Step observer writing an append-only CSV log.

    Attributes:
        path: Destination file.
        rows_written: Data rows written so far (header excluded).
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.rows_written = 0
        self._header_written = False

    def __call__(self, report: StepReport) -> None:
        """Write ``report`` as one row, preceded by the header the first time."""
        if not self._header_written:
            with self.path.open("w", newline="") as f:
                csv.writer(f).writerow(HEADER)
            self._header_written = True
            logger.info("Recording steps to %s", self.path)

        with self.path.open("a", newline="") as f:
            csv.writer(f).writerow(report_row(report))
        self.rows_written += 1

    def __repr__(self) -> str:
        return f"CsvRecorder({str(self.path)!r})"
