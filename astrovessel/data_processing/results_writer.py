"""Tab-separated results report, one row per completed image."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Sequence, Union

import pandas as pd


logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "Image name",
    "Image vol (µm3)",
    "Image-ROI vol (µm3)",
    "Vessels vol (µm3)",
    "Astrocytes vol in vessels (µm3)",
    "Astrocytes vol out vessels (µm3)",
]


class ResultsWriter:
    """Writes the header on creation and appends one flushed row per image.

    Args:
        path: Report file; overwritten if it exists.
        columns: Column names, in order.
    """

    def __init__(self, path: Union[str, Path], columns: Sequence[str] = REPORT_COLUMNS):
        self.path = Path(path)
        self.columns = list(columns)
        pd.DataFrame(columns=self.columns).to_csv(self.path, sep="\t", index=False)
        logger.info(f"Results report: {self.path}")

    def write_row(self, row: Union[Mapping[str, object], Sequence[object]]) -> None:
        """Append one row given as a mapping or as values in column order."""
        if isinstance(row, Mapping):
            missing = [c for c in self.columns if c not in row]
            if missing:
                raise ValueError(f"Report row is missing columns: {missing}")
            values = [row[c] for c in self.columns]
        else:
            values = list(row)
            if len(values) != len(self.columns):
                raise ValueError(f"Report row has {len(values)} values, expected {len(self.columns)}")
        pd.DataFrame([values], columns=self.columns).to_csv(
            self.path, sep="\t", index=False, header=False, mode="a"
        )

    def read(self) -> pd.DataFrame:
        return pd.read_csv(self.path, sep="\t")


__all__ = ["REPORT_COLUMNS", "ResultsWriter"]
