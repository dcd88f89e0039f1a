"""Reading, summarizing and plotting GROMACS .xvg analysis output."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

_TITLE = re.compile(r'^@\s*title\s+"(.*)"')
_AXIS = re.compile(r'^@\s*([xy])axis\s+label\s+"(.*)"')
_LEGEND = re.compile(r'^@\s*s(\d+)\s+legend\s+"(.*)"')


@dataclass
class XvgData:
    """Columns of an .xvg file plus the Grace labels that describe them."""

    path: Path
    title: str = ""
    xlabel: str = ""
    ylabel: str = ""
    legends: Dict[int, str] = field(default_factory=dict)
    values: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))

    @property
    def x(self) -> np.ndarray:
        return self.values[:, 0] if self.values.size else np.empty(0)

    @property
    def n_series(self) -> int:
        return max(self.values.shape[1] - 1, 0) if self.values.ndim == 2 else 0

    def series_name(self, index: int) -> str:
        if index in self.legends:
            return self.legends[index]
        if self.n_series == 1 and self.ylabel:
            return self.ylabel
        return f"y{index}"

    def series(self, index: int) -> np.ndarray:
        return self.values[:, index + 1]


def read_xvg(path: Union[str, Path]) -> XvgData:
    """Parse an .xvg file; comment lines and rows of a different width are skipped."""
    path = Path(path)
    data = XvgData(path=path)
    rows: List[List[float]] = []
    width: Optional[int] = None

    with open(path, "r", errors="ignore") as fh:
        for line in fh:
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or stripped.startswith("&"):
                continue
            if stripped.startswith("@"):
                m = _TITLE.match(stripped)
                if m:
                    data.title = m.group(1)
                    continue
                m = _AXIS.match(stripped)
                if m:
                    if m.group(1) == "x":
                        data.xlabel = m.group(2)
                    else:
                        data.ylabel = m.group(2)
                    continue
                m = _LEGEND.match(stripped)
                if m:
                    data.legends[int(m.group(1))] = m.group(2)
                continue
            try:
                row = [float(tok) for tok in stripped.split()]
            except ValueError:
                continue
            if width is None:
                width = len(row)
            if len(row) != width:
                continue
            rows.append(row)

    if rows:
        data.values = np.asarray(rows, dtype=float)
    return data


def summarize(paths: Iterable[Union[str, Path]]) -> pd.DataFrame:
    """One row per series: mean, spread, range and final value."""
    records = []
    for p in paths:
        data = read_xvg(p)
        if not data.n_series:
            logger.warning("No data series in %s", p)
            continue
        for i in range(data.n_series):
            y = data.series(i)
            records.append({
                "file": Path(p).name,
                "series": data.series_name(i),
                "n": int(y.size),
                "mean": float(np.mean(y)),
                "std": float(np.std(y)),
                "min": float(np.min(y)),
                "max": float(np.max(y)),
                "final": float(y[-1]),
            })
    return pd.DataFrame.from_records(
        records, columns=["file", "series", "n", "mean", "std", "min", "max", "final"]
    )


def render_png(data: XvgData, out_path: Union[str, Path]) -> Path:
    """Plot every series against the first column, like ``xmgrace -nxy``."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    out_path = Path(out_path)
    fig, ax = plt.subplots(figsize=(8, 4.5))
    try:
        for i in range(data.n_series):
            ax.plot(data.x, data.series(i), linewidth=0.8, label=data.series_name(i))
        ax.set_title(data.title or data.path.name)
        ax.set_xlabel(data.xlabel)
        ax.set_ylabel(data.ylabel)
        if data.n_series > 1 or data.legends:
            ax.legend(loc="best", fontsize="small")
        fig.tight_layout()
        fig.savefig(out_path, dpi=150)
    finally:
        plt.close(fig)
    logger.info("Saved plot %s", out_path)
    return out_path


def export_png(xvg_path: Union[str, Path], out_path: Optional[Union[str, Path]] = None) -> Path:
    xvg_path = Path(xvg_path)
    return render_png(read_xvg(xvg_path), out_path or xvg_path.with_suffix(".png"))
