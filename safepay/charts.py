"""Server-side PNG charts for the dashboard.

Figures are built from `matplotlib.figure.Figure` directly so concurrent
requests never share pyplot's global figure state.
"""

from __future__ import annotations

import io

import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure
from matplotlib.ticker import MaxNLocator


BACKGROUND = "#1e293b"
GRID = "#334155"
AXIS = "#64748b"
ACCENT = "#3b82f6"
BAR_COLORS = ["#3b82f6", "#10b981", "#ef4444", "#f59e0b", "#a855f7"]

EMPTY_MESSAGE = "No transactions analyzed yet."

sns.set_theme(style="darkgrid", rc={"axes.facecolor": BACKGROUND, "grid.color": GRID})


def _figure(figsize=(6.4, 3.2)):
    fig = Figure(figsize=figsize, facecolor=BACKGROUND)
    ax = fig.add_subplot()
    ax.tick_params(colors=AXIS, labelsize=9)
    for spine in ax.spines.values():
        spine.set_color(GRID)
    return fig, ax


def _to_png(fig: Figure) -> bytes:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=110, bbox_inches="tight", facecolor=fig.get_facecolor())
    return buf.getvalue()


def _empty(ax) -> None:
    ax.set_xticks([])
    ax.set_yticks([])
    ax.text(0.5, 0.5, EMPTY_MESSAGE, color=AXIS, ha="center", va="center", transform=ax.transAxes)


def render_risk_chart(series: pd.DataFrame) -> bytes:
    """Area chart of risk score over the latest transactions (IST clock on x)."""
    fig, ax = _figure()
    if series.empty:
        _empty(ax)
        return _to_png(fig)

    positions = range(len(series))
    ax.plot(positions, series["risk"], color=ACCENT, linewidth=2)
    ax.fill_between(positions, series["risk"], color=ACCENT, alpha=0.25)
    ax.set_xticks(list(positions))
    ax.set_xticklabels(series["time"], rotation=0)
    ax.set_ylim(0, 100)
    ax.set_xlabel("Time (IST)", color=AXIS)
    ax.set_ylabel("Risk", color=AXIS)
    return _to_png(fig)


def render_type_chart(distribution: pd.DataFrame) -> bytes:
    """Bar chart of transaction counts per type."""
    fig, ax = _figure()
    if int(distribution["value"].sum()) == 0:
        _empty(ax)
        return _to_png(fig)

    sns.barplot(
        data=distribution,
        x="name",
        y="value",
        hue="name",
        palette=BAR_COLORS[: len(distribution)],
        legend=False,
        ax=ax,
    )
    ax.set_xlabel("")
    ax.set_ylabel("Transactions", color=AXIS)
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    return _to_png(fig)
