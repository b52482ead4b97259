from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.dates import DateFormatter, MonthLocator
from matplotlib.ticker import FormatStrFormatter

TITLE = "AI Coding Agent Commits on GitHub (% of public commits)"
WATERMARK = "research.powerset.co"
COLOR = "#4c78a8"
FIGSIZE = (11, 4.5)
DPI = 100


def render_chart(combined: pd.Series, path: Path) -> Path:
    """Area chart of the combined agent share per day, saved as a 1100x450 PNG."""
    dates = pd.to_datetime(combined.index)
    values = combined.to_numpy()

    fig, ax = plt.subplots(figsize=FIGSIZE, dpi=DPI)

    ax.fill_between(dates, values, color=COLOR, alpha=0.3)
    ax.plot(dates, values, color=COLOR, linewidth=1.5)

    ax.set_title(TITLE, fontsize=14, loc="left")
    ax.set_ylabel("% of public commits", fontsize=12)
    ax.set_ylim(bottom=0)
    ax.yaxis.set_major_formatter(FormatStrFormatter("%.2f"))
    ax.xaxis.set_major_locator(MonthLocator())
    ax.xaxis.set_major_formatter(DateFormatter("%b %Y"))
    plt.setp(ax.get_xticklabels(), rotation=45, ha="right")
    ax.grid(True, alpha=0.3)

    ax.text(0.5, 0.5, WATERMARK,
            transform=ax.transAxes,
            fontsize=28,
            alpha=0.08,
            rotation=25,
            horizontalalignment="center",
            verticalalignment="center")

    # Adjust layout to prevent label cutoff
    fig.tight_layout()

    # No bbox_inches="tight" so the image keeps its fixed size
    fig.savefig(path, dpi=DPI, facecolor="white")
    plt.close(fig)
    return Path(path)
