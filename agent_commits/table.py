"""Monthly trend table spliced into the README between marker comments."""

import re
from datetime import datetime
from pathlib import Path

import pandas as pd

START_MARKER = "<!-- recent-table-start -->"
END_MARKER = "<!-- recent-table-end -->"
TABLE_PATTERN = re.compile(re.escape(START_MARKER) + r".*?" + re.escape(END_MARKER), re.DOTALL)

CAPTION = "Monthly average, as a % of all public commits on GitHub."
ALL_AGENTS = "All Agents"
NEGLIGIBLE_SHARE = 0.005
NEGLIGIBLE = "-"
NO_DATA = "n/a"


def monthly_means(daily):
    """Average daily shares per calendar month.

    ``daily`` is indexed by ``YYYY-MM-DD`` strings. The result has a row for
    every month from the first to the last observed one; months without any
    dates are NaN.
    """
    means = daily.groupby(daily.index.str[:7]).mean()
    months = pd.period_range(means.index.min(), means.index.max(), freq="M").strftime("%Y-%m")
    return means.reindex(months)


def month_label(month: str) -> str:
    return datetime.strptime(month, "%Y-%m").strftime("%b %y")


def format_share(value) -> str:
    if pd.isna(value):
        return NO_DATA
    if value < NEGLIGIBLE_SHARE:
        return NEGLIGIBLE
    return f"{value:.2f}%"


def format_combined(value) -> str:
    if pd.isna(value):
        return NO_DATA
    return f"**{value:.2f}%**"


def rank_agents(agent_means: pd.DataFrame) -> list:
    """Agents by their latest month's average, highest first."""
    latest = agent_means.iloc[-1]
    return list(latest.sort_values(ascending=False, kind="stable").index)


def build_table(shares: pd.DataFrame, combined: pd.Series) -> str:
    agent_means = monthly_means(shares)
    combined_means = monthly_means(combined)
    months = list(agent_means.index)

    header = "| Agent | " + " | ".join(month_label(m) for m in months) + " |"
    separator = "|-------|" + "|".join("---" for _ in months) + "|"
    lines = [CAPTION, "", header, separator]

    for agent in rank_agents(agent_means):
        cells = [format_share(value) for value in agent_means[agent]]
        lines.append(f"| {agent} | " + " | ".join(cells) + " |")

    cells = [format_combined(value) for value in combined_means]
    lines.append(f"| **{ALL_AGENTS}** | " + " | ".join(cells) + " |")

    return "\n".join(lines)


def splice_table(document: str, table: str) -> str:
    """Replace the marker region of ``document`` with ``table``, keeping the markers."""
    if TABLE_PATTERN.search(document) is None:
        raise ValueError(f"missing {START_MARKER} ... {END_MARKER} markers")
    block = f"{START_MARKER}\n{table}\n{END_MARKER}"
    return TABLE_PATTERN.sub(lambda _: block, document, count=1)


def read_document(path: Path) -> str:
    # bytes in and out so line endings outside the table survive untouched
    return Path(path).read_bytes().decode("utf-8")


def write_document(path: Path, document: str) -> None:
    Path(path).write_bytes(document.encode("utf-8"))
