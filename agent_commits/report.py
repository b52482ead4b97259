"""Render chart.png and the README trend table from all collected data.

Reads every ``data/*.csv`` record, computes each agent's share of public
commits per day, then writes the combined-share chart and splices the
monthly table into README.md.
"""

from pathlib import Path

import pandas as pd
from scipy import stats

from agent_commits.agents import AGENT_KEYS, CHART_AGENTS
from agent_commits.chart import render_chart
from agent_commits.table import build_table, monthly_means, read_document, splice_table, write_document

DATA_DIR = Path("data")
CHART_PATH = Path("chart.png")
README_PATH = Path("README.md")
TREND_DAYS = 30


def load_records(data_dir: Path = DATA_DIR) -> pd.DataFrame:
    """One row per usable date, one column per query label.

    The date is read from the rows, not the file name. Dates whose total is
    missing or zero are dropped as not yet collected.
    """
    frames = []
    for path in sorted(Path(data_dir).glob("*.csv")):
        try:
            frames.append(pd.read_csv(path, dtype={"date": str, "query": str}))
        except pd.errors.EmptyDataError:
            continue

    if not frames:
        return pd.DataFrame()

    df = pd.concat(frames, ignore_index=True).reindex(columns=["date", "query", "count"])
    df["count"] = pd.to_numeric(df["count"], errors="coerce")
    df = df.dropna(subset=["date", "query", "count"])
    df = df.drop_duplicates(subset=["date", "query"], keep="last")
    if df.empty:
        return pd.DataFrame()

    records = df.pivot(index="date", columns="query", values="count").sort_index()
    records.columns.name = None
    if "total" not in records.columns:
        return pd.DataFrame()

    return records[records["total"].fillna(0) > 0]


def _agent_counts(records: pd.DataFrame) -> pd.DataFrame:
    # A key missing from a record counts as 0, same as a measured zero.
    return records.reindex(columns=AGENT_KEYS).fillna(0)


def agent_shares(records: pd.DataFrame) -> pd.DataFrame:
    """Percentage of each day's public commits per display agent."""
    counts = _agent_counts(records)
    total = records["total"]
    return pd.DataFrame(
        {name: counts[keys].sum(axis=1) / total * 100 for name, keys in CHART_AGENTS.items()},
        index=records.index,
    )


def combined_share(records: pd.DataFrame) -> pd.Series:
    """Percentage of each day's public commits made by any agent."""
    return _agent_counts(records).sum(axis=1) / records["total"] * 100


def recent_trend(combined: pd.Series, days: int = TREND_DAYS):
    """Slope of the combined share over the last ``days`` days, in points per day."""
    dates = pd.to_datetime(combined.index)
    recent = dates >= dates.max() - pd.Timedelta(days=days)
    x = (dates[recent] - dates[recent].min()).days.to_numpy()

    if len(x) < 2:
        return None

    slope, _, _, _, _ = stats.linregress(x, combined[recent].to_numpy())
    return slope


def run(data_dir: Path = DATA_DIR, chart_path: Path = CHART_PATH, readme_path: Path = README_PATH) -> None:
    records = load_records(data_dir)
    if records.empty:
        raise SystemExit(f"No data found in {data_dir}/*.csv")

    print(f"Loaded {len(records)} days of data")

    shares = agent_shares(records)
    combined = combined_share(records)

    table = build_table(shares, combined)
    try:
        readme = splice_table(read_document(readme_path), table)
    except (OSError, ValueError) as e:
        raise SystemExit(f"Error: cannot update {readme_path}: {e}")

    render_chart(combined, chart_path)
    print(f"Wrote {chart_path} ({Path(chart_path).stat().st_size / 1024:.0f} KB)")

    write_document(readme_path, readme)
    months = len(monthly_means(combined))
    print(f"Updated {readme_path} with full history table ({months} months, {len(CHART_AGENTS)} agents)")

    latest = combined.iloc[-1]
    slope = recent_trend(combined)
    if slope is None:
        print(f"All agents on {combined.index[-1]}: {latest:.2f}%")
    else:
        print(f"All agents on {combined.index[-1]}: {latest:.2f}% ({slope:+.3f} pts/day over {TREND_DAYS} days)")


def main() -> None:
    run()


if __name__ == "__main__":
    main()
