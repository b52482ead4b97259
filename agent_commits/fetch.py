"""Fetch daily public commit counts for AI coding agents.

For each date we query the GitHub commit search API for:

1. total public commits, as 24 one-hour windows summed together
2. each agent's commit count for the day

Results go to ``data/YYYY-MM-DD.csv`` with columns ``date,query,count``.

Usage:
    mise run fetch 2026-02-14              # single day
    mise run fetch 2025-02-17 2026-02-15   # inclusive range
"""

import argparse
import asyncio
import csv
import os
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path

import aiohttp
from tqdm import tqdm

from agent_commits.agents import AGENTS

SEARCH_COMMITS_URL = "https://api.github.com/search/commits"
DATA_DIR = Path("data")
MAX_RETRIES = 3
REQUEST_TIMEOUT_S = 30
SECONDARY_RATE_LIMIT_WAIT_S = 60
QUERIES_PER_DAY = 24 + len(AGENTS)


class RateLimitError(Exception):
    def __init__(self, retry_after: float, secondary: bool = False) -> None:
        self.retry_after = retry_after
        self.secondary = secondary
        kind = "secondary rate limit" if secondary else "rate limit"
        super().__init__(f"{kind} hit, retry after {retry_after:.0f}s")


class CollectionError(Exception):
    """A query for a date failed and the run cannot continue."""


@dataclass(frozen=True)
class TimeWindow:
    key: str
    start: str
    end: str


@dataclass
class DailyCounts:
    date: date
    windows: dict = field(default_factory=dict)
    agents: dict = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.windows.values())


def github_headers(token: str) -> dict:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }


def rate_limit_error(status, headers, body, now=None):
    """Classify a 403/429 response, returning a RateLimitError or None."""
    if status not in (403, 429):
        return None

    retry_after = headers.get("Retry-After")
    if retry_after is not None:
        return RateLimitError(float(retry_after), secondary=True)

    if headers.get("X-RateLimit-Remaining") == "0":
        reset_time = int(headers.get("X-RateLimit-Reset", 0))
        now = time.time() if now is None else now
        return RateLimitError(max(0.0, reset_time - now) + 1)

    if "secondary rate limit" in body.lower():
        return RateLimitError(SECONDARY_RATE_LIMIT_WAIT_S, secondary=True)

    return None


async def with_rate_limit_retry(request, max_retries=MAX_RETRIES, sleep=asyncio.sleep, pbar=None):
    """Await ``request()``, waiting out rate limits up to ``max_retries`` times."""
    retries = 0
    while True:
        try:
            return await request()
        except RateLimitError as e:
            if retries >= max_retries:
                raise
            retries += 1
            tqdm.write(f"{e} ({retries}/{max_retries})")
            if pbar is not None:
                pbar.set_description(f"Rate limited, waiting {int(e.retry_after)}s...")
            await sleep(e.retry_after)
            if pbar is not None:
                pbar.set_description("Fetching")


class GitHubSearch:
    """Commit search returning only the approximate ``total_count``."""

    def __init__(self, session, max_retries=MAX_RETRIES, sleep=asyncio.sleep) -> None:
        self.session = session
        self.max_retries = max_retries
        self._sleep = sleep

    async def _search(self, query: str) -> int:
        # per_page=1 since only the count is needed
        async with self.session.get(
            SEARCH_COMMITS_URL,
            params={"q": query, "per_page": "1"},
        ) as response:
            if response.status in (403, 429):
                error = rate_limit_error(response.status, response.headers, await response.text())
                if error is not None:
                    raise error
            response.raise_for_status()
            data = await response.json()
            return data["total_count"]

    async def count(self, query: str, pbar=None) -> int:
        return await with_rate_limit_retry(
            lambda: self._search(query),
            max_retries=self.max_retries,
            sleep=self._sleep,
            pbar=pbar,
        )


def build_time_windows(day: date) -> list:
    """Split a day into 24 one-hour UTC windows: 00..01, ..., 23..00 (+1 day).

    The search API's total_count becomes unreliable above ~1M results, so
    summing hourly counts gives a more accurate daily total.
    """
    start = datetime(day.year, day.month, day.day)
    windows = []
    for hour in range(24):
        window_start = start + timedelta(hours=hour)
        window_end = window_start + timedelta(hours=1)
        windows.append(TimeWindow(
            key=f"total_{hour:02d}",
            start=window_start.strftime("%Y-%m-%dT%H:%M:%SZ"),
            end=window_end.strftime("%Y-%m-%dT%H:%M:%SZ"),
        ))
    return windows


def window_query(window: TimeWindow) -> str:
    return f"is:public committer-date:{window.start}..{window.end}"


def agent_query(agent, day: date) -> str:
    return f"is:public {agent.query} committer-date:{day.isoformat()}"


async def count_query(search, day: date, label: str, query: str, pbar=None) -> int:
    try:
        count = await search.count(query, pbar=pbar)
    except (RateLimitError, aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise CollectionError(f"{day.isoformat()} {label}: {e}") from e
    if pbar is not None:
        pbar.update(1)
    return count


async def fetch_day(search, day: date, pbar=None) -> DailyCounts:
    counts = DailyCounts(date=day)

    for window in build_time_windows(day):
        counts.windows[window.key] = await count_query(search, day, window.key, window_query(window), pbar)

    for agent in AGENTS:
        counts.agents[agent.key] = await count_query(search, day, agent.key, agent_query(agent, day), pbar)

    return counts


def record_path(data_dir: Path, day: date) -> Path:
    return Path(data_dir) / f"{day.isoformat()}.csv"


def write_record(data_dir: Path, counts: DailyCounts) -> Path:
    """Write one day's counts, replacing any existing file for that date.

    Each row carries the date so the files are self-contained and can be
    read together, e.g. ``SELECT * FROM read_csv('data/*.csv')`` in DuckDB.
    """
    Path(data_dir).mkdir(parents=True, exist_ok=True)
    day = counts.date.isoformat()
    rows = [{"date": day, "query": "total", "count": counts.total}]
    for agent in AGENTS:
        rows.append({"date": day, "query": agent.key, "count": counts.agents[agent.key]})

    path = record_path(data_dir, counts.date)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["date", "query", "count"], lineterminator="\n")
        writer.writeheader()
        writer.writerows(rows)
    return path


def format_summary(counts: DailyCounts) -> str:
    parts = [f"{counts.date.isoformat()}: total={counts.total:,d}"]
    for agent in AGENTS:
        parts.append(f"{agent.key}={counts.agents[agent.key]:,d}")
    return "  ".join(parts)


async def collect(search, dates, data_dir=DATA_DIR) -> None:
    """Fetch and persist each date in order, writing each file as soon as its day completes."""
    with tqdm(total=len(dates) * QUERIES_PER_DAY, desc="Fetching", unit="query") as pbar:
        for day in dates:
            counts = await fetch_day(search, day, pbar)
            write_record(data_dir, counts)
            tqdm.write(format_summary(counts))


async def fetch_all(dates, token: str, data_dir=DATA_DIR) -> None:
    # Each day needs 24 + len(AGENTS) searches against a 30 requests/minute
    # budget, so requests go out one at a time.
    timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_S)
    async with aiohttp.ClientSession(headers=github_headers(token), timeout=timeout) as session:
        await collect(GitHubSearch(session), dates, data_dir)


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from None


def date_range(start: date, end: date) -> list:
    days = (end - start).days
    return [start + timedelta(days=i) for i in range(days + 1)]


def parse_args(argv=None) -> list:
    parser = argparse.ArgumentParser(
        description="Fetch daily AI coding agent commit counts from the GitHub search API",
    )
    parser.add_argument("start", type=parse_date, help="first date to fetch (YYYY-MM-DD)")
    parser.add_argument("end", type=parse_date, nargs="?", help="last date to fetch, inclusive (YYYY-MM-DD)")
    args = parser.parse_args(argv)

    end = args.end or args.start
    if end < args.start:
        parser.error(f"end date {end} is before start date {args.start}")
    return date_range(args.start, end)


def main(argv=None) -> None:
    dates = parse_args(argv)

    token = os.environ.get("GITHUB_TOKEN")
    if not token:
        raise SystemExit("Error: GITHUB_TOKEN environment variable is required")

    print(f"Fetching data for {len(dates)} day(s): {dates[0]} to {dates[-1]}")
    try:
        asyncio.run(fetch_all(dates, token))
    except CollectionError as e:
        raise SystemExit(f"Error: fetch failed for {e}")


if __name__ == "__main__":
    main()
