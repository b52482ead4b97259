"""Tests for loading records, shares, the chart and the end-to-end report."""

import matplotlib.image as mpimg
import pytest

from agent_commits.agents import CHART_AGENTS
from agent_commits.chart import render_chart
from agent_commits.report import agent_shares, combined_share, load_records, recent_trend, run
from agent_commits.table import END_MARKER, START_MARKER

README = f"# Title\n\nIntro\n\n{START_MARKER}\nold table\n{END_MARKER}\n\nFooter\n"


def write_csv(data_dir, day, counts):
    data_dir.mkdir(parents=True, exist_ok=True)
    lines = ["date,query,count"] + [f"{day},{query},{count}" for query, count in counts.items()]
    (data_dir / f"{day}.csv").write_text("\n".join(lines) + "\n", encoding="utf-8")


@pytest.fixture
def data_dir(tmp_path):
    data = tmp_path / "data"
    write_csv(data, "2026-02-14", {"total": 1000, "claude": 10})
    write_csv(data, "2026-02-15", {"total": 2000, "claude": 40})
    write_csv(data, "2026-02-16", {"total": 0, "claude": 5})
    return data


class TestLoadRecords:
    def test_zero_total_dates_are_skipped(self, data_dir):
        records = load_records(data_dir)
        assert list(records.index) == ["2026-02-14", "2026-02-15"]

    def test_missing_total_is_skipped(self, tmp_path):
        write_csv(tmp_path, "2026-02-14", {"total": 1000, "claude": 10})
        write_csv(tmp_path, "2026-02-15", {"claude": 3})
        assert list(load_records(tmp_path).index) == ["2026-02-14"]

    def test_date_comes_from_rows(self, tmp_path):
        (tmp_path / "renamed.csv").write_text(
            "date,query,count\n2026-03-01,total,500\n2026-03-01,claude,5\n", encoding="utf-8"
        )
        assert list(load_records(tmp_path).index) == ["2026-03-01"]

    def test_empty_store(self, tmp_path):
        (tmp_path / "empty.csv").write_text("", encoding="utf-8")
        assert load_records(tmp_path).empty
        assert load_records(tmp_path / "missing").empty


class TestShares:
    def test_agent_share_is_count_over_total(self, data_dir):
        shares = agent_shares(load_records(data_dir))
        assert shares.loc["2026-02-14", "Claude Code"] == pytest.approx(1.0)
        assert shares.loc["2026-02-15", "Claude Code"] == pytest.approx(2.0)

    def test_absent_keys_count_as_zero(self, data_dir):
        shares = agent_shares(load_records(data_dir))
        assert list(shares.columns) == list(CHART_AGENTS)
        assert shares.loc["2026-02-14", "GitHub Copilot"] == 0

    def test_grouped_keys_are_summed(self, tmp_path):
        write_csv(tmp_path, "2026-02-14", {"total": 1000, "cursor_editor": 20, "cursor_bg": 5})
        shares = agent_shares(load_records(tmp_path))
        assert shares.loc["2026-02-14", "Cursor"] == pytest.approx(2.5)

    def test_combined_share_sums_all_agents(self, tmp_path):
        write_csv(tmp_path, "2026-02-14", {"total": 400, "claude": 4, "copilot": 2, "jules": 2})
        combined = combined_share(load_records(tmp_path))
        assert combined["2026-02-14"] == pytest.approx(2.0)

    def test_recent_trend_slope(self, data_dir):
        combined = combined_share(load_records(data_dir))
        assert recent_trend(combined) == pytest.approx(1.0)
        assert recent_trend(combined.iloc[:1]) is None


class TestChart:
    def test_chart_has_fixed_size(self, data_dir, tmp_path):
        path = render_chart(combined_share(load_records(data_dir)), tmp_path / "chart.png")
        image = mpimg.imread(path)
        assert image.shape[:2] == (450, 1100)


class TestRun:
    def test_end_to_end(self, data_dir, tmp_path, capsys):
        readme = tmp_path / "README.md"
        readme.write_text(README, encoding="utf-8")
        chart = tmp_path / "chart.png"

        run(data_dir, chart, readme)

        assert chart.exists()
        series = combined_share(load_records(data_dir))
        assert series.to_dict() == pytest.approx({"2026-02-14": 1.0, "2026-02-15": 2.0})
        text = readme.read_text(encoding="utf-8")
        assert text.startswith("# Title\n\nIntro\n\n")
        assert text.endswith(f"{END_MARKER}\n\nFooter\n")
        assert "old table" not in text
        assert "| Claude Code | 1.50% |" in text
        assert "| **All Agents** | **1.50%** |" in text
        assert "Loaded 2 days of data" in capsys.readouterr().out

    def test_rerun_leaves_readme_unchanged(self, data_dir, tmp_path):
        readme = tmp_path / "README.md"
        readme.write_text(README, encoding="utf-8")
        run(data_dir, tmp_path / "chart.png", readme)
        first = readme.read_bytes()
        run(data_dir, tmp_path / "chart.png", readme)
        assert readme.read_bytes() == first

    def test_no_data_writes_nothing(self, tmp_path):
        readme = tmp_path / "README.md"
        readme.write_text(README, encoding="utf-8")
        chart = tmp_path / "chart.png"
        with pytest.raises(SystemExit) as exc:
            run(tmp_path / "data", chart, readme)
        assert "No data found" in str(exc.value.code)
        assert not chart.exists()
        assert readme.read_text(encoding="utf-8") == README

    def test_missing_markers_is_fatal(self, data_dir, tmp_path):
        readme = tmp_path / "README.md"
        readme.write_text("# Title\n", encoding="utf-8")
        chart = tmp_path / "chart.png"
        with pytest.raises(SystemExit):
            run(data_dir, chart, readme)
        assert not chart.exists()
