import json
import os

import pandas as pd
import pytest

from analysis.reporter import headline, print_summary, save_range_histogram
from main import FUNNEL_TARGET, build_report


def test_build_report_without_rendering(ev_csv, tmp_path):
    result = build_report(str(ev_csv), str(tmp_path / "reports"), render=False)
    assert result.zero_range_count == 10
    assert result.n_filtered == 100
    assert (result.n_train, result.n_test) == (80, 20)
    assert result.snapshot["shape"] == (110, 5)
    assert "e_v_type" in result.snapshot["columns"]
    assert result.group_means["avg_electric_range"].tolist() == pytest.approx([250.0, 83.0])
    assert result.model.reference_level == "battery_electric"
    assert result.model.offsets["plug_in_hybrid"] == pytest.approx(-167.0, abs=10)
    assert result.metrics.rmse >= result.metrics.mae >= 0
    assert result.artifacts == {}
    assert not os.path.exists(tmp_path / "reports")


def test_build_report_is_reproducible(ev_csv, tmp_path):
    first = build_report(str(ev_csv), str(tmp_path), render=False)
    second = build_report(str(ev_csv), str(tmp_path), render=False)
    pd.testing.assert_frame_equal(first.model.to_frame(), second.model.to_frame())
    assert first.metrics == second.metrics


def test_funnel_targets_top_range_bin(ev_csv, tmp_path):
    result = build_report(str(ev_csv), str(tmp_path), render=False)
    assert FUNNEL_TARGET == "electric_range__215_Inf"
    assert abs(result.funnel.iloc[0]["correlation"]) == pytest.approx(1.0)
    leading = result.funnel[result.funnel["correlation"].abs() > 1 - 1e-9]
    assert FUNNEL_TARGET in leading["indicator"].tolist()
    assert leading.loc[leading["indicator"] == FUNNEL_TARGET, "correlation"].item() == pytest.approx(1.0)


def test_funnel_excludes_zero_range_rows(ev_csv, tmp_path):
    result = build_report(str(ev_csv), str(tmp_path), render=False)
    # KIA only appears on zero-range rows in the fixture
    assert "make__KIA" not in result.funnel["indicator"].tolist()
    makes = set(result.funnel.loc[result.funnel["feature"] == "make", "bin"])
    assert makes == {"TESLA", "NISSAN", "CHEVROLET", "TOYOTA", "BMW", "FORD"}


def test_build_report_renders_artifacts(ev_csv, tmp_path):
    reports_dir = tmp_path / "reports"
    result = build_report(str(ev_csv), str(reports_dir))
    for key in ("group_means", "histogram", "funnel", "pdf", "summary"):
        assert os.path.isfile(result.artifacts[key]), key
    assert result.artifacts["pdf"].endswith(".pdf")

    with open(result.artifacts["summary"]) as fh:
        summary = json.load(fh)
    assert summary["zero_range_count"] == 10
    assert set(summary["metrics"]) == {"rmse", "mae", "rsq"}
    assert [c["term"] for c in summary["coefficients"]] == ["(Intercept)", "e_v_typeplug_in_hybrid"]


def test_build_report_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        build_report(str(tmp_path / "data.csv"), str(tmp_path), render=False)


def test_build_report_missing_column(tmp_path):
    path = tmp_path / "data.csv"
    pd.DataFrame({"Electric Range": [200, 30], "Make": ["TESLA", "BMW"]}).to_csv(path, index=False)
    with pytest.raises(ValueError, match="Missing required columns"):
        build_report(str(path), str(tmp_path), render=False)


def test_print_summary(ev_csv, tmp_path, capsys):
    result = build_report(str(ev_csv), str(tmp_path), render=False)
    print_summary(result)
    out = capsys.readouterr().out
    assert "battery_electric" in out
    assert "rmse" in out
    assert "average decrease of" in out
    assert headline(result.model)[0].startswith("plug_in_hybrid vehicles show an average decrease")


def test_print_summary_includes_column_summary(ev_csv, tmp_path, capsys):
    result = build_report(str(ev_csv), str(tmp_path), render=False)
    print_summary(result)
    out = capsys.readouterr().out
    assert "Column summary" in out
    for column in result.columns["column"]:
        assert column in out


def test_summary_json_carries_histogram_and_columns(ev_csv, tmp_path):
    result = build_report(str(ev_csv), str(tmp_path / "reports"))
    with open(result.artifacts["summary"]) as fh:
        summary = json.load(fh)
    assert len(summary["histogram"]) == 50
    assert sum(row["count"] for row in summary["histogram"]) == 100
    assert {row["e_v_type"] for row in summary["histogram"]} == {"battery_electric", "plug_in_hybrid"}
    assert {row["column"] for row in summary["columns"]} == set(result.columns["column"])


def test_range_histogram_plot_reads_histogram_table(ev_csv, tmp_path):
    result = build_report(str(ev_csv), str(tmp_path), render=False)
    path = save_range_histogram(result.histogram, str(tmp_path / "hist.png"))
    assert os.path.getsize(path) > 0
