"""Tests for trafficsim.output module."""

import csv
import json

import numpy as np
import pytest
from trafficsim.events import Event, SourceState
from trafficsim.network_queue import NetworkQueue
from trafficsim.output import FileOutputManager, NullOutputSink
from trafficsim.statistics import StatisticsCollector


def test_run_directory_created(tmp_path):
    with FileOutputManager(output_root=tmp_path) as out:
        assert out.run_directory.is_dir()
        assert out.run_directory.parent == tmp_path
        assert out.run_directory.name.startswith("run_")
        assert out.get_run_directory() == out.run_directory


def test_event_log_header_and_lines(tmp_path):
    with FileOutputManager({"seed": "42"}, output_root=tmp_path) as out:
        out.log_event(Event(1.5, 3, SourceState.ON))
        out.log_event(Event(2.25, 3, SourceState.OFF))
    lines = out.event_log_path.read_text().splitlines()
    assert lines[0] == "# Telecom Network Traffic Simulator Event Log"
    assert lines[1].startswith("# Created: ")
    assert "# --- Run Metadata ---" in lines
    assert "# seed: 42" in lines
    assert "t=1.500, source=3, type=ON" in lines
    assert "t=2.250, source=3, type=OFF" in lines


def test_metadata_json_written_only_with_metadata(tmp_path):
    with FileOutputManager({"hurst": "0.8"}, output_root=tmp_path / "a") as out:
        data = json.loads((out.run_directory / "metadata.json").read_text())
    assert data == {"hurst": "0.8"}
    with FileOutputManager(output_root=tmp_path / "b") as out:
        assert not (out.run_directory / "metadata.json").exists()


def test_summary_sections(tmp_path):
    stats = StatisticsCollector()
    for i, r in enumerate([0.2, 0.4, 0.6]):
        stats.record_sample(float(i), r)
    queue = NetworkQueue(service_rate=1.0)
    queue.enqueue_bulk(0.0, 2)
    queue.process_until(5.0)
    with FileOutputManager(output_root=tmp_path) as out:
        out.save_summary(stats, queue)
    text = out.summary_path.read_text()
    assert "Run Metadata" in text
    assert "(no metadata provided)" in text
    assert "Traffic Statistics" in text
    assert "Samples Recorded : 3" in text
    assert "Queue Metrics" in text
    assert "Served             : 2" in text


def test_fgn_results_short_series_skips_hurst(tmp_path):
    series = np.linspace(-1.0, 1.0, 16)
    with FileOutputManager(output_root=tmp_path) as out:
        out.save_fgn_results(series, 0.8, 1.0, 0.5, 0.0)
    lines = out.csv_path.read_text().splitlines()
    assert lines[0] == "Index,Value"
    assert len(lines) == 17
    with open(out.csv_path, newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[1] == ["0", "-1.0000000000"]
    assert float(rows[-1][1]) == pytest.approx(1.0)
    summary = out.summary_path.read_text()
    assert "=== FGN Generation Report ===" in summary
    assert "not computed (requires >= 512 samples" in summary
    log = out.event_log_path.read_text()
    assert "# Fractional Gaussian Noise samples" in log
    assert "t=0.500000, sample=1" in log


def test_fgn_results_long_series_estimates_hurst(tmp_path):
    series = np.random.default_rng(0).standard_normal(1024)
    with FileOutputManager(output_root=tmp_path) as out:
        out.save_fgn_results(series, 0.8, 1.0, 1.0, 0.0)
    summary = out.summary_path.read_text()
    estimate_line = [l for l in summary.splitlines() if l.startswith("Estimated Hurst")][0]
    assert "not computed" not in estimate_line


def test_fgn_results_flat_series(tmp_path):
    with FileOutputManager(output_root=tmp_path) as out:
        out.save_fgn_results(np.zeros(600), 0.8, 1.0, 1.0, 0.0)
    assert "variance too low" in out.summary_path.read_text()


def test_close_is_idempotent(tmp_path):
    out = FileOutputManager(output_root=tmp_path)
    out.close()
    out.close()
    out.log_event(Event(1.0, 0, SourceState.ON))


def test_null_sink_accepts_everything():
    with NullOutputSink() as sink:
        sink.log_event(Event(1.0, 0, SourceState.ON))
        sink.save_summary(StatisticsCollector(), NetworkQueue(1.0))
        sink.save_fgn_results([0.0, 1.0], 0.8, 1.0, 1.0, 0.0)
        assert sink.run_directory is None
        assert sink.get_run_directory() is None
