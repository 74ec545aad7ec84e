"""
Test suite for exporters and the command line entry point.

Tests cover:
- CSV rows per wheelchair per step
- Summary report content
- PNG snapshot and GIF output
- Headless CLI runs
- Realtime runs that stop early
"""

import csv

import pytest

from wheelchair_sim.export import CSVWriter, Reporter, Visualizer
from wheelchair_sim.export.csv_writer import WHEELCHAIR_FIELDS, METRIC_FIELDS
from wheelchair_sim.config import SimulationConfig
from wheelchair_sim.main import main, run_realtime
from wheelchair_sim.model import Point, SimulationController, ThreadingScheduler


@pytest.fixture
def states(engine, place, block):
    a, _ = place((5, 5), (9, 9))
    block((2, 2))
    engine.set_destination(a, Point(8, 5))
    return [engine.tick() for _ in range(4)]


class TestCSVWriter:
    def test_rows_per_wheelchair_per_step(self, tmp_path, states):
        path = tmp_path / 'out' / 'log.csv'
        with CSVWriter(path) as writer:
            for state in states:
                writer.append(state)

        with open(path, newline='') as f:
            rows = list(csv.DictReader(f))

        assert len(rows) == 8
        assert list(rows[0]) == WHEELCHAIR_FIELDS
        assert rows[0]['step'] == '1'
        assert {r['status'] for r in rows} == {'In Transit', 'Available'}

    def test_metrics_layout(self, tmp_path, states):
        path = tmp_path / 'metrics.csv'
        with CSVWriter.metrics(path) as writer:
            for state in states:
                writer.append(state)

        with open(path, newline='') as f:
            rows = list(csv.DictReader(f))

        assert writer.rows_written == 4
        assert list(rows[0]) == METRIC_FIELDS
        assert [r['moves'] for r in rows] == ['1', '1', '1', '0']
        assert rows[0]['in_transit'] == '1'

    def test_append_opens_lazily(self, tmp_path, states):
        writer = CSVWriter(tmp_path / 'log.csv')
        writer.append(states[0])
        writer.close()
        assert (tmp_path / 'log.csv').exists()


class TestReporter:
    def test_summary_mentions_metrics(self, tmp_path, states):
        reporter = Reporter('configs/hospital_floor.yaml', 42)
        reporter.record_dispatch()
        for state in states:
            reporter.update(state)

        report = reporter.generate_summary(states[-1], tmp_path, True, False, False)

        assert 'WHEELCHAIR FLEET SIMULATION REPORT' in report
        assert 'Random Seed: 42' in report
        assert 'Destinations Assigned: 1' in report
        assert 'Cells Travelled:       3' in report
        assert 'Snapshot:   (disabled)' in report
        assert reporter.peak_in_transit == 1


class TestVisualizer:
    def test_snapshot_and_gif(self, tmp_path, states):
        visualizer = Visualizer(50, 30)
        visualizer.save_snapshot(states[-1], tmp_path / 'final.png')
        for state in states[:2]:
            visualizer.buffer_frame(state)
        visualizer.generate_gif(tmp_path / 'anim.gif', fps=5)

        assert (tmp_path / 'final.png').stat().st_size > 0
        assert (tmp_path / 'anim.gif').stat().st_size > 0

    def test_gif_without_frames_writes_nothing(self, tmp_path):
        Visualizer(10, 10).generate_gif(tmp_path / 'anim.gif')
        assert not (tmp_path / 'anim.gif').exists()


class TestMain:
    def _write_config(self, tmp_path):
        path = tmp_path / 'sim.yaml'
        path.write_text(
            "grid: {width: 15, height: 10}\n"
            "simulation: {max_steps: 30, wheelchair_count: 4, "
            "obstacle_count: 6, dispatch_probability: 0.5, seed: 5}\n"
        )
        return path

    def test_headless_run_writes_csv(self, tmp_path):
        out_dir = tmp_path / 'out'
        code = main(['--config', str(self._write_config(tmp_path)),
                     '--out-dir', str(out_dir), '--no-snapshot', '--quiet'])
        assert code == 0

        with open(out_dir / 'simulation_log.csv', newline='') as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 30 * 4
        assert (out_dir / 'simulation_metrics.csv').exists()

    def test_realtime_run(self, tmp_path):
        path = tmp_path / 'sim.yaml'
        path.write_text(
            "grid: {width: 15, height: 10}\n"
            "simulation: {max_steps: 5, tick_interval_ms: 5, "
            "wheelchair_count: 2, seed: 5}\n"
        )
        out_dir = tmp_path / 'out'
        code = main(['--config', str(path), '--out-dir', str(out_dir),
                     '--no-snapshot', '--realtime', '--quiet'])
        assert code == 0

        with open(out_dir / 'simulation_log.csv', newline='') as f:
            steps = {row['step'] for row in csv.DictReader(f)}
        assert steps == {'1', '2', '3', '4', '5'}

    def test_realtime_returns_when_tick_fails(self, monkeypatch):
        config = SimulationConfig.default()
        config.tick_interval_ms = 5
        controller = SimulationController(config, ThreadingScheduler())

        def boom():
            raise RuntimeError("engine bug")

        monkeypatch.setattr(controller.engine, "tick", boom)
        seen = []
        run_realtime(controller, 10, lambda: None, seen.append)

        assert seen == []
        assert not controller.running

    def test_missing_config_fails(self, tmp_path, capsys):
        code = main(['--config', str(tmp_path / 'missing.yaml'), '--quiet'])
        assert code == 1
        assert 'not found' in capsys.readouterr().err

    def test_invalid_config_fails(self, tmp_path):
        path = tmp_path / 'bad.yaml'
        path.write_text("movement: {planner: teleport}\n")
        assert main(['--config', str(path), '--quiet']) == 1
